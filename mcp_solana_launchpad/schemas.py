"""
Pydantic Data Models for the Solana Launchpad

This module defines the data models shared by the bonding-curve engine, the campaign
lifecycle and the MCP server. Pydantic provides type coercion and JSON
serialization; business-rule validation that must raise a specific launchpad error
(fee ranges, string lengths, curve parameters) lives in the components that enforce it.

Key Components:
- CurveType / CampaignStatus: Closed enums for curve families and campaign states
- CurveParameters: Pricing parameters fixed at campaign creation
- GraduationCriteria: Independently optional graduation thresholds (AND semantics)
- BondingCurveState: Mutable per-campaign reserve counters
- CampaignState: Campaign metadata, status and custody addresses
- PlatformConfig: Process-wide fee and kill-switch configuration
- CreatorProfile: Per-creator launch statistics
- PoolConfig / PoolHandle: Liquidity venue pool configuration and result
- Receipts: BuyReceipt, SellReceipt, GraduationReceipt and friends

Amounts are integers in the smallest unit (lamports for SOL, base units for tokens).
Addresses are base58 public keys, validated with solders.
"""
from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, Field
from solders.pubkey import Pubkey


def _validate_address(value: str) -> str:
    """Checks the value parses as a Solana public key and returns its canonical form."""
    return str(Pubkey.from_string(value))


Address = Annotated[str, AfterValidator(_validate_address)]


class CurveType(str, Enum):
    linear = "linear"
    exponential = "exponential"
    custom = "custom"


class CampaignStatus(str, Enum):
    active = "active"
    paused = "paused"
    graduated = "graduated"


class CurveParameters(BaseModel):
    # Linear: P(S) = base_price + slope * S
    # Exponential: P(S) = base_price * multiplier^(S / step), multiplier in Q32.32 held in slope
    base_price: int = Field(ge=0)
    slope: int = Field(0, ge=0)
    step: int = Field(0, ge=0)
    max_supply: int = Field(ge=0)


class GraduationCriteria(BaseModel):
    min_sol_raised: Optional[int] = Field(None, ge=0)
    min_supply_sold: Optional[int] = Field(None, ge=0)
    time_limit: Optional[int] = None
    custom_logic: Optional[Address] = None  # Stored, never evaluated


class BondingCurveState(BaseModel):
    curve_type: CurveType
    curve_params: CurveParameters
    supply_sold: int = 0
    sol_reserves: int = 0
    virtual_sol_reserves: int = 0
    virtual_token_reserves: int = 0
    fee_collected: int = 0
    last_price: int = 0


class PoolHandle(BaseModel):
    address: Address
    lp_mint: Address


class CampaignState(BaseModel):
    campaign_id: Address  # The token mint
    creator: Address
    name: str
    symbol: str
    uri: str
    decimals: int
    status: CampaignStatus = CampaignStatus.active
    creator_fee_bps: int
    total_supply: int
    reserved_token_balance: int
    graduation_criteria: GraduationCriteria
    sol_vault: Address
    token_vault: Address
    created_at: int
    graduated_at: Optional[int] = None
    pool: Optional[PoolHandle] = None
    ledger: BondingCurveState


class CreateCampaignParams(BaseModel):
    name: str
    symbol: str
    uri: str
    decimals: int = Field(ge=0)
    total_supply: int = Field(ge=0)
    curve_type: CurveType
    curve_params: CurveParameters
    creator_fee_bps: int = Field(0, ge=0)
    graduation_criteria: GraduationCriteria = Field(default_factory=GraduationCriteria)


class PlatformConfig(BaseModel):
    authority: Address
    platform_fee_bps: int
    fee_destination: Address
    paused: bool = False


class CreatorProfile(BaseModel):
    creator: Address
    launches_count: int = 0
    successful_launches: int = 0
    total_volume: int = 0
    created_at: int


class PoolConfig(BaseModel):
    bin_step: int = 25
    base_factor: int = 10000
    filter_period: int = 30
    decay_period: int = 600
    reduction_factor: int = 5000
    variable_fee_control: int = 40000
    max_volatility_accumulator: int = 350000
    min_bin_id: int = -443636
    max_bin_id: int = 443636


class BuyReceipt(BaseModel):
    campaign_id: str
    trader: str
    payment_amount: int
    platform_fee: int
    creator_fee: int
    net_payment: int
    tokens_out: int
    new_supply: int
    new_price: int
    new_sol_reserves: int
    new_fee_collected: int
    price_impact_bps: int


class SellReceipt(BaseModel):
    campaign_id: str
    trader: str
    token_amount: int
    gross_payment: int
    platform_fee: int
    creator_fee: int
    net_payment: int
    new_supply: int
    new_price: int
    new_sol_reserves: int
    new_fee_collected: int


class LiquidityAllocation(BaseModel):
    sol_amount: int
    token_amount: int
    tokens_remaining: int


class LpShare(BaseModel):
    recipient: Address
    amount: int


class LpDistribution(BaseModel):
    lp_amount: int
    creator: LpShare
    platform: LpShare
    retained: LpShare

    def shares(self) -> list[LpShare]:
        return [self.creator, self.platform, self.retained]


class GraduationReceipt(BaseModel):
    campaign_id: str
    pool: PoolHandle
    allocation: LiquidityAllocation
    distribution: LpDistribution
    sol_collected: int
    tokens_sold: int
    graduated_at: int


class GraduationProgress(BaseModel):
    can_graduate: bool
    sol_progress: float = 100.0
    supply_progress: float = 100.0
    time_progress: float = 100.0

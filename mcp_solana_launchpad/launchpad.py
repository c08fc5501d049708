"""
Launchpad Platform Facade

Entry point for every launchpad operation: platform initialization, campaign creation,
trading on the curve, pausing, graduation and fee withdrawal. The facade owns the
process-wide PlatformConfig, the campaign store and the shared collaborators (platform fee
vault, liquidity venue), and wires each request to the component that implements it.

Concurrency:
- Every campaign operation runs under that campaign's lock (see campaign_manager)
- The platform configuration is read once, as a snapshot, at the start of each operation;
  only the platform authority mutates it

Authority Rules:
- initialize_platform: once, by whoever becomes the authority
- set_platform_paused, toggle_pause, withdraw_fees: platform authority only
- graduate: the campaign creator or the platform authority
"""
import threading
import time
from typing import Callable, Optional

from solders.pubkey import Pubkey

from mcp_solana_launchpad import config
from mcp_solana_launchpad.campaign_manager import (
    CampaignRecord,
    CampaignStore,
    find_custody_address,
    find_sol_vault_address,
    find_token_vault_address,
)
from mcp_solana_launchpad.collaborators import (
    InMemoryLiquidityVenue,
    InMemoryTokenMint,
    InMemoryValueVault,
    LiquidityVenue,
    ValueVault,
    new_address,
)
from mcp_solana_launchpad.errors import (
    InvalidCreatorFeeError,
    InvalidDecimalsError,
    InvalidFeeBasisPointsError,
    InvalidTimeLimitError,
    InvalidTotalSupplyError,
    MetadataUriTooLongError,
    PlatformAlreadyInitializedError,
    PlatformNotInitializedError,
    PlatformPausedError,
    TokenNameTooLongError,
    TokenSymbolTooLongError,
    UnauthorizedError,
    ValidationError,
)
from mcp_solana_launchpad.graduation import GraduationOrchestrator
from mcp_solana_launchpad.ledger import BondingCurveLedger
from mcp_solana_launchpad.lifecycle import graduation_progress, toggle_pause
from mcp_solana_launchpad.pricing import validate_curve_params
from mcp_solana_launchpad.schemas import (
    BondingCurveState,
    BuyReceipt,
    CampaignState,
    CampaignStatus,
    CreateCampaignParams,
    CreatorProfile,
    GraduationProgress,
    GraduationReceipt,
    PlatformConfig,
    PoolConfig,
    SellReceipt,
)
from mcp.server.fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)


def parse_address(value: str, field: str) -> str:
    """Returns the canonical base58 form of a public key, or raises ValidationError."""
    try:
        return str(Pubkey.from_string(value))
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{field} is not a valid public key: {value!r} ({e})")


def validate_create_params(params: CreateCampaignParams, now: int) -> None:
    """Checks campaign parameters, raising the specific ValidationError subclass for the first failure."""
    if len(params.name.encode("utf-8")) > config.MAX_NAME_LENGTH:
        raise TokenNameTooLongError(f"Token name too long - max {config.MAX_NAME_LENGTH} bytes")
    if len(params.symbol.encode("utf-8")) > config.MAX_SYMBOL_LENGTH:
        raise TokenSymbolTooLongError(f"Token symbol too long - max {config.MAX_SYMBOL_LENGTH} bytes")
    if len(params.uri.encode("utf-8")) > config.MAX_URI_LENGTH:
        raise MetadataUriTooLongError(f"Metadata URI too long - max {config.MAX_URI_LENGTH} bytes")
    if params.decimals > config.MAX_DECIMALS:
        raise InvalidDecimalsError(f"Invalid decimals - must be between 0-{config.MAX_DECIMALS}")
    if params.total_supply <= 0:
        raise InvalidTotalSupplyError("Total supply must be positive")
    if params.creator_fee_bps > config.MAX_CREATOR_FEE_BPS:
        raise InvalidCreatorFeeError(f"Invalid creator fee - must be between 0-{config.MAX_CREATOR_FEE_BPS} basis points")
    validate_curve_params(params.curve_type, params.curve_params)
    time_limit = params.graduation_criteria.time_limit
    if time_limit is not None and time_limit <= now:
        raise InvalidTimeLimitError(f"Invalid time limit {time_limit} - must be after {now}")


class Launchpad:
    def __init__(
        self,
        venue: Optional[LiquidityVenue] = None,
        fee_vault: Optional[ValueVault] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.store = CampaignStore()
        self.platform: Optional[PlatformConfig] = None
        self.fee_vault = fee_vault or InMemoryValueVault(
            find_custody_address(b"fee_vault", str(config.LAUNCHPAD_PROGRAM_ID))
        )
        self.orchestrator = GraduationOrchestrator(venue or InMemoryLiquidityVenue())
        self.clock = clock or (lambda: int(time.time()))
        self._platform_lock = threading.Lock()

    # --- Platform ---

    def initialize_platform(self, authority: str, platform_fee_bps: int,
                            fee_destination: Optional[str] = None) -> PlatformConfig:
        authority = parse_address(authority, "authority")
        fee_destination = parse_address(fee_destination or authority, "fee_destination")
        if platform_fee_bps < 0 or platform_fee_bps > config.MAX_PLATFORM_FEE_BPS:
            raise InvalidFeeBasisPointsError(
                f"Invalid fee percentage - must be between 0-{config.MAX_PLATFORM_FEE_BPS} basis points"
            )
        with self._platform_lock:
            if self.platform is not None:
                raise PlatformAlreadyInitializedError("Platform is already initialized")
            self.platform = PlatformConfig(
                authority=authority,
                platform_fee_bps=platform_fee_bps,
                fee_destination=fee_destination,
            )
        logger.info(f"Platform initialized: authority={authority}, fee={platform_fee_bps} bps, "
                    f"fee_destination={fee_destination}")
        return self.platform.model_copy()

    def platform_snapshot(self) -> PlatformConfig:
        platform = self.platform
        if platform is None:
            raise PlatformNotInitializedError("Platform has not been initialized")
        return platform.model_copy()

    def _require_authority(self, platform: PlatformConfig, caller: str) -> None:
        if caller != platform.authority:
            raise UnauthorizedError(f"{caller} is not the platform authority")

    def set_platform_paused(self, authority: str, paused: bool) -> PlatformConfig:
        with self._platform_lock:
            platform = self.platform_snapshot()
            self._require_authority(platform, authority)
            self.platform = platform.model_copy(update={"paused": paused})
        logger.info(f"Platform {'paused' if paused else 'resumed'} by {authority}")
        return self.platform.model_copy()

    def withdraw_fees(self, authority: str) -> int:
        """Moves the whole platform fee balance to the fee destination. Returns the amount moved."""
        platform = self.platform_snapshot()
        self._require_authority(platform, authority)
        amount = self.fee_vault.balance()
        if amount == 0:
            logger.info("No fees to withdraw")
            return 0
        self.fee_vault.withdraw(amount, platform.fee_destination)
        logger.info(f"Fees withdrawn successfully: {amount} lamports to {platform.fee_destination}")
        return amount

    # --- Campaigns ---

    def create_campaign(self, creator: str, params: CreateCampaignParams) -> CampaignState:
        platform = self.platform_snapshot()
        if platform.paused:
            raise PlatformPausedError("Platform is currently paused")
        creator = parse_address(creator, "creator")
        now = self.clock()
        validate_create_params(params, now)

        campaign_id = new_address()
        token_vault = find_token_vault_address(campaign_id)
        campaign = CampaignState(
            campaign_id=campaign_id,
            creator=creator,
            name=params.name,
            symbol=params.symbol,
            uri=params.uri,
            decimals=params.decimals,
            status=CampaignStatus.active,
            creator_fee_bps=params.creator_fee_bps,
            total_supply=params.total_supply,
            reserved_token_balance=params.total_supply,
            graduation_criteria=params.graduation_criteria,
            sol_vault=find_sol_vault_address(campaign_id),
            token_vault=token_vault,
            created_at=now,
            ledger=BondingCurveState(
                curve_type=params.curve_type,
                curve_params=params.curve_params,
                last_price=params.curve_params.base_price,
            ),
        )

        token_mint = InMemoryTokenMint(campaign_id)
        vault = InMemoryValueVault(campaign.sol_vault)
        # Reserved supply for post-graduation liquidity
        token_mint.mint_to(token_vault, params.total_supply)
        ledger = BondingCurveLedger(campaign, token_mint, token_mint, vault, self.fee_vault)

        self.store.add_campaign(CampaignRecord(campaign, token_mint, vault, ledger))
        self.store.record_launch(creator, now)
        logger.info(f"Campaign created: id={campaign_id}, creator={creator}, name={params.name}, "
                    f"symbol={params.symbol}, total_supply={params.total_supply}, "
                    f"curve={params.curve_type.value}, base_price={params.curve_params.base_price}, "
                    f"creator_fee={params.creator_fee_bps} bps")
        return campaign

    def get_campaign(self, campaign_id: str) -> CampaignState:
        return self.store.get_record(campaign_id).campaign

    def get_creator_profile(self, creator: str) -> Optional[CreatorProfile]:
        return self.store.get_creator_profile(creator)

    # --- Trading ---

    def quote_buy(self, campaign_id: str, trader: str, payment_amount: int,
                  min_tokens_out: int = 0, max_slippage_bps: int = 10000) -> BuyReceipt:
        platform = self.platform_snapshot()
        trader = parse_address(trader, "trader")
        with self.store.locked(campaign_id) as record:
            return record.ledger.quote_buy(platform, trader, payment_amount, min_tokens_out, max_slippage_bps)

    def quote_sell(self, campaign_id: str, trader: str, token_amount: int,
                   min_payment_out: int = 0, max_slippage_bps: int = 10000) -> SellReceipt:
        platform = self.platform_snapshot()
        trader = parse_address(trader, "trader")
        with self.store.locked(campaign_id) as record:
            return record.ledger.quote_sell(platform, trader, token_amount, min_payment_out, max_slippage_bps)

    def buy(self, campaign_id: str, trader: str, payment_amount: int, min_tokens_out: int,
            max_slippage_bps: int) -> BuyReceipt:
        platform = self.platform_snapshot()
        trader = parse_address(trader, "trader")
        with self.store.locked(campaign_id) as record:
            receipt = record.ledger.buy(platform, trader, payment_amount, min_tokens_out, max_slippage_bps)
            self.store.record_volume(record.campaign.creator, payment_amount)
        return receipt

    def sell(self, campaign_id: str, trader: str, token_amount: int, min_payment_out: int,
             max_slippage_bps: int) -> SellReceipt:
        platform = self.platform_snapshot()
        trader = parse_address(trader, "trader")
        with self.store.locked(campaign_id) as record:
            receipt = record.ledger.sell(platform, trader, token_amount, min_payment_out, max_slippage_bps)
            self.store.record_volume(record.campaign.creator, receipt.gross_payment)
        return receipt

    # --- Lifecycle ---

    def toggle_pause(self, campaign_id: str, authority: str) -> CampaignStatus:
        platform = self.platform_snapshot()
        self._require_authority(platform, authority)
        with self.store.locked(campaign_id) as record:
            return toggle_pause(record.campaign)

    def graduation_progress(self, campaign_id: str) -> GraduationProgress:
        with self.store.locked(campaign_id) as record:
            return graduation_progress(record.campaign, self.clock())

    def graduate(self, campaign_id: str, authority: str,
                 pool_config: Optional[PoolConfig] = None) -> GraduationReceipt:
        platform = self.platform_snapshot()
        with self.store.locked(campaign_id) as record:
            campaign = record.campaign
            if authority != campaign.creator and authority != platform.authority:
                raise UnauthorizedError(f"{authority} may not graduate campaign {campaign_id}")
            receipt = self.orchestrator.graduate(
                campaign,
                platform,
                pool_config or PoolConfig(),
                record.vault,
                record.token_mint,
                self.clock(),
            )
        self.store.record_graduation(campaign.creator)
        return receipt

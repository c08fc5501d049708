"""
Bonding Curve Ledger

This module settles buys and sells against a campaign's bonding curve. It owns the
per-campaign reserve counters (supply sold, SOL reserves, fees collected, cached price)
and applies each trade in three phases:

1. Quote: every precondition and economic check runs against a snapshot of the state and
   produces the receipt the trade would settle to. Nothing is mutated.
2. Move value: tokens and SOL move through the collaborators (mint, burn, vault). If a
   later collaborator call fails, each earlier move is reversed on its own and the
   original error propagates.
3. Commit: the counters are updated from the receipt. All values were computed with
   checked arithmetic in phase 1, so the commit itself cannot fail.

Fee Handling:
- Buy: platform and creator fees come off the payment; the net goes to the campaign
  vault and the fees to the platform fee vault. The shared fee vault is credited last,
  after the tokens are minted, so a failed buy never has to claw fees back from it.
- Sell: fees come off the gross curve payout. Reserves drop by the gross amount and the
  fees stay in the campaign vault. fee_collected counts them as well as buy fees.

Callers are expected to hold the campaign's lock for the duration of buy() and sell().
"""
from typing import Callable, List, Tuple

from mcp_solana_launchpad.collaborators import TokenBurner, TokenMinter, ValueVault
from mcp_solana_launchpad.errors import (
    InsufficientSolAmountError,
    InsufficientTokenAmountError,
    MaxSupplyExceededError,
    MinSolNotMetError,
    MinTokensNotMetError,
)
from mcp_solana_launchpad.fees import calculate_fee, validate_slippage
from mcp_solana_launchpad.lifecycle import ensure_trading_allowed
from mcp_solana_launchpad.pricing import CurveModel, price_impact_bps
from mcp_solana_launchpad.schemas import (
    BondingCurveState,
    BuyReceipt,
    CampaignState,
    PlatformConfig,
    SellReceipt,
)
from mcp_solana_launchpad.utils import checked_add, checked_sub
from mcp.server.fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)


def curve_for(state: BondingCurveState) -> CurveModel:
    return CurveModel(state.curve_type, state.curve_params)


def quote_buy(
    campaign: CampaignState,
    platform: PlatformConfig,
    trader: str,
    payment_amount: int,
    min_tokens_out: int,
    max_slippage_bps: int,
) -> BuyReceipt:
    """Runs every buy check and returns the resulting receipt without mutating state."""
    ensure_trading_allowed(campaign, platform)
    if payment_amount <= 0:
        raise InsufficientSolAmountError("Payment amount must be positive")

    state = campaign.ledger
    curve = curve_for(state)

    platform_fee = calculate_fee(payment_amount, platform.platform_fee_bps)
    creator_fee = calculate_fee(payment_amount, campaign.creator_fee_bps)
    total_fees = checked_add(platform_fee, creator_fee)
    net_payment = checked_sub(payment_amount, total_fees)

    tokens = curve.tokens_for_payment(net_payment, state.supply_sold)
    if tokens == 0:
        raise InsufficientSolAmountError(
            f"Net payment of {net_payment} lamports does not buy a single token at supply {state.supply_sold}"
        )
    if tokens < min_tokens_out:
        raise MinTokensNotMetError(f"Buy yields {tokens} tokens, minimum requested {min_tokens_out}")
    validate_slippage(min_tokens_out, tokens, max_slippage_bps)

    new_supply = checked_add(state.supply_sold, tokens)
    if new_supply > state.curve_params.max_supply:
        raise MaxSupplyExceededError(
            f"Buy of {tokens} tokens would take supply to {new_supply}, max is {state.curve_params.max_supply}"
        )
    new_price = curve.price(new_supply)

    return BuyReceipt(
        campaign_id=campaign.campaign_id,
        trader=trader,
        payment_amount=payment_amount,
        platform_fee=platform_fee,
        creator_fee=creator_fee,
        net_payment=net_payment,
        tokens_out=tokens,
        new_supply=new_supply,
        new_price=new_price,
        new_sol_reserves=checked_add(state.sol_reserves, net_payment),
        new_fee_collected=checked_add(state.fee_collected, total_fees),
        price_impact_bps=price_impact_bps(state.last_price, new_price),
    )


def quote_sell(
    campaign: CampaignState,
    platform: PlatformConfig,
    trader: str,
    token_amount: int,
    min_payment_out: int,
    max_slippage_bps: int,
    trader_balance: int,
    vault_balance: int,
) -> SellReceipt:
    """Runs every sell check and returns the resulting receipt without mutating state."""
    ensure_trading_allowed(campaign, platform)
    if token_amount <= 0:
        raise InsufficientTokenAmountError("Token amount must be positive")
    if trader_balance < token_amount:
        raise InsufficientTokenAmountError(f"Trader holds {trader_balance} tokens, cannot sell {token_amount}")

    state = campaign.ledger
    if state.supply_sold < token_amount:
        raise InsufficientTokenAmountError(
            f"Cannot sell {token_amount} tokens, only {state.supply_sold} sold through the curve"
        )

    curve = curve_for(state)
    new_supply = state.supply_sold - token_amount
    gross_payment = curve.cost(new_supply, state.supply_sold)

    platform_fee = calculate_fee(gross_payment, platform.platform_fee_bps)
    creator_fee = calculate_fee(gross_payment, campaign.creator_fee_bps)
    total_fees = checked_add(platform_fee, creator_fee)
    net_payment = checked_sub(gross_payment, total_fees)

    if net_payment < min_payment_out:
        raise MinSolNotMetError(f"Sell pays {net_payment} lamports, minimum requested {min_payment_out}")
    validate_slippage(min_payment_out, net_payment, max_slippage_bps)
    if vault_balance < net_payment:
        raise InsufficientSolAmountError(f"Vault holds {vault_balance} lamports, sell needs {net_payment}")

    new_sol_reserves = checked_sub(state.sol_reserves, gross_payment)
    new_price = state.curve_params.base_price if new_supply == 0 else curve.price(new_supply)

    return SellReceipt(
        campaign_id=campaign.campaign_id,
        trader=trader,
        token_amount=token_amount,
        gross_payment=gross_payment,
        platform_fee=platform_fee,
        creator_fee=creator_fee,
        net_payment=net_payment,
        new_supply=new_supply,
        new_price=new_price,
        new_sol_reserves=new_sol_reserves,
        # Sell fees count towards fee_collected alongside buy fees, a superset of the buy-only total
        new_fee_collected=checked_add(state.fee_collected, total_fees),
    )


class BondingCurveLedger:
    """Applies trades to one campaign's curve state through its collaborators."""

    def __init__(
        self,
        campaign: CampaignState,
        token_mint: TokenMinter,
        token_burner: TokenBurner,
        vault: ValueVault,
        fee_vault: ValueVault,
    ):
        self.campaign = campaign
        self.token_mint = token_mint
        self.token_burner = token_burner
        self.vault = vault
        self.fee_vault = fee_vault

    @property
    def state(self) -> BondingCurveState:
        return self.campaign.ledger

    def quote_buy(self, platform: PlatformConfig, trader: str, payment_amount: int,
                  min_tokens_out: int, max_slippage_bps: int) -> BuyReceipt:
        return quote_buy(self.campaign, platform, trader, payment_amount, min_tokens_out, max_slippage_bps)

    def quote_sell(self, platform: PlatformConfig, trader: str, token_amount: int,
                   min_payment_out: int, max_slippage_bps: int) -> SellReceipt:
        return quote_sell(
            self.campaign,
            platform,
            trader,
            token_amount,
            min_payment_out,
            max_slippage_bps,
            trader_balance=self.token_mint.balance_of(trader),
            vault_balance=self.vault.balance(),
        )

    def _compensate(self, undo_steps: List[Tuple[str, Callable[[], None]]]) -> None:
        """Runs each undo step independently so one failure does not block the rest."""
        for description, undo in reversed(undo_steps):
            try:
                undo()
            except Exception as undo_error:
                logger.error(f"Compensation on {self.campaign.campaign_id} failed to {description}: {undo_error}")

    def buy(self, platform: PlatformConfig, trader: str, payment_amount: int,
            min_tokens_out: int, max_slippage_bps: int) -> BuyReceipt:
        receipt = self.quote_buy(platform, trader, payment_amount, min_tokens_out, max_slippage_bps)
        fees = receipt.platform_fee + receipt.creator_fee

        # Fees reach the shared fee vault last, once nothing campaign-local can fail
        undo_steps = []
        try:
            self.vault.deposit(receipt.net_payment)
            undo_steps.append(("refund net payment", lambda: self.vault.withdraw(receipt.net_payment, trader)))
            self.token_mint.mint_to(trader, receipt.tokens_out)
            undo_steps.append(("burn minted tokens", lambda: self.token_burner.burn(trader, receipt.tokens_out)))
            if fees:
                self.fee_vault.deposit(fees)
        except Exception as e:
            logger.error(f"Buy on {self.campaign.campaign_id} failed while moving value, refunding {trader}: {e}")
            self._compensate(undo_steps)
            raise

        state = self.state
        state.supply_sold = receipt.new_supply
        state.sol_reserves = receipt.new_sol_reserves
        state.fee_collected = receipt.new_fee_collected
        state.last_price = receipt.new_price

        logger.info(f"Buy on {self.campaign.campaign_id}: trader={trader}, paid={receipt.payment_amount}, "
                    f"net={receipt.net_payment}, tokens={receipt.tokens_out}, "
                    f"supply={state.supply_sold}, price={state.last_price}")
        return receipt

    def sell(self, platform: PlatformConfig, trader: str, token_amount: int,
             min_payment_out: int, max_slippage_bps: int) -> SellReceipt:
        receipt = self.quote_sell(platform, trader, token_amount, min_payment_out, max_slippage_bps)

        self.token_burner.burn(trader, token_amount)
        try:
            self.vault.withdraw(receipt.net_payment, trader)
        except Exception as e:
            logger.error(f"Sell on {self.campaign.campaign_id} failed paying out, re-minting to {trader}: {e}")
            self._compensate([("re-mint burned tokens", lambda: self.token_mint.mint_to(trader, token_amount))])
            raise

        state = self.state
        state.supply_sold = receipt.new_supply
        state.sol_reserves = receipt.new_sol_reserves
        state.fee_collected = receipt.new_fee_collected
        state.last_price = receipt.new_price

        logger.info(f"Sell on {self.campaign.campaign_id}: trader={trader}, tokens={token_amount}, "
                    f"gross={receipt.gross_payment}, net={receipt.net_payment}, "
                    f"supply={state.supply_sold}, price={state.last_price}")
        return receipt

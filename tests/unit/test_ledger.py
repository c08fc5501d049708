import pytest
from unittest.mock import patch

from mcp_solana_launchpad.collaborators import new_address
from mcp_solana_launchpad.errors import (
    EconomicError,
    InsufficientSolAmountError,
    InsufficientTokenAmountError,
    LaunchpadAlreadyGraduatedError,
    LaunchpadNotActiveError,
    MaxSupplyExceededError,
    MinSolNotMetError,
    MinTokensNotMetError,
    PlatformPausedError,
    SlippageExceededError,
)
from mcp_solana_launchpad.ledger import curve_for
from mcp_solana_launchpad.schemas import CampaignStatus, CurveParameters


def _record(launchpad, campaign):
    return launchpad.store.get_record(campaign.campaign_id)


# --- Buy ---

def test_buy_settles_on_curve(launchpad, campaign, trader):
    receipt = launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)

    assert receipt.platform_fee == 2000
    assert receipt.creator_fee == 4000
    assert receipt.net_payment == 194000
    assert receipt.tokens_out == 120
    assert receipt.new_price == 2200
    assert receipt.price_impact_bps == 12000

    state = campaign.ledger
    assert state.supply_sold == 120
    assert state.sol_reserves == 194000
    assert state.fee_collected == 6000
    assert state.last_price == 2200

    record = _record(launchpad, campaign)
    assert record.vault.balance() == 194000
    assert launchpad.fee_vault.balance() == 6000
    assert record.token_mint.balance_of(trader) == 120


def test_quote_buy_matches_buy_without_mutation(launchpad, campaign, trader):
    quote = launchpad.quote_buy(campaign.campaign_id, trader, 200_000)
    assert campaign.ledger.supply_sold == 0
    assert _record(launchpad, campaign).vault.balance() == 0

    receipt = launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)
    assert receipt == quote


def test_buy_min_tokens_not_met(launchpad, campaign, trader):
    with pytest.raises(MinTokensNotMetError):
        launchpad.buy(campaign.campaign_id, trader, 200_000, 121, 10000)
    assert campaign.ledger.supply_sold == 0
    assert _record(launchpad, campaign).vault.balance() == 0
    assert launchpad.fee_vault.balance() == 0


def test_buy_zero_slippage_needs_exact_amount(launchpad, campaign, trader):
    with pytest.raises(SlippageExceededError):
        launchpad.buy(campaign.campaign_id, trader, 200_000, 100, 0)
    receipt = launchpad.buy(campaign.campaign_id, trader, 200_000, 120, 0)
    assert receipt.tokens_out == 120


def test_buy_beyond_max_supply(launchpad, creator, trader, campaign_params):
    params = campaign_params(curve_params=CurveParameters(base_price=1000, slope=10, step=1, max_supply=100))
    small = launchpad.create_campaign(creator, params)
    with pytest.raises(MaxSupplyExceededError):
        launchpad.buy(small.campaign_id, trader, 200_000, 0, 10000)
    assert small.ledger.supply_sold == 0


def test_buy_zero_payment(launchpad, campaign, trader):
    with pytest.raises(InsufficientSolAmountError):
        launchpad.buy(campaign.campaign_id, trader, 0, 0, 10000)


def test_buy_too_small_for_one_token(launchpad, campaign, trader):
    with pytest.raises(InsufficientSolAmountError):
        launchpad.buy(campaign.campaign_id, trader, 500, 0, 10000)


def test_buy_on_paused_platform(launchpad, authority, campaign, trader):
    launchpad.set_platform_paused(authority, True)
    with pytest.raises(PlatformPausedError):
        launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)
    launchpad.set_platform_paused(authority, False)
    assert launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000).tokens_out == 120


def test_buy_on_paused_campaign(launchpad, authority, campaign, trader):
    launchpad.toggle_pause(campaign.campaign_id, authority)
    with pytest.raises(LaunchpadNotActiveError):
        launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)


def test_buy_after_graduation(launchpad, creator, campaign, trader):
    launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)
    launchpad.graduate(campaign.campaign_id, creator)
    with pytest.raises(LaunchpadAlreadyGraduatedError):
        launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)


def test_buy_rolls_back_when_mint_fails(launchpad, campaign, trader):
    record = _record(launchpad, campaign)
    with patch.object(record.token_mint, "mint_to", side_effect=RuntimeError("mint unavailable")):
        with pytest.raises(RuntimeError):
            launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)

    assert campaign.ledger.supply_sold == 0
    assert campaign.ledger.sol_reserves == 0
    assert campaign.ledger.fee_collected == 0
    assert record.vault.balance() == 0
    assert launchpad.fee_vault.balance() == 0
    assert record.vault.paid_out[trader] == 194000
    assert trader not in launchpad.fee_vault.paid_out


def test_buy_rollback_survives_fee_sweep(launchpad, authority, campaign, trader):
    launchpad.buy(campaign.campaign_id, new_address(), 200_000, 0, 10000)
    record = _record(launchpad, campaign)

    def sweep_then_fail(recipient, amount):
        launchpad.withdraw_fees(authority)
        raise RuntimeError("mint unavailable")

    with patch.object(record.token_mint, "mint_to", side_effect=sweep_then_fail):
        with pytest.raises(RuntimeError, match="mint unavailable"):
            launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)

    assert campaign.ledger.supply_sold == 120
    assert campaign.ledger.sol_reserves == 194000
    assert record.vault.balance() == campaign.ledger.sol_reserves
    assert record.vault.paid_out[trader] == 194000
    assert launchpad.fee_vault.balance() == 0


def test_buy_rolls_back_when_fee_deposit_fails(launchpad, campaign, trader):
    record = _record(launchpad, campaign)
    with patch.object(launchpad.fee_vault, "deposit", side_effect=RuntimeError("fee vault unavailable")):
        with pytest.raises(RuntimeError, match="fee vault unavailable"):
            launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)

    assert record.token_mint.balance_of(trader) == 0
    assert record.token_mint.supply == 1_000_000_000
    assert record.vault.balance() == 0
    assert record.vault.paid_out[trader] == 194000
    assert campaign.ledger.supply_sold == 0


def test_failed_refund_keeps_original_error(launchpad, campaign, trader):
    record = _record(launchpad, campaign)
    with patch.object(record.token_mint, "mint_to", side_effect=RuntimeError("mint unavailable")), \
            patch.object(record.vault, "withdraw", side_effect=InsufficientSolAmountError("vault frozen")):
        with pytest.raises(RuntimeError, match="mint unavailable"):
            launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)
    assert campaign.ledger.supply_sold == 0


# --- Sell ---

def test_sell_partial(launchpad, campaign, trader):
    launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)
    receipt = launchpad.sell(campaign.campaign_id, trader, 20, 0, 10000)

    assert receipt.gross_payment == 42000
    assert receipt.platform_fee == 420
    assert receipt.creator_fee == 840
    assert receipt.net_payment == 40740
    assert receipt.new_price == 2000

    state = campaign.ledger
    assert state.supply_sold == 100
    assert state.sol_reserves == 152000
    assert state.fee_collected == 7260
    assert state.last_price == 2000

    record = _record(launchpad, campaign)
    assert record.token_mint.balance_of(trader) == 100
    assert record.vault.balance() == 153260
    assert record.vault.paid_out[trader] == 40740


def test_sell_everything_returns_to_base_price(launchpad, campaign, trader):
    launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)
    receipt = launchpad.sell(campaign.campaign_id, trader, 120, 0, 10000)

    assert receipt.gross_payment == 192000
    assert receipt.net_payment == 186240
    assert campaign.ledger.supply_sold == 0
    assert campaign.ledger.sol_reserves == 2000
    assert campaign.ledger.last_price == 1000


def test_sell_more_than_held(launchpad, campaign, trader):
    launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)
    with pytest.raises(InsufficientTokenAmountError):
        launchpad.sell(campaign.campaign_id, trader, 121, 0, 10000)


def test_sell_zero_tokens(launchpad, campaign, trader):
    with pytest.raises(InsufficientTokenAmountError):
        launchpad.sell(campaign.campaign_id, trader, 0, 0, 10000)


def test_sell_min_payment_not_met(launchpad, campaign, trader):
    launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)
    with pytest.raises(MinSolNotMetError):
        launchpad.sell(campaign.campaign_id, trader, 20, 40741, 10000)
    assert campaign.ledger.supply_sold == 120


def test_sell_with_drained_vault(launchpad, campaign, trader):
    launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)
    _record(launchpad, campaign).vault.lamports = 0
    with pytest.raises(InsufficientSolAmountError):
        launchpad.sell(campaign.campaign_id, trader, 20, 0, 10000)


def test_sell_rolls_back_when_payout_fails(launchpad, campaign, trader):
    launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)
    record = _record(launchpad, campaign)
    with patch.object(record.vault, "withdraw", side_effect=RuntimeError("vault unavailable")):
        with pytest.raises(RuntimeError):
            launchpad.sell(campaign.campaign_id, trader, 20, 0, 10000)

    assert record.token_mint.balance_of(trader) == 120
    assert campaign.ledger.supply_sold == 120
    assert campaign.ledger.sol_reserves == 194000


def test_sell_on_paused_campaign(launchpad, authority, campaign, trader):
    launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)
    launchpad.toggle_pause(campaign.campaign_id, authority)
    with pytest.raises(LaunchpadNotActiveError):
        launchpad.sell(campaign.campaign_id, trader, 20, 0, 10000)
    assert campaign.status == CampaignStatus.paused


def test_sell_after_graduation(launchpad, creator, campaign, trader):
    launchpad.buy(campaign.campaign_id, trader, 200_000, 0, 10000)
    launchpad.graduate(campaign.campaign_id, creator)
    with pytest.raises(LaunchpadAlreadyGraduatedError):
        launchpad.sell(campaign.campaign_id, trader, 20, 0, 10000)

    record = _record(launchpad, campaign)
    assert campaign.ledger.supply_sold == 120
    assert campaign.ledger.sol_reserves == 38800
    assert record.token_mint.balance_of(trader) == 120
    assert record.vault.balance() == 38800
    assert trader not in record.vault.paid_out


# --- Invariants ---

def test_trade_sequence_keeps_price_on_curve(launchpad, campaign, trader):
    curve = curve_for(campaign.ledger)
    for payment in (50_000, 120_000, 7_000, 300_000):
        launchpad.buy(campaign.campaign_id, trader, payment, 0, 10000)
        assert campaign.ledger.last_price == curve.price(campaign.ledger.supply_sold)
    for tokens in (15, 40):
        launchpad.sell(campaign.campaign_id, trader, tokens, 0, 10000)
        assert campaign.ledger.last_price == curve.price(campaign.ledger.supply_sold)

    record = _record(launchpad, campaign)
    assert campaign.ledger.supply_sold <= campaign.ledger.curve_params.max_supply
    assert campaign.ledger.supply_sold == record.token_mint.balance_of(trader)
    assert record.vault.balance() >= campaign.ledger.sol_reserves


def test_economic_errors_share_a_base(launchpad, campaign, trader):
    with pytest.raises(EconomicError):
        launchpad.buy(campaign.campaign_id, trader, 200_000, 500, 10000)

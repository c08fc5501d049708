"""
Fee and Slippage Arithmetic

Fees are expressed in basis points (1/100 of a percent, out of 10000) and always round
down, so the fee side never collects more than its exact share. Slippage tolerance uses the
same basis-point arithmetic to derive the minimum acceptable settled amount.
"""
from mcp_solana_launchpad.errors import InvalidFeeBasisPointsError, SlippageExceededError
from mcp_solana_launchpad.utils import checked_div, checked_mul, checked_sub

BPS_DENOMINATOR = 10000


def calculate_fee(amount: int, fee_bps: int) -> int:
    """floor(amount * fee_bps / 10000)"""
    if fee_bps == 0:
        return 0
    if fee_bps < 0 or fee_bps > BPS_DENOMINATOR:
        raise InvalidFeeBasisPointsError(f"Fee of {fee_bps} bps is outside 0-{BPS_DENOMINATOR}")
    return checked_div(checked_mul(amount, fee_bps), BPS_DENOMINATOR)


def calculate_net_amount(amount: int, fee_bps: int) -> int:
    return checked_sub(amount, calculate_fee(amount, fee_bps))


def validate_slippage(expected_amount: int, actual_amount: int, max_slippage_bps: int) -> None:
    """
    Raises SlippageExceededError if actual_amount deviates too far below expected_amount.

    With a zero tolerance the amounts must match exactly.
    """
    if max_slippage_bps == 0:
        if expected_amount != actual_amount:
            raise SlippageExceededError(
                f"Expected exactly {expected_amount}, got {actual_amount} with zero slippage tolerance"
            )
        return

    max_deviation = calculate_fee(expected_amount, max_slippage_bps)
    min_acceptable = checked_sub(expected_amount, max_deviation)
    if actual_amount < min_acceptable:
        raise SlippageExceededError(
            f"Settled amount {actual_amount} is below minimum acceptable {min_acceptable} "
            f"({max_slippage_bps} bps tolerance on {expected_amount})"
        )

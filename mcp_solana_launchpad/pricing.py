"""
Bonding Curve Pricing Engine

This module implements the pricing functions of the launchpad's bonding curves. Given a
curve type and its parameters it converts between supply and instantaneous price, the
payment needed to move supply between two points, and the tokens a payment buys.

Bonding Curve Types Supported:
- Linear: P(S) = base_price + slope * S
- Exponential: P(S) = base_price * multiplier^(S / step), multiplier in Q32.32
- Custom: Declared for future curve families; every operation raises InvalidCurveParamsError

Settlement Rules:
- All amounts are integers; every intermediate step is checked against u64 bounds and
  raises instead of wrapping
- Inverse functions are conservative: they never return more tokens than the payment
  covers at the curve's own cost function

Precision Notes:
- Linear cost is the exact integral, floored once at the end. With an odd slope the floor
  means cost is not additive: cost(a, c) can exceed cost(a, b) + cost(b, c) by one unit
- Exponential cost uses the trapezoidal rule over the two endpoint prices, not the exact
  integral. The error grows with curve steepness and step size. Exponential prices move in
  whole steps because pow_fixed truncates fractional exponents.
- The linear inverse uses an exact integer square root and the exponential inverse a
  binary search, so settlement never depends on floating point behaviour.
"""
import math

from mcp_solana_launchpad.errors import (
    ArithmeticOverflowError,
    DivisionByZeroError,
    InvalidCurveParamsError,
)
from mcp_solana_launchpad.fixed_point import div_fixed, from_fixed, mul_fixed, pow_fixed, to_fixed
from mcp_solana_launchpad.schemas import CurveParameters, CurveType
from mcp_solana_launchpad.utils import (
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
)
from mcp.server.fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)


# --- Linear Curve ---

def calculate_linear_price(supply: int, base_price: int, slope: int) -> int:
    return checked_add(base_price, checked_mul(supply, slope))


def calculate_linear_cost(supply_start: int, supply_end: int, base_price: int, slope: int) -> int:
    """Cost = base_price * dS + slope * (S_end^2 - S_start^2) / 2"""
    if supply_end <= supply_start:
        return 0

    base_cost = checked_mul(base_price, supply_end - supply_start)
    delta_squared = checked_sub(
        checked_mul(supply_end, supply_end),
        checked_mul(supply_start, supply_start),
    )
    slope_cost = checked_div(checked_mul(slope, delta_squared), 2)
    return checked_add(base_cost, slope_cost)


def _linear_cost_fits(supply: int, tokens: int, payment: int, base_price: int, slope: int) -> bool:
    try:
        return calculate_linear_cost(supply, supply + tokens, base_price, slope) <= payment
    except ArithmeticOverflowError:
        return False


def calculate_linear_tokens_for_payment(payment: int, current_supply: int, base_price: int, slope: int) -> int:
    """
    Largest token amount t with cost(current_supply, current_supply + t) <= payment.

    Solves slope/2 * t^2 + P(current_supply) * t - payment = 0 with an integer square
    root, then binary searches just above the root to absorb the floor in the cost
    function. Raises ArithmeticOverflowError if not even one token can be priced.
    """
    if slope == 0:
        return checked_div(payment, base_price)

    current_price = calculate_linear_price(current_supply, base_price, slope)
    discriminant = current_price * current_price + 2 * slope * payment
    estimate = (math.isqrt(discriminant) - current_price) // slope

    # The floored cost puts the answer at most two tokens past the isqrt root
    low, high = 0, estimate + 2
    while low < high:
        mid = (low + high + 1) // 2
        if _linear_cost_fits(current_supply, mid, payment, base_price, slope):
            low = mid
        else:
            high = mid - 1
    if low == 0:
        # Surfaces ArithmeticOverflowError when the next token cannot be priced
        calculate_linear_cost(current_supply, current_supply + 1, base_price, slope)
    return low


# --- Exponential Curve ---

def calculate_exponential_price(supply: int, base_price: int, multiplier: int, step: int) -> int:
    if step == 0:
        raise DivisionByZeroError("Exponential curve step is zero")

    exponent = div_fixed(to_fixed(supply), to_fixed(step))
    multiplier_pow = pow_fixed(multiplier, exponent)
    return from_fixed(mul_fixed(to_fixed(base_price), multiplier_pow))


def calculate_exponential_cost(
    supply_start: int, supply_end: int, base_price: int, multiplier: int, step: int
) -> int:
    """Trapezoidal approximation: (P(start) + P(end)) / 2 * dS"""
    if supply_end <= supply_start:
        return 0

    price_start = calculate_exponential_price(supply_start, base_price, multiplier, step)
    price_end = calculate_exponential_price(supply_end, base_price, multiplier, step)
    avg_price = checked_add(price_start, price_end) // 2
    return checked_mul(avg_price, supply_end - supply_start)


def calculate_exponential_tokens_for_payment(
    payment: int, current_supply: int, params: CurveParameters
) -> int:
    """
    Binary search for the largest token amount whose trapezoidal cost fits the payment.

    The search stops one token past the remaining supply, so a payment that could buy
    more than the curve has left comes back as remaining + 1 and the caller rejects it.
    """
    remaining = max(params.max_supply - current_supply, 0)
    low, high = 0, remaining + 1
    while low < high:
        mid = (low + high + 1) // 2
        try:
            cost = calculate_exponential_cost(
                current_supply, current_supply + mid, params.base_price, params.slope, params.step
            )
        except ArithmeticOverflowError:
            cost = None
        if cost is not None and cost <= payment:
            low = mid
        else:
            high = mid - 1
    return low


# --- Curve Dispatch ---

class CurveModel:
    """Pricing functions bound to one curve type and parameter set."""

    def __init__(self, curve_type: CurveType, params: CurveParameters):
        self.curve_type = curve_type
        self.params = params

    def _unsupported(self) -> InvalidCurveParamsError:
        return InvalidCurveParamsError(f"Curve type '{self.curve_type.value}' is not supported")

    def price(self, supply: int) -> int:
        """Instantaneous marginal price at the given supply."""
        p = self.params
        if self.curve_type == CurveType.linear:
            return calculate_linear_price(supply, p.base_price, p.slope)
        elif self.curve_type == CurveType.exponential:
            return calculate_exponential_price(supply, p.base_price, p.slope, p.step)
        raise self._unsupported()

    def cost(self, supply_start: int, supply_end: int) -> int:
        """Payment required to move supply from supply_start to supply_end."""
        p = self.params
        if self.curve_type == CurveType.linear:
            return calculate_linear_cost(supply_start, supply_end, p.base_price, p.slope)
        elif self.curve_type == CurveType.exponential:
            return calculate_exponential_cost(supply_start, supply_end, p.base_price, p.slope, p.step)
        raise self._unsupported()

    def tokens_for_payment(self, payment: int, current_supply: int) -> int:
        """Tokens a net payment buys starting at current_supply."""
        p = self.params
        if self.curve_type == CurveType.linear:
            tokens = calculate_linear_tokens_for_payment(payment, current_supply, p.base_price, p.slope)
        elif self.curve_type == CurveType.exponential:
            tokens = calculate_exponential_tokens_for_payment(payment, current_supply, p)
        else:
            raise self._unsupported()
        logger.debug(f"{self.curve_type.value} curve: payment={payment} at supply={current_supply} buys {tokens} tokens")
        return tokens


def validate_curve_params(curve_type: CurveType, params: CurveParameters) -> None:
    """Raises InvalidCurveParamsError if the parameters cannot price a campaign."""
    if params.base_price == 0 or params.max_supply == 0:
        raise InvalidCurveParamsError("base_price and max_supply must be positive")
    if curve_type == CurveType.exponential:
        if params.step == 0:
            raise InvalidCurveParamsError("Exponential curve step must be positive")
        if params.slope < to_fixed(1):
            raise InvalidCurveParamsError("Exponential multiplier must be at least 1.0 in Q32.32")
    elif curve_type == CurveType.custom:
        raise InvalidCurveParamsError("Custom curves are not implemented")


def price_impact_bps(pre_price: int, post_price: int) -> int:
    """Price movement caused by a trade, in basis points of the pre-trade price."""
    if pre_price == 0:
        return 0
    return (post_price - pre_price) * 10000 // pre_price

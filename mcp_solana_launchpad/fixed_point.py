"""
Q32.32 Fixed-Point Arithmetic

Values are unsigned 64-bit magnitudes whose low 32 bits are the fractional part. Products
and quotients are widened to 128 bits before being narrowed back, and any result that does
not fit in 64 bits raises ArithmeticOverflowError instead of wrapping.

pow_fixed only supports integer exponents: the fractional part of the exponent is
truncated, not interpolated. The exponential curve therefore prices in whole steps.
"""
from mcp_solana_launchpad.errors import ArithmeticOverflowError, DivisionByZeroError
from mcp_solana_launchpad.utils import U128_MAX, U64_MAX, ensure_u64

FRACTIONAL_BITS = 32
PRECISION = 1 << FRACTIONAL_BITS
MAX_Q32_32 = U64_MAX >> FRACTIONAL_BITS


def to_fixed(value: int) -> int:
    """Converts an integer to Q32.32."""
    return ensure_u64(value * PRECISION)


def from_fixed(fixed_value: int) -> int:
    """Converts a Q32.32 value back to an integer, truncating the fraction."""
    return fixed_value // PRECISION


def mul_fixed(a: int, b: int) -> int:
    product = a * b
    if product > U128_MAX:
        raise ArithmeticOverflowError("fixed-point product does not fit in 128 bits")
    return ensure_u64(product // PRECISION)


def div_fixed(a: int, b: int) -> int:
    if b == 0:
        raise DivisionByZeroError("fixed-point division by zero")
    return ensure_u64((a * PRECISION) // b)


def pow_fixed(base: int, exponent: int) -> int:
    """
    Raises a Q32.32 base to a Q32.32 exponent using binary exponentiation.

    Only the integer part of the exponent is used.
    """
    exp_remaining = from_fixed(exponent)
    if exp_remaining == 0:
        return to_fixed(1)
    if base == 0:
        return 0

    result = to_fixed(1)
    base_power = base
    while exp_remaining > 0:
        if exp_remaining & 1:
            result = mul_fixed(result, base_power)
        exp_remaining >>= 1
        if exp_remaining:
            base_power = mul_fixed(base_power, base_power)
    return result

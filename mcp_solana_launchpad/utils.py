"""Checked unsigned integer helpers shared by the curve and fee math."""
from mcp_solana_launchpad.errors import (
    ArithmeticOverflowError,
    ArithmeticUnderflowError,
    DivisionByZeroError,
)

U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1


def ensure_u64(value: int) -> int:
    """Returns value unchanged if it fits in a u64, otherwise raises ArithmeticOverflowError."""
    if value > U64_MAX:
        raise ArithmeticOverflowError(f"{value} does not fit in 64 bits")
    if value < 0:
        raise ArithmeticUnderflowError(f"{value} is negative")
    return value


def checked_add(a: int, b: int) -> int:
    return ensure_u64(a + b)


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise ArithmeticUnderflowError(f"{a} - {b} underflows")
    return a - b


def checked_mul(a: int, b: int) -> int:
    return ensure_u64(a * b)


def checked_div(a: int, b: int) -> int:
    if b == 0:
        raise DivisionByZeroError(f"{a} / 0")
    return a // b


def percent_of(amount: int, percent: int) -> int:
    """Floor of amount * percent / 100."""
    return checked_mul(amount, percent) // 100

import pytest

from mcp_solana_launchpad.errors import (
    ArithmeticOverflowError,
    ArithmeticUnderflowError,
    CurveArithmeticError,
    DivisionByZeroError,
)
from mcp_solana_launchpad.utils import (
    U64_MAX,
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
    percent_of,
)


def test_checked_add():
    assert checked_add(2, 3) == 5
    assert checked_add(U64_MAX - 1, 1) == U64_MAX
    with pytest.raises(ArithmeticOverflowError):
        checked_add(U64_MAX, 1)


def test_checked_sub():
    assert checked_sub(5, 3) == 2
    with pytest.raises(ArithmeticUnderflowError):
        checked_sub(3, 5)


def test_checked_mul():
    assert checked_mul(6, 7) == 42
    with pytest.raises(ArithmeticOverflowError):
        checked_mul(U64_MAX, 2)


def test_checked_div():
    assert checked_div(7, 2) == 3
    with pytest.raises(DivisionByZeroError):
        checked_div(7, 0)


def test_arithmetic_errors_share_a_base():
    with pytest.raises(CurveArithmeticError):
        checked_sub(0, 1)


def test_percent_of():
    assert percent_of(194000, 80) == 155200
    assert percent_of(99, 50) == 49

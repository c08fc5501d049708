import pytest

from mcp_solana_launchpad.collaborators import (
    InMemoryLiquidityVenue,
    InMemoryTokenMint,
    InMemoryValueVault,
    new_address,
)
from mcp_solana_launchpad.errors import (
    InsufficientSolAmountError,
    InsufficientTokenAmountError,
    LiquidityProvisionFailedError,
)
from mcp_solana_launchpad.schemas import LpShare, PoolConfig, PoolHandle


def test_token_mint_balances():
    mint = InMemoryTokenMint(new_address())
    alice, bob = new_address(), new_address()
    mint.mint_to(alice, 100)
    mint.transfer(alice, bob, 30)
    mint.burn(bob, 10)
    assert mint.balance_of(alice) == 70
    assert mint.balance_of(bob) == 20
    assert mint.supply == 90


def test_token_mint_rejects_overdraw():
    mint = InMemoryTokenMint(new_address())
    alice = new_address()
    mint.mint_to(alice, 5)
    with pytest.raises(InsufficientTokenAmountError):
        mint.burn(alice, 6)
    with pytest.raises(InsufficientTokenAmountError):
        mint.transfer(alice, new_address(), 6)
    assert mint.balance_of(alice) == 5


def test_value_vault():
    vault = InMemoryValueVault(new_address())
    recipient = new_address()
    vault.deposit(1000)
    vault.withdraw(400, recipient)
    assert vault.balance() == 600
    assert vault.paid_out[recipient] == 400
    with pytest.raises(InsufficientSolAmountError):
        vault.withdraw(601, recipient)
    assert vault.balance() == 600


def test_venue_pool_lifecycle():
    venue = InMemoryLiquidityVenue()
    pool = venue.create_pool(PoolConfig(), new_address())
    assert venue.add_liquidity(pool, 400, 900) == 600

    holder = new_address()
    venue.distribute(pool, [LpShare(recipient=holder, amount=600)])
    assert venue.lp_balances[pool.address][holder] == 600


def test_venue_rejects_over_distribution():
    venue = InMemoryLiquidityVenue()
    pool = venue.create_pool(PoolConfig(), new_address())
    venue.add_liquidity(pool, 100, 100)
    with pytest.raises(LiquidityProvisionFailedError):
        venue.distribute(pool, [LpShare(recipient=new_address(), amount=101)])


def test_venue_unknown_pool():
    venue = InMemoryLiquidityVenue()
    pool = PoolHandle(address=new_address(), lp_mint=new_address())
    with pytest.raises(LiquidityProvisionFailedError):
        venue.add_liquidity(pool, 1, 1)

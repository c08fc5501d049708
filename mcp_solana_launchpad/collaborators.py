"""
External Collaborator Interfaces

The launchpad never moves tokens or SOL itself. Minting, burning, custody of payments and
pool creation are delegated to collaborators behind the narrow protocols below. Each call is
expected to be atomic on the collaborator's side: it either completes or raises with no
effect.

The in-memory implementations are used by the MCP server and the tests. They keep balances
in dictionaries and are safe to share between campaigns.

LP token custody: the venue mints LP tokens directly to each recipient in distribute().
The launchpad never holds an LP balance it has to forward.
"""
import math
import threading
from typing import Dict, List, Protocol

from solders.keypair import Keypair

from mcp_solana_launchpad.errors import (
    InsufficientSolAmountError,
    InsufficientTokenAmountError,
    LiquidityProvisionFailedError,
)
from mcp_solana_launchpad.schemas import LpShare, PoolConfig, PoolHandle
from mcp.server.fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)


class TokenMinter(Protocol):
    def mint_to(self, recipient: str, amount: int) -> None: ...

    def balance_of(self, owner: str) -> int: ...


class TokenBurner(Protocol):
    def burn(self, owner: str, amount: int) -> None: ...


class TokenTransferrer(Protocol):
    def transfer(self, source: str, destination: str, amount: int) -> None: ...


class ValueVault(Protocol):
    def deposit(self, amount: int) -> None: ...

    def withdraw(self, amount: int, recipient: str) -> None: ...

    def balance(self) -> int: ...


class LiquidityVenue(Protocol):
    def create_pool(self, config: PoolConfig, token_mint: str) -> PoolHandle: ...

    def add_liquidity(self, pool: PoolHandle, sol_amount: int, token_amount: int) -> int: ...

    def distribute(self, pool: PoolHandle, shares: List[LpShare]) -> None: ...


def new_address() -> str:
    return str(Keypair().pubkey())


class InMemoryTokenMint:
    """SPL-style mint with balances held in memory. The campaign is the mint authority."""

    def __init__(self, mint: str):
        self.mint = mint
        self.balances: Dict[str, int] = {}
        self.supply = 0
        self._lock = threading.Lock()

    def balance_of(self, owner: str) -> int:
        return self.balances.get(owner, 0)

    def mint_to(self, recipient: str, amount: int) -> None:
        with self._lock:
            self.balances[recipient] = self.balances.get(recipient, 0) + amount
            self.supply += amount
        logger.debug(f"Minted {amount} of {self.mint} to {recipient}")

    def burn(self, owner: str, amount: int) -> None:
        with self._lock:
            held = self.balances.get(owner, 0)
            if held < amount:
                raise InsufficientTokenAmountError(f"{owner} holds {held}, cannot burn {amount}")
            self.balances[owner] = held - amount
            self.supply -= amount
        logger.debug(f"Burned {amount} of {self.mint} from {owner}")

    def transfer(self, source: str, destination: str, amount: int) -> None:
        with self._lock:
            held = self.balances.get(source, 0)
            if held < amount:
                raise InsufficientTokenAmountError(f"{source} holds {held}, cannot transfer {amount}")
            self.balances[source] = held - amount
            self.balances[destination] = self.balances.get(destination, 0) + amount


class InMemoryValueVault:
    """Lamport custody account. Withdrawals are recorded per recipient."""

    def __init__(self, address: str):
        self.address = address
        self.lamports = 0
        self.paid_out: Dict[str, int] = {}
        self._lock = threading.Lock()

    def balance(self) -> int:
        return self.lamports

    def deposit(self, amount: int) -> None:
        with self._lock:
            self.lamports += amount

    def withdraw(self, amount: int, recipient: str) -> None:
        with self._lock:
            if self.lamports < amount:
                raise InsufficientSolAmountError(
                    f"Vault {self.address} holds {self.lamports} lamports, cannot withdraw {amount}"
                )
            self.lamports -= amount
            self.paid_out[recipient] = self.paid_out.get(recipient, 0) + amount


class InMemoryLiquidityVenue:
    """Pool venue that mints LP as the geometric mean of the deposited amounts."""

    def __init__(self):
        self.pools: Dict[str, dict] = {}
        self.lp_balances: Dict[str, Dict[str, int]] = {}
        self._lock = threading.Lock()

    def create_pool(self, config: PoolConfig, token_mint: str) -> PoolHandle:
        pool = PoolHandle(address=new_address(), lp_mint=new_address())
        with self._lock:
            self.pools[pool.address] = {
                "config": config,
                "token_mint": token_mint,
                "sol_reserve": 0,
                "token_reserve": 0,
                "lp_supply": 0,
            }
            self.lp_balances[pool.address] = {}
        logger.info(f"Created pool {pool.address} for mint {token_mint} (bin_step={config.bin_step})")
        return pool

    def add_liquidity(self, pool: PoolHandle, sol_amount: int, token_amount: int) -> int:
        with self._lock:
            state = self.pools.get(pool.address)
            if state is None:
                raise LiquidityProvisionFailedError(f"Unknown pool {pool.address}")
            lp_amount = math.isqrt(sol_amount * token_amount)
            state["sol_reserve"] += sol_amount
            state["token_reserve"] += token_amount
            state["lp_supply"] += lp_amount
        return lp_amount

    def distribute(self, pool: PoolHandle, shares: List[LpShare]) -> None:
        with self._lock:
            state = self.pools.get(pool.address)
            if state is None:
                raise LiquidityProvisionFailedError(f"Unknown pool {pool.address}")
            total = sum(share.amount for share in shares)
            if total > state["lp_supply"]:
                raise LiquidityProvisionFailedError(
                    f"Cannot distribute {total} LP tokens, pool minted {state['lp_supply']}"
                )
            balances = self.lp_balances[pool.address]
            for share in shares:
                balances[share.recipient] = balances.get(share.recipient, 0) + share.amount

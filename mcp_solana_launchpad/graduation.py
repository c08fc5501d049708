"""
Graduation Orchestrator

Hands a campaign's accumulated liquidity to the external liquidity venue once its
graduation criteria are met.

Graduation Process:
1. Check the campaign is active and every present graduation criterion holds
2. Allocate liquidity: a fixed share of the SOL reserves and of the pre-minted reserved
   tokens; the remaining reserved tokens stay in custody
3. Create the pool through the venue
4. Move the allocated SOL and tokens into the pool, then add liquidity
5. Split the LP tokens the venue reports (creator / platform / retained) and have the venue
   mint them to the recipients directly; the retained share goes to the campaign's token vault
6. Commit: status, timestamp, pool handle, reduced reserves

If anything fails after value has moved, the SOL and tokens are returned to custody and a
VenueError is raised. The campaign stays active and graduation can be retried.
"""
from mcp_solana_launchpad import config
from mcp_solana_launchpad.collaborators import LiquidityVenue, TokenTransferrer, ValueVault
from mcp_solana_launchpad.errors import (
    LiquidityProvisionFailedError,
    PoolCreationFailedError,
    VenueError,
)
from mcp_solana_launchpad.lifecycle import ensure_can_graduate, graduate
from mcp_solana_launchpad.schemas import (
    CampaignState,
    GraduationReceipt,
    LiquidityAllocation,
    LpDistribution,
    LpShare,
    PlatformConfig,
    PoolConfig,
)
from mcp_solana_launchpad.utils import checked_sub, percent_of
from mcp.server.fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)


def compute_liquidity_allocation(campaign: CampaignState) -> LiquidityAllocation:
    sol_amount = percent_of(campaign.ledger.sol_reserves, config.LIQUIDITY_SOL_PERCENT)
    token_amount = percent_of(campaign.reserved_token_balance, config.LIQUIDITY_TOKEN_PERCENT)
    return LiquidityAllocation(
        sol_amount=sol_amount,
        token_amount=token_amount,
        tokens_remaining=campaign.reserved_token_balance - token_amount,
    )


def compute_lp_distribution(lp_amount: int, creator: str, platform: str, retained: str) -> LpDistribution:
    """Integer split of the LP amount. Rounding dust goes to the retained share."""
    creator_share = percent_of(lp_amount, config.LP_CREATOR_PERCENT)
    platform_share = percent_of(lp_amount, config.LP_PLATFORM_PERCENT)
    return LpDistribution(
        lp_amount=lp_amount,
        creator=LpShare(recipient=creator, amount=creator_share),
        platform=LpShare(recipient=platform, amount=platform_share),
        retained=LpShare(recipient=retained, amount=lp_amount - creator_share - platform_share),
    )


class GraduationOrchestrator:
    def __init__(self, venue: LiquidityVenue):
        self.venue = venue

    def graduate(
        self,
        campaign: CampaignState,
        platform: PlatformConfig,
        pool_config: PoolConfig,
        vault: ValueVault,
        tokens: TokenTransferrer,
        now: int,
    ) -> GraduationReceipt:
        ensure_can_graduate(campaign, now)
        allocation = compute_liquidity_allocation(campaign)
        logger.debug(f"Liquidity allocation for {campaign.campaign_id}: {allocation.model_dump()}")

        try:
            pool = self.venue.create_pool(pool_config, campaign.campaign_id)
        except VenueError:
            raise
        except Exception as e:
            logger.error(f"Pool creation failed for {campaign.campaign_id}: {e}")
            raise PoolCreationFailedError(f"Pool creation failed: {e}") from e

        sol_moved = False
        tokens_moved = False
        try:
            vault.withdraw(allocation.sol_amount, pool.address)
            sol_moved = True
            tokens.transfer(campaign.token_vault, pool.address, allocation.token_amount)
            tokens_moved = True
            lp_amount = self.venue.add_liquidity(pool, allocation.sol_amount, allocation.token_amount)
            distribution = compute_lp_distribution(
                lp_amount, campaign.creator, platform.authority, campaign.token_vault
            )
            self.venue.distribute(pool, distribution.shares())
        except Exception as e:
            logger.error(f"Liquidity provision failed for {campaign.campaign_id}, returning funds to custody: {e}")
            if tokens_moved:
                tokens.transfer(pool.address, campaign.token_vault, allocation.token_amount)
            if sol_moved:
                vault.deposit(allocation.sol_amount)
            if isinstance(e, VenueError):
                raise
            raise LiquidityProvisionFailedError(f"Liquidity provision failed: {e}") from e

        # Criteria are judged on pre-withdrawal reserves
        graduate(campaign, now)
        ledger = campaign.ledger
        ledger.sol_reserves = checked_sub(ledger.sol_reserves, allocation.sol_amount)
        campaign.reserved_token_balance = allocation.tokens_remaining
        campaign.pool = pool

        logger.info(f"Campaign {campaign.campaign_id} graduated into pool {pool.address}: "
                    f"sol={allocation.sol_amount}, tokens={allocation.token_amount}, "
                    f"lp={distribution.lp_amount} (creator={distribution.creator.amount}, "
                    f"platform={distribution.platform.amount}, retained={distribution.retained.amount})")

        return GraduationReceipt(
            campaign_id=campaign.campaign_id,
            pool=pool,
            allocation=allocation,
            distribution=distribution,
            sol_collected=ledger.sol_reserves + allocation.sol_amount,
            tokens_sold=ledger.supply_sold,
            graduated_at=now,
        )

"""
Campaign Lifecycle State Machine

States:
- active: Initial state, trading on the curve is open
- paused: Trading suspended by the platform authority, reversible
- graduated: Terminal, liquidity has moved to an external pool

Transitions:
- toggle_pause(): active <-> paused, rejected once graduated
- graduate(): active -> graduated, only when every present graduation criterion holds

Graduation criteria use AND semantics over the thresholds that are present; an absent
threshold never blocks graduation. custom_logic is carried but not evaluated.
"""
from mcp_solana_launchpad.errors import (
    GraduationCriteriaNotMetError,
    LaunchpadAlreadyGraduatedError,
    LaunchpadNotActiveError,
    PlatformPausedError,
)
from mcp_solana_launchpad.schemas import (
    BondingCurveState,
    CampaignState,
    CampaignStatus,
    GraduationCriteria,
    GraduationProgress,
    PlatformConfig,
)
from mcp.server.fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)


def ensure_active(campaign: CampaignState) -> None:
    if campaign.status == CampaignStatus.graduated:
        raise LaunchpadAlreadyGraduatedError(f"Campaign {campaign.campaign_id} has already graduated")
    if campaign.status != CampaignStatus.active:
        raise LaunchpadNotActiveError(f"Campaign {campaign.campaign_id} is {campaign.status.value}")


def ensure_trading_allowed(campaign: CampaignState, platform: PlatformConfig) -> None:
    """Platform kill switch first, then the campaign's own status."""
    if platform.paused:
        raise PlatformPausedError("Platform is currently paused")
    ensure_active(campaign)


def toggle_pause(campaign: CampaignState) -> CampaignStatus:
    if campaign.status == CampaignStatus.active:
        campaign.status = CampaignStatus.paused
        logger.info(f"Campaign paused: {campaign.campaign_id}")
    elif campaign.status == CampaignStatus.paused:
        campaign.status = CampaignStatus.active
        logger.info(f"Campaign unpaused: {campaign.campaign_id}")
    else:
        raise LaunchpadAlreadyGraduatedError(f"Campaign {campaign.campaign_id} has already graduated")
    return campaign.status


def evaluate_graduation(ledger: BondingCurveState, criteria: GraduationCriteria, now: int) -> bool:
    if criteria.min_sol_raised is not None and ledger.sol_reserves < criteria.min_sol_raised:
        return False
    if criteria.min_supply_sold is not None and ledger.supply_sold < criteria.min_supply_sold:
        return False
    if criteria.time_limit is not None and now < criteria.time_limit:
        return False
    return True


def ensure_can_graduate(campaign: CampaignState, now: int) -> None:
    ensure_active(campaign)
    if not evaluate_graduation(campaign.ledger, campaign.graduation_criteria, now):
        raise GraduationCriteriaNotMetError(f"Graduation criteria not met for campaign {campaign.campaign_id}")


def graduate(campaign: CampaignState, now: int) -> None:
    """Moves the campaign to graduated. Irreversible."""
    ensure_can_graduate(campaign, now)
    campaign.status = CampaignStatus.graduated
    campaign.graduated_at = now
    logger.info(f"Campaign graduated: {campaign.campaign_id} at {now}")


def _percent(value: int, target: int) -> float:
    if target == 0:
        return 100.0
    return min(100.0, value * 100 / target)


def graduation_progress(campaign: CampaignState, now: int) -> GraduationProgress:
    """Per-criterion progress towards graduation, for display. Absent criteria report 100."""
    criteria = campaign.graduation_criteria
    ledger = campaign.ledger
    progress = GraduationProgress(
        can_graduate=campaign.status == CampaignStatus.active
        and evaluate_graduation(ledger, criteria, now)
    )
    if criteria.min_sol_raised is not None:
        progress.sol_progress = _percent(ledger.sol_reserves, criteria.min_sol_raised)
    if criteria.min_supply_sold is not None:
        progress.supply_progress = _percent(ledger.supply_sold, criteria.min_supply_sold)
    if criteria.time_limit is not None and now < criteria.time_limit:
        window = criteria.time_limit - campaign.created_at
        progress.time_progress = _percent(max(now - campaign.created_at, 0), window)
    return progress

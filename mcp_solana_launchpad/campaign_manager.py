"""
Campaign Store

Keeps every campaign, its runtime collaborators and its lock in memory, keyed by the
campaign id (the token mint address). Ownership of a ledger is established by this store:
one record holds exactly one campaign and its curve state.

Each record carries its own re-entrant lock. Buy, sell, pause and graduation on one
campaign serialize on that lock; different campaigns never contend. The store-wide lock
only guards the dictionaries themselves.

Custody addresses (SOL vault, token vault) are derived deterministically from the campaign
id and the launchpad program id.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from solders.pubkey import Pubkey

from mcp_solana_launchpad.collaborators import InMemoryTokenMint, InMemoryValueVault
from mcp_solana_launchpad.config import LAUNCHPAD_PROGRAM_ID
from mcp_solana_launchpad.errors import CampaignExistsError, CampaignNotFoundError
from mcp_solana_launchpad.ledger import BondingCurveLedger
from mcp_solana_launchpad.schemas import CampaignState, CreatorProfile
from mcp.server.fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)


def find_custody_address(seed: bytes, campaign_id: str, program_id: Pubkey = LAUNCHPAD_PROGRAM_ID) -> str:
    address, _bump = Pubkey.find_program_address([seed, bytes(Pubkey.from_string(campaign_id))], program_id)
    return str(address)


def find_sol_vault_address(campaign_id: str) -> str:
    return find_custody_address(b"sol_vault", campaign_id)


def find_token_vault_address(campaign_id: str) -> str:
    return find_custody_address(b"token_vault", campaign_id)


class CampaignRecord:
    def __init__(self, campaign: CampaignState, token_mint: InMemoryTokenMint, vault: InMemoryValueVault,
                 ledger: BondingCurveLedger):
        self.campaign = campaign
        self.token_mint = token_mint
        self.vault = vault
        self.ledger = ledger
        self.lock = threading.RLock()


class CampaignStore:
    def __init__(self):
        self.campaigns: Dict[str, CampaignRecord] = {}
        self.creator_profiles: Dict[str, CreatorProfile] = {}
        self._lock = threading.Lock()

    def add_campaign(self, record: CampaignRecord) -> None:
        campaign_id = record.campaign.campaign_id
        with self._lock:
            if campaign_id in self.campaigns:
                raise CampaignExistsError(f"Campaign {campaign_id} already exists")
            self.campaigns[campaign_id] = record
        logger.info(f"Registered campaign {campaign_id} ({record.campaign.symbol})")

    def get_record(self, campaign_id: str) -> CampaignRecord:
        record = self.campaigns.get(campaign_id)
        if record is None:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")
        return record

    def get_campaign(self, campaign_id: str) -> Optional[CampaignState]:
        """Retrieves a campaign by its id, or None."""
        record = self.campaigns.get(campaign_id)
        return record.campaign if record else None

    def list_campaigns(self) -> List[CampaignState]:
        return [record.campaign for record in self.campaigns.values()]

    @contextmanager
    def locked(self, campaign_id: str) -> Iterator[CampaignRecord]:
        """Holds the campaign's lock for the duration of the block."""
        record = self.get_record(campaign_id)
        with record.lock:
            yield record

    # --- Creator Profiles ---

    def get_creator_profile(self, creator: str) -> Optional[CreatorProfile]:
        return self.creator_profiles.get(creator)

    def record_launch(self, creator: str, now: int) -> CreatorProfile:
        with self._lock:
            profile = self.creator_profiles.get(creator)
            if profile is None:
                profile = CreatorProfile(creator=creator, created_at=now)
                self.creator_profiles[creator] = profile
            profile.launches_count += 1
        return profile

    def record_graduation(self, creator: str) -> None:
        with self._lock:
            profile = self.creator_profiles.get(creator)
            if profile is not None:
                profile.successful_launches += 1

    def record_volume(self, creator: str, amount: int) -> None:
        with self._lock:
            profile = self.creator_profiles.get(creator)
            if profile is not None:
                profile.total_volume += amount

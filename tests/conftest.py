import pytest

from mcp_solana_launchpad.collaborators import new_address
from mcp_solana_launchpad.launchpad import Launchpad
from mcp_solana_launchpad.schemas import (
    CreateCampaignParams,
    CurveParameters,
    CurveType,
    GraduationCriteria,
)

START_TIME = 1_700_000_000


class FakeClock:
    def __init__(self, now: int = START_TIME):
        self.now = now

    def __call__(self) -> int:
        return self.now


def linear_campaign_params(**overrides) -> CreateCampaignParams:
    values = dict(
        name="Test Token",
        symbol="TEST",
        uri="https://example.com/metadata.json",
        decimals=9,
        total_supply=1_000_000_000,
        curve_type=CurveType.linear,
        curve_params=CurveParameters(base_price=1000, slope=10, step=1, max_supply=1_000_000),
        creator_fee_bps=200,
        graduation_criteria=GraduationCriteria(min_sol_raised=150_000),
    )
    values.update(overrides)
    return CreateCampaignParams(**values)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def authority():
    return new_address()


@pytest.fixture
def creator():
    return new_address()


@pytest.fixture
def trader():
    return new_address()


@pytest.fixture
def launchpad(clock, authority):
    pad = Launchpad(clock=clock)
    pad.initialize_platform(authority, 100)
    return pad


@pytest.fixture
def campaign(launchpad, creator):
    return launchpad.create_campaign(creator, linear_campaign_params())


@pytest.fixture
def campaign_params():
    """Factory for linear campaign parameters with keyword overrides."""
    return linear_campaign_params

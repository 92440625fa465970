import pytest

from councildata.core.freshness import FreshnessPolicy
from tests.helpers import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def policy(clock) -> FreshnessPolicy:
    return FreshnessPolicy(clock=clock)

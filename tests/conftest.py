import pytest

from bin_monitor.core.engine import BinMonitorEngine
from bin_monitor.core.registry import BinRegistry
from tests.helpers import FakeClock, make_bins


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry() -> BinRegistry:
    return BinRegistry(make_bins(0, 0, 0, 0))


@pytest.fixture
def engine(registry: BinRegistry, clock: FakeClock) -> BinMonitorEngine:
    return BinMonitorEngine(registry, clock=clock)

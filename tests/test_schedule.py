import math

from bin_monitor.core.registry import BinRegistry
from bin_monitor.core.schedule import ScheduleConfig
from tests.helpers import make_bins


def test_no_schedule_by_default() -> None:
    schedule = ScheduleConfig(BinRegistry(make_bins(0, 0, 0, 0)))
    assert schedule.has_active_schedule() is False
    assert schedule.intervals() == {}


def test_schedule_applies_to_all_bins() -> None:
    schedule = ScheduleConfig(BinRegistry(make_bins(0, 0, 0, 0)))
    assert schedule.set_schedule_for_all(24) == 24
    assert schedule.has_active_schedule() is True
    assert schedule.intervals() == {1: 24, 2: 24, 3: 24, 4: 24}


def test_schedule_clamps_hours() -> None:
    schedule = ScheduleConfig(BinRegistry(make_bins(0, 0, 0, 0)))
    assert schedule.set_schedule_for_all(500) == 168
    assert schedule.set_schedule_for_all(0) == 1
    assert schedule.interval_for(2) == 1


def test_clear_removes_schedule() -> None:
    schedule = ScheduleConfig(BinRegistry(make_bins(0, 0, 0, 0)))
    schedule.set_schedule_for_all(12)
    schedule.clear()
    assert schedule.has_active_schedule() is False


def test_schedule_clamps_non_finite_hours() -> None:
    schedule = ScheduleConfig(BinRegistry(make_bins(0, 0, 0, 0)))
    assert schedule.set_schedule_for_all(math.inf) == 168
    assert schedule.set_schedule_for_all(-math.inf) == 1
    assert schedule.set_schedule_for_all(math.nan) == 1

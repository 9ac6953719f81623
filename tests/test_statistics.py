import pytest

from bin_monitor.analytics.statistics import (
    attention_summary,
    capacity_summary,
    history_statistics,
    next_scheduled_empty,
)
from bin_monitor.core.ledger import HistoryLedger
from bin_monitor.core.registry import BinRegistry
from bin_monitor.core.state_store import BinStateStore
from tests.helpers import FakeClock, make_bins


def _states(*levels: int):
    return BinStateStore(BinRegistry(make_bins(*levels))).read_all()


def test_attention_counts() -> None:
    assert attention_summary(_states(95, 80, 76, 10)) == {"critical": 1, "warning": 2, "total": 3}
    assert attention_summary(_states(0, 0, 0, 0))["total"] == 0


def test_capacity_used() -> None:
    summary = capacity_summary(_states(45, 78, 92, 23))
    assert summary["total_liters"] == 20.0
    assert summary["used_liters"] == pytest.approx(11.9)
    assert summary["percent_used"] == pytest.approx(59.5)


def test_next_empty_prefers_critical() -> None:
    result = next_scheduled_empty(_states(91, 98, 80, 0))
    assert result == {"timeframe": "15min", "message": "Organic critical", "status": "critical"}


def test_next_empty_warning_tie_goes_to_later_bin() -> None:
    result = next_scheduled_empty(_states(80, 10, 80, 0))
    assert result == {"timeframe": "2hrs", "message": "Paper needs attention", "status": "warning"}


def test_next_empty_all_normal() -> None:
    assert next_scheduled_empty(_states(10, 20, 30, 40))["timeframe"] == "None"


def test_history_statistics_per_bin() -> None:
    clock = FakeClock()
    ledger = HistoryLedger(clock=clock)
    ledger.append(1, "Recyclables", "Emptied", 80)
    clock.advance(hours=1)
    ledger.append(1, "Recyclables", "Emptied", 60)
    ledger.append(2, "Organic", "Collected", 100)

    stats = history_statistics(ledger.query("24h"))
    assert [row["bin_id"] for row in stats] == [1, 2]
    assert stats[0]["events"] == 2
    assert stats[0]["average_fill_at_event"] == 70.0
    assert stats[0]["total_volume_liters"] == 7.0
    assert stats[1]["max_fill_at_event"] == 100


def test_history_statistics_empty() -> None:
    assert history_statistics([]) == []

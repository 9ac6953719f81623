from datetime import UTC, datetime, timedelta

from bin_monitor.core.ledger import HistoryLedger, window_start
from tests.helpers import FakeClock


def test_append_snapshots_volume_and_ids() -> None:
    ledger = HistoryLedger(clock=FakeClock())
    first = ledger.append(1, "Recyclables", "Emptied", 73)
    second = ledger.append(2, "Organic", "Collected", 40, capacity_liters=10.0)
    assert first.volume_at_event == 3.65
    assert second.volume_at_event == 4.0
    assert second.id > first.id
    assert len(ledger) == 2


def test_query_is_most_recent_first() -> None:
    clock = FakeClock()
    ledger = HistoryLedger(clock=clock)
    x = ledger.append(1, "Recyclables", "Emptied", 50)
    clock.advance(minutes=5)
    y = ledger.append(2, "Organic", "Emptied", 60)
    clock.advance(minutes=5)
    z = ledger.append(1, "Recyclables", "Emptied", 20)

    result = ledger.query("24h")
    assert [entry.id for entry in result] == [z.id, y.id, x.id]
    for newer, older in zip(result, result[1:]):
        assert newer.timestamp > older.timestamp


def test_query_orders_by_timestamp_not_insertion() -> None:
    clock = FakeClock()
    ledger = HistoryLedger(clock=clock)
    late = ledger.append(1, "Recyclables", "Emptied", 50, timestamp=clock.now - timedelta(hours=1))
    early = ledger.append(2, "Organic", "Emptied", 60, timestamp=clock.now - timedelta(hours=3))
    recent = ledger.append(3, "Paper", "Emptied", 70)
    assert [entry.id for entry in ledger.query("24h")] == [recent.id, late.id, early.id]


def test_query_windows() -> None:
    clock = FakeClock()
    ledger = HistoryLedger(clock=clock)
    now = clock.now
    ledger.append(1, "Recyclables", "Emptied", 10, timestamp=now - timedelta(hours=2))
    ledger.append(1, "Recyclables", "Emptied", 20, timestamp=now - timedelta(hours=25))
    ledger.append(1, "Recyclables", "Emptied", 30, timestamp=now - timedelta(days=10))
    ledger.append(1, "Recyclables", "Emptied", 40, timestamp=now - timedelta(days=20))
    ledger.append(1, "Recyclables", "Emptied", 50, timestamp=now - timedelta(days=40))

    assert [entry.fill_level_at_event for entry in ledger.query("24h")] == [10]
    assert [entry.fill_level_at_event for entry in ledger.query("1w")] == [10, 20]
    assert [entry.fill_level_at_event for entry in ledger.query("15d")] == [10, 20, 30]
    assert [entry.fill_level_at_event for entry in ledger.query("1m")] == [10, 20, 30, 40]


def test_unknown_window_falls_back_to_24h() -> None:
    clock = FakeClock()
    ledger = HistoryLedger(clock=clock)
    ledger.append(1, "Recyclables", "Emptied", 10, timestamp=clock.now - timedelta(hours=30))
    assert ledger.query("bogus") == []


def test_month_window_clamps_day() -> None:
    assert window_start("1m", datetime(2026, 3, 31, 12, tzinfo=UTC)) == datetime(2026, 2, 28, 12, tzinfo=UTC)
    assert window_start("1m", datetime(2026, 1, 15, tzinfo=UTC)) == datetime(2025, 12, 15, tzinfo=UTC)


def test_clear_keeps_id_sequence() -> None:
    ledger = HistoryLedger(clock=FakeClock())
    first = ledger.append(1, "Recyclables", "Emptied", 10)
    ledger.clear()
    second = ledger.append(1, "Recyclables", "Emptied", 10)
    assert len(ledger) == 1
    assert second.id > first.id

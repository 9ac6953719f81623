import asyncio

from bin_monitor.core.engine import BinMonitorEngine
from bin_monitor.sensors.collector import MockFillSource, ReadingCollector


class StepSource:
    def __init__(self, step: float) -> None:
        self.step = step

    def next_level(self, bin_id: int, current: int) -> float:
        return current + self.step * bin_id


def test_collect_once_applies_readings(engine: BinMonitorEngine) -> None:
    collector = ReadingCollector(engine, StepSource(10))
    states = asyncio.run(collector.collect_once())
    assert [state.fill_level for state in states] == [10, 20, 30, 40]
    assert engine.query("1m") == []


def test_collect_once_clamps_runaway_source(engine: BinMonitorEngine) -> None:
    collector = ReadingCollector(engine, StepSource(60))
    asyncio.run(collector.collect_once())
    assert [state.fill_level for state in engine.read_all()] == [60, 100, 100, 100]


def test_collect_once_notifies_listener(engine: BinMonitorEngine) -> None:
    received = []

    async def listener(states) -> None:
        received.append([state.fill_level for state in states])

    collector = ReadingCollector(engine, StepSource(1), on_update=listener)
    asyncio.run(collector.collect_once())
    assert received == [[1, 2, 3, 4]]


def test_mock_source_stays_in_range() -> None:
    source = MockFillSource(max_step_percent=3, seed=7)
    level = 0
    for _ in range(200):
        level = max(0, min(100, round(source.next_level(1, level))))
        assert 0 <= level <= 100

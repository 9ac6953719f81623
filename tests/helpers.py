from __future__ import annotations

from datetime import UTC, datetime, timedelta

from bin_monitor.config import BinDefinition


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 10, 15, 30, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_bins(*levels: int) -> list[BinDefinition]:
    names = ["Recyclables", "Organic", "Paper", "General Waste"]
    return [
        BinDefinition(id=idx, name=names[(idx - 1) % len(names)], color="gray", initial_fill_level=level)
        for idx, level in enumerate(levels, start=1)
    ]

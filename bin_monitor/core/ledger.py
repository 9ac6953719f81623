from __future__ import annotations

import calendar
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Literal

from bin_monitor.core.state_store import calculate_volume

LOGGER = logging.getLogger(__name__)

HistoryAction = Literal["Emptied", "Collected"]
WindowTag = Literal["24h", "1w", "15d", "1m"]

WINDOWS: dict[str, timedelta | None] = {
    "24h": timedelta(hours=24),
    "1w": timedelta(days=7),
    "15d": timedelta(days=15),
    "1m": None,
}
DEFAULT_WINDOW = "24h"


def _one_month_before(moment: datetime) -> datetime:
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def window_start(window: str, now: datetime) -> datetime:
    if window not in WINDOWS:
        LOGGER.warning("Unknown history window %r, falling back to %s", window, DEFAULT_WINDOW)
        window = DEFAULT_WINDOW
    span = WINDOWS[window]
    if span is None:
        return _one_month_before(now)
    return now - span


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    id: int
    bin_id: int
    bin_name: str
    action: HistoryAction
    fill_level_at_event: int
    volume_at_event: float
    timestamp: datetime


class HistoryLedger:
    """Append-only log of emptying and collection events."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._entries: list[HistoryEntry] = []
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._entries)

    def append(
        self,
        bin_id: int,
        bin_name: str,
        action: HistoryAction,
        fill_level_at_event: int,
        *,
        capacity_liters: float = 5.0,
        timestamp: datetime | None = None,
    ) -> HistoryEntry:
        entry = HistoryEntry(
            id=next(self._ids),
            bin_id=bin_id,
            bin_name=bin_name,
            action=action,
            fill_level_at_event=fill_level_at_event,
            volume_at_event=calculate_volume(fill_level_at_event, capacity_liters),
            timestamp=timestamp or self._clock(),
        )
        self._entries.append(entry)
        return entry

    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def query(self, window: str = DEFAULT_WINDOW) -> list[HistoryEntry]:
        """Entries inside ``window``, most recent first."""
        cutoff = window_start(window, self._clock())
        selected = [entry for entry in self._entries if entry.timestamp >= cutoff]
        return sorted(selected, key=lambda entry: (entry.timestamp, entry.id), reverse=True)

    def clear(self) -> None:
        # Ids keep counting so cleared entries are never reissued.
        self._entries.clear()

from __future__ import annotations

import logging

from bin_monitor.config import ThresholdConfig
from bin_monitor.core.registry import BinRegistry
from bin_monitor.core.state_store import clamp

LOGGER = logging.getLogger(__name__)


class ScheduleConfig:
    """Collection reminder interval per bin, in hours.

    The map is keyed per bin, but the only write path applies one interval
    to every registered bin.
    """

    def __init__(self, registry: BinRegistry, thresholds: ThresholdConfig | None = None) -> None:
        self.registry = registry
        self.thresholds = thresholds or ThresholdConfig()
        self._intervals: dict[int, int] = {}

    def has_active_schedule(self) -> bool:
        return bool(self._intervals)

    def intervals(self) -> dict[int, int]:
        return dict(self._intervals)

    def interval_for(self, bin_id: int) -> int | None:
        self.registry.get(bin_id)
        return self._intervals.get(bin_id)

    def set_schedule_for_all(self, hours: float) -> int:
        value = clamp(hours, self.thresholds.schedule_min_hours, self.thresholds.schedule_max_hours)
        if value != hours:
            LOGGER.debug("Clamped schedule interval from %s to %s hours", hours, value)
        self._intervals = {bin_def.id: value for bin_def in self.registry}
        return value

    def clear(self) -> None:
        self._intervals.clear()

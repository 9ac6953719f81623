from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime

from bin_monitor.config import BinDefinition, ThresholdConfig
from bin_monitor.core.registry import BinRegistry

LOGGER = logging.getLogger(__name__)


def clamp(value: float, lower: int, upper: int) -> int:
    """Pin ``value`` to ``[lower, upper]`` and round it to an integer. NaN maps to ``lower``."""
    if math.isnan(value):
        return lower
    return int(round(max(lower, min(upper, value))))


def resolve_status(fill_level: int, *, warning_min: int = 75, critical_min: int = 90) -> str:
    if fill_level >= critical_min:
        return "critical"
    if fill_level >= warning_min:
        return "warning"
    return "normal"


def calculate_volume(fill_level: int, capacity_liters: float) -> float:
    return round((fill_level / 100) * capacity_liters, 2)


@dataclass(frozen=True, slots=True)
class BinState:
    bin: BinDefinition
    fill_level: int
    last_emptied_at: datetime | None
    warning_min: int = 75
    critical_min: int = 90

    @property
    def bin_id(self) -> int:
        return self.bin.id

    @property
    def name(self) -> str:
        return self.bin.name

    @property
    def status(self) -> str:
        # Always derived, never stored.
        return resolve_status(self.fill_level, warning_min=self.warning_min, critical_min=self.critical_min)

    @property
    def volume_liters(self) -> float:
        return calculate_volume(self.fill_level, self.bin.capacity_liters)


@dataclass(slots=True)
class _MutableState:
    fill_level: int = 0
    last_emptied_at: datetime | None = None


class BinStateStore:
    def __init__(self, registry: BinRegistry, thresholds: ThresholdConfig | None = None) -> None:
        self.registry = registry
        self.thresholds = thresholds or ThresholdConfig()
        self._states: dict[int, _MutableState] = {
            item.id: _MutableState(fill_level=clamp(item.initial_fill_level, 0, 100))
            for item in registry
        }

    def _snapshot(self, bin_def: BinDefinition) -> BinState:
        state = self._states[bin_def.id]
        return BinState(
            bin=bin_def,
            fill_level=state.fill_level,
            last_emptied_at=state.last_emptied_at,
            warning_min=self.thresholds.warning_min,
            critical_min=self.thresholds.critical_min,
        )

    def read(self, bin_id: int) -> BinState:
        return self._snapshot(self.registry.get(bin_id))

    def read_all(self) -> list[BinState]:
        return [self._snapshot(item) for item in self.registry]

    def apply_reading(self, bin_id: int, new_fill_level: float) -> BinState:
        bin_def = self.registry.get(bin_id)
        level = clamp(new_fill_level, 0, 100)
        if level != new_fill_level:
            LOGGER.debug("Normalized reading for bin %s from %s to %s", bin_id, new_fill_level, level)
        self._states[bin_id].fill_level = level
        return self._snapshot(bin_def)

    def empty_bin(self, bin_id: int, *, now: datetime) -> BinState:
        bin_def = self.registry.get(bin_id)
        state = self._states[bin_id]
        state.fill_level = 0
        state.last_emptied_at = now
        return self._snapshot(bin_def)

    def empty_all(self, *, now: datetime) -> list[BinState]:
        """Empty every bin holding waste and return the post-empty states of those bins."""
        emptied: list[BinState] = []
        for bin_def in self.registry:
            if self._states[bin_def.id].fill_level > 0:
                emptied.append(self.empty_bin(bin_def.id, now=now))
        return emptied

    def reset(self) -> None:
        for bin_id in self._states:
            self._states[bin_id] = _MutableState()

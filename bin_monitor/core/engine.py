from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal

from bin_monitor.config import AppConfig, ThresholdConfig
from bin_monitor.core.alerts import Alert, AlertAction, AlertConfig, AlertSetting
from bin_monitor.core.ledger import DEFAULT_WINDOW, HistoryAction, HistoryEntry, HistoryLedger
from bin_monitor.core.registry import BinRegistry
from bin_monitor.core.schedule import ScheduleConfig
from bin_monitor.core.state_store import BinState, BinStateStore

LOGGER = logging.getLogger(__name__)

Outcome = Literal[
    "emptied",
    "already_empty",
    "threshold_saved",
    "alerts_saved",
    "schedule_saved",
    "confirmation_required",
    "reset",
]


@dataclass(frozen=True, slots=True)
class CommandResult:
    action: str
    outcome: Outcome
    message: str
    entries: list[HistoryEntry] = field(default_factory=list)

    @property
    def applied(self) -> bool:
        return self.outcome not in {"already_empty", "confirmation_required"}


def _clock_text(moment: datetime) -> str:
    return moment.strftime("%I:%M %p")


class BinMonitorEngine:
    """Command surface over the bin state store, alert/schedule config and history ledger.

    Every public method runs under a single lock, so a reader sees either the
    state before a command or the state after it, with the ledger in step.
    """

    def __init__(
        self,
        registry: BinRegistry,
        *,
        thresholds: ThresholdConfig | None = None,
        reset_clears_history: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.registry = registry
        self.thresholds = thresholds or ThresholdConfig()
        self.reset_clears_history = reset_clears_history
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._lock = threading.RLock()

        self.store = BinStateStore(registry, self.thresholds)
        self.alerts = AlertConfig(registry, self.thresholds)
        self.schedule = ScheduleConfig(registry, self.thresholds)
        self.ledger = HistoryLedger(clock=self._clock)

    @classmethod
    def from_config(cls, config: AppConfig, *, clock: Callable[[], datetime] | None = None) -> BinMonitorEngine:
        return cls(
            BinRegistry(config.bins),
            thresholds=config.thresholds,
            reset_clears_history=config.history.reset_clears_history,
            clock=clock,
        )

    @contextmanager
    def consistent_read(self) -> Iterator[BinMonitorEngine]:
        """Hold the engine lock across several reads so they share one snapshot."""
        with self._lock:
            yield self

    # Queries

    def read_all(self) -> list[BinState]:
        with self._lock:
            return self.store.read_all()

    def read(self, bin_id: int) -> BinState:
        with self._lock:
            return self.store.read(bin_id)

    def query(self, window: str = DEFAULT_WINDOW) -> list[HistoryEntry]:
        with self._lock:
            return self.ledger.query(window)

    def is_alert_triggered(self, bin_id: int) -> bool:
        with self._lock:
            return self.alerts.is_alert_triggered(self.store.read(bin_id))

    def alert_action(self, bin_id: int) -> AlertAction:
        with self._lock:
            return self.alerts.alert_action(self.store.read(bin_id))

    def generate_alerts(self) -> list[Alert]:
        with self._lock:
            return self.alerts.generate_alerts(self.store.read_all())

    def alert_settings(self) -> dict[int, AlertSetting]:
        with self._lock:
            return self.alerts.snapshot()

    def has_active_schedule(self) -> bool:
        with self._lock:
            return self.schedule.has_active_schedule()

    def schedule_intervals(self) -> dict[int, int]:
        with self._lock:
            return self.schedule.intervals()

    # Commands

    def apply_reading(self, bin_id: int, fill_level: float) -> BinState:
        with self._lock:
            return self.store.apply_reading(bin_id, fill_level)

    def command_empty_bin(self, bin_id: int, *, action: HistoryAction = "Emptied") -> CommandResult:
        with self._lock:
            before = self.store.read(bin_id)
            if before.fill_level == 0:
                return CommandResult(
                    action="empty_bin",
                    outcome="already_empty",
                    message=f"{before.name} is already empty",
                )

            now = self._clock()
            self.store.empty_bin(bin_id, now=now)
            entry = self.ledger.append(
                before.bin_id,
                before.name,
                action,
                before.fill_level,
                capacity_liters=before.bin.capacity_liters,
                timestamp=now,
            )
            LOGGER.info("Bin %s (%s) %s at %d%%", bin_id, before.name, action.lower(), before.fill_level)
            return CommandResult(
                action="empty_bin",
                outcome="emptied",
                message=f"{before.name} emptied at {_clock_text(now)} at {before.fill_level}% capacity",
                entries=[entry],
            )

    def command_empty_all(self, *, action: HistoryAction = "Emptied") -> CommandResult:
        with self._lock:
            with_waste = [state for state in self.store.read_all() if state.fill_level > 0]
            if not with_waste:
                return CommandResult(
                    action="empty_all",
                    outcome="already_empty",
                    message="All bins are already empty",
                )

            now = self._clock()
            self.store.empty_all(now=now)
            entries = [
                self.ledger.append(
                    state.bin_id,
                    state.name,
                    action,
                    state.fill_level,
                    capacity_liters=state.bin.capacity_liters,
                    timestamp=now,
                )
                for state in with_waste
            ]
            names = ", ".join(state.name for state in with_waste)
            LOGGER.info("Emptied %d bins: %s", len(entries), names)
            return CommandResult(
                action="empty_all",
                outcome="emptied",
                message=f"All bins ({names}) emptied at {_clock_text(now)}",
                entries=entries,
            )

    def set_threshold(self, bin_id: int, percentage: float) -> CommandResult:
        with self._lock:
            setting = self.alerts.set_threshold(bin_id, percentage)
            name = self.registry.get(bin_id).name
            return CommandResult(
                action="set_threshold",
                outcome="threshold_saved",
                message=f"Alert for {name} set at {setting.threshold}%",
            )

    def set_alert_enabled(self, bin_id: int, enabled: bool) -> CommandResult:
        with self._lock:
            self.alerts.set_alert_enabled(bin_id, enabled)
            return CommandResult(action="set_alert", outcome="alerts_saved", message="Alert settings updated successfully")

    def set_all_alerts_enabled(self, enabled: bool) -> CommandResult:
        with self._lock:
            self.alerts.set_all_alerts_enabled(enabled)
            return CommandResult(action="set_alert", outcome="alerts_saved", message="Alert settings updated successfully")

    def apply_alert_settings(self, settings: Mapping[int, bool]) -> CommandResult:
        with self._lock:
            self.alerts.apply_alert_settings(settings)
            return CommandResult(action="set_alert", outcome="alerts_saved", message="Alert settings updated successfully")

    def set_schedule_for_all(self, hours: float, *, confirm_overwrite: bool = False) -> CommandResult:
        with self._lock:
            if self.schedule.has_active_schedule() and not confirm_overwrite:
                return CommandResult(
                    action="set_schedule",
                    outcome="confirmation_required",
                    message="A collection schedule is already active. Confirm to replace it.",
                )
            value = self.schedule.set_schedule_for_all(hours)
            LOGGER.info("Collection reminder set to every %d hours for %d bins", value, len(self.registry))
            return CommandResult(
                action="set_schedule",
                outcome="schedule_saved",
                message=f"You will receive a notification every {value} hours to empty your bins.",
            )

    def command_reset(self, *, clear_history: bool | None = None) -> CommandResult:
        with self._lock:
            wipe_history = self.reset_clears_history if clear_history is None else clear_history
            self.store.reset()
            self.alerts.clear()
            self.schedule.clear()
            if wipe_history:
                self.ledger.clear()
            LOGGER.info("Bin data reset (history %s)", "cleared" if wipe_history else "retained")
            return CommandResult(action="reset", outcome="reset", message="Bin data has been reset")

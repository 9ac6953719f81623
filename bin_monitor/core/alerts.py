from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Literal

from bin_monitor.config import ThresholdConfig
from bin_monitor.core.registry import BinRegistry
from bin_monitor.core.state_store import BinState, clamp

LOGGER = logging.getLogger(__name__)

AlertLevel = Literal["high", "medium"]
AlertAction = Literal["empty_now", "alert_set", "set_alert"]


@dataclass(frozen=True, slots=True)
class AlertSetting:
    threshold: int | None = None
    enabled: bool = False


@dataclass(frozen=True, slots=True)
class Alert:
    bin_id: int
    level: AlertLevel
    message: str


class AlertConfig:
    """Per-bin custom alert thresholds, kept apart from the fixed status bands."""

    def __init__(self, registry: BinRegistry, thresholds: ThresholdConfig | None = None) -> None:
        self.registry = registry
        self.thresholds = thresholds or ThresholdConfig()
        self._settings: dict[int, AlertSetting] = {}

    def get(self, bin_id: int) -> AlertSetting | None:
        self.registry.get(bin_id)
        return self._settings.get(bin_id)

    def suggested_threshold(self, bin_id: int) -> int:
        """Saved threshold for the bin, else the configured default for a new alert."""
        setting = self.get(bin_id)
        if setting is not None and setting.threshold is not None:
            return setting.threshold
        return self.thresholds.default_custom

    def snapshot(self) -> dict[int, AlertSetting]:
        return dict(self._settings)

    def set_threshold(self, bin_id: int, percentage: float) -> AlertSetting:
        self.registry.get(bin_id)
        value = clamp(percentage, self.thresholds.custom_min, self.thresholds.custom_max)
        if value != percentage:
            LOGGER.debug("Clamped threshold for bin %s from %s to %s", bin_id, percentage, value)
        # Saving a threshold always switches alerting on for that bin.
        setting = AlertSetting(threshold=value, enabled=True)
        self._settings[bin_id] = setting
        return setting

    def set_alert_enabled(self, bin_id: int, enabled: bool) -> AlertSetting:
        self.registry.get(bin_id)
        current = self._settings.get(bin_id, AlertSetting())
        setting = AlertSetting(threshold=current.threshold, enabled=bool(enabled))
        self._settings[bin_id] = setting
        return setting

    def set_all_alerts_enabled(self, enabled: bool) -> None:
        for bin_def in self.registry:
            self.set_alert_enabled(bin_def.id, enabled)

    def apply_alert_settings(self, settings: Mapping[int, bool]) -> None:
        # Validate the whole batch before writing any of it.
        for bin_id in settings:
            self.registry.get(bin_id)
        for bin_id, enabled in settings.items():
            self.set_alert_enabled(bin_id, enabled)

    def clear(self) -> None:
        self._settings.clear()

    def is_alert_triggered(self, state: BinState) -> bool:
        if state.fill_level >= self.thresholds.critical_min:
            return True
        setting = self._settings.get(state.bin_id)
        if setting is None or not setting.enabled or setting.threshold is None:
            return False
        return state.fill_level >= setting.threshold

    def alert_for(self, state: BinState) -> Alert | None:
        if state.fill_level >= self.thresholds.critical_min:
            return Alert(bin_id=state.bin_id, level="high", message=f"{state.name} Critical!")
        if self.is_alert_triggered(state):
            return Alert(bin_id=state.bin_id, level="high", message=f"{state.name} {state.fill_level}%")
        if self.thresholds.warning_min <= state.fill_level < self.thresholds.critical_min:
            setting = self._settings.get(state.bin_id)
            enabled = setting is not None and setting.enabled
            if enabled or state.status in {"warning", "critical"}:
                return Alert(bin_id=state.bin_id, level="medium", message=f"{state.name} {state.fill_level}%")
        return None

    def generate_alerts(self, states: Iterable[BinState]) -> list[Alert]:
        alerts: list[Alert] = []
        for state in states:
            alert = self.alert_for(state)
            if alert is not None:
                alerts.append(alert)
        return alerts

    def alert_action(self, state: BinState) -> AlertAction:
        if self.is_alert_triggered(state):
            return "empty_now"
        setting = self._settings.get(state.bin_id)
        if setting is not None and setting.enabled:
            return "alert_set"
        return "set_alert"

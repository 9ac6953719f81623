from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass(frozen=True, slots=True)
class BinDefinition:
    id: int
    name: str
    color: str
    capacity_liters: float = 5.0
    initial_fill_level: int = 0


@dataclass(slots=True)
class ThresholdConfig:
    warning_min: int = 75
    critical_min: int = 90
    custom_min: int = 50
    custom_max: int = 100
    default_custom: int = 80
    schedule_min_hours: int = 1
    schedule_max_hours: int = 168


@dataclass(slots=True)
class CollectorConfig:
    interval_seconds: float = 10.0
    auto_start: bool = False
    max_step_percent: int = 3


@dataclass(slots=True)
class HistoryConfig:
    reset_clears_history: bool = False


@dataclass(slots=True)
class DashboardConfig:
    refresh_hint_seconds: int = 2


@dataclass(slots=True)
class AppConfig:
    bins: list[BinDefinition]
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    collector: CollectorConfig = field(default_factory=CollectorConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)


class ConfigError(RuntimeError):
    pass


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected mapping in {path}")
    return data


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"`{key}` must be a dictionary")
    return value


def _resolve_config_dir() -> Path:
    env_dir = os.getenv("BIN_MONITOR_CONFIG_DIR")
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    return (Path(__file__).resolve().parents[1] / "config").resolve()


def _parse_bins(raw_bins: list[dict[str, Any]]) -> list[BinDefinition]:
    bins: list[BinDefinition] = []
    seen: set[int] = set()
    for item in raw_bins:
        try:
            bin_id = int(item["id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"Bin entry has no valid integer id: {item!r}") from exc
        if bin_id <= 0:
            raise ConfigError(f"Bin id must be positive, got {bin_id}")
        if bin_id in seen:
            raise ConfigError(f"Duplicate bin id {bin_id} in bins.yaml")
        seen.add(bin_id)

        capacity = float(item.get("capacity_liters", 5.0))
        if capacity <= 0:
            raise ConfigError(f"Bin {bin_id} capacity_liters must be > 0")

        bins.append(
            BinDefinition(
                id=bin_id,
                name=str(item.get("name", f"Bin {bin_id}")),
                color=str(item.get("color", "gray")),
                capacity_liters=capacity,
                initial_fill_level=int(item.get("initial_fill_level", 0)),
            )
        )
    return sorted(bins, key=lambda item: item.id)


def load_config(config_dir: Path | None = None) -> AppConfig:
    directory = config_dir or _resolve_config_dir()
    if not directory.exists():
        raise ConfigError(f"Config directory not found: {directory}")

    bins_cfg = _read_yaml(directory / "bins.yaml")
    thresholds_cfg = _read_yaml(directory / "thresholds.yaml")
    engine_cfg = _read_yaml(directory / "engine.yaml")

    bins_raw = bins_cfg.get("bins", [])
    if not bins_raw:
        raise ConfigError("No bins configured in bins.yaml")

    bins = _parse_bins(bins_raw)
    thresholds = ThresholdConfig(
        warning_min=int(thresholds_cfg.get("warning_min", 75)),
        critical_min=int(thresholds_cfg.get("critical_min", 90)),
        custom_min=int(thresholds_cfg.get("custom_min", 50)),
        custom_max=int(thresholds_cfg.get("custom_max", 100)),
        default_custom=int(thresholds_cfg.get("default_custom", 80)),
        schedule_min_hours=int(thresholds_cfg.get("schedule_min_hours", 1)),
        schedule_max_hours=int(thresholds_cfg.get("schedule_max_hours", 168)),
    )
    if thresholds.warning_min >= thresholds.critical_min:
        raise ConfigError("warning_min must be lower than critical_min")
    if thresholds.custom_min > thresholds.custom_max:
        raise ConfigError("custom_min must not exceed custom_max")
    if thresholds.schedule_min_hours > thresholds.schedule_max_hours:
        raise ConfigError("schedule_min_hours must not exceed schedule_max_hours")

    collector_raw = _section(bins_cfg, "collector")
    collector = CollectorConfig(
        interval_seconds=float(collector_raw.get("interval_seconds", 10.0)),
        auto_start=bool(collector_raw.get("auto_start", False)),
        max_step_percent=int(collector_raw.get("max_step_percent", 3)),
    )

    history = HistoryConfig(
        reset_clears_history=bool(_section(engine_cfg, "history").get("reset_clears_history", False)),
    )
    dashboard = DashboardConfig(
        refresh_hint_seconds=int(_section(engine_cfg, "dashboard").get("refresh_hint_seconds", 2)),
    )

    return AppConfig(
        bins=bins,
        thresholds=thresholds,
        collector=collector,
        history=history,
        dashboard=dashboard,
    )

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from typing import Any

import numpy as np

from bin_monitor.core.ledger import HistoryEntry
from bin_monitor.core.state_store import BinState


def attention_summary(states: Sequence[BinState]) -> dict[str, int]:
    critical = sum(1 for state in states if state.status == "critical")
    warning = sum(1 for state in states if state.status == "warning")
    return {"critical": critical, "warning": warning, "total": critical + warning}


def capacity_summary(states: Sequence[BinState]) -> dict[str, float]:
    if not states:
        return {"used_liters": 0.0, "total_liters": 0.0, "percent_used": 0.0}

    used = np.array([state.volume_liters for state in states], dtype=float)
    capacity = np.array([state.bin.capacity_liters for state in states], dtype=float)
    used_total = float(used.sum())
    capacity_total = float(capacity.sum())
    percent = (used_total / capacity_total) * 100.0 if capacity_total > 0 else 0.0
    return {
        "used_liters": round(used_total, 1),
        "total_liters": round(capacity_total, 1),
        "percent_used": round(percent, 1),
    }


def _fullest(states: list[BinState]) -> BinState:
    # Ties go to the later bin in registry order.
    best = states[0]
    for state in states[1:]:
        if not best.fill_level > state.fill_level:
            best = state
    return best


def next_scheduled_empty(states: Sequence[BinState]) -> dict[str, str]:
    critical = [state for state in states if state.status == "critical"]
    if critical:
        target = _fullest(critical)
        return {"timeframe": "15min", "message": f"{target.name} critical", "status": "critical"}

    warning = [state for state in states if state.status == "warning"]
    if warning:
        target = _fullest(warning)
        return {"timeframe": "2hrs", "message": f"{target.name} needs attention", "status": "warning"}

    return {"timeframe": "None", "message": "All bins normal", "status": "normal"}


def history_statistics(entries: Sequence[HistoryEntry]) -> list[dict[str, Any]]:
    grouped: dict[int, list[HistoryEntry]] = defaultdict(list)
    for entry in entries:
        grouped[entry.bin_id].append(entry)

    output: list[dict[str, Any]] = []
    for bin_id, items in sorted(grouped.items()):
        fills = np.array([item.fill_level_at_event for item in items], dtype=float)
        volumes = np.array([item.volume_at_event for item in items], dtype=float)
        latest = max(items, key=lambda item: (item.timestamp, item.id))
        output.append(
            {
                "bin_id": bin_id,
                "bin_name": latest.bin_name,
                "events": len(items),
                "total_volume_liters": round(float(volumes.sum()), 2),
                "average_fill_at_event": round(float(fills.mean()), 1),
                "max_fill_at_event": int(fills.max()),
            }
        )
    return output

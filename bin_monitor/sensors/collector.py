from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Protocol

from bin_monitor.core.engine import BinMonitorEngine
from bin_monitor.core.state_store import BinState

LOGGER = logging.getLogger(__name__)


class FillSource(Protocol):
    def next_level(self, bin_id: int, current: int) -> float: ...


class MockFillSource:
    """Seeded random walk. Bins fill slowly and are occasionally emptied by hand."""

    def __init__(self, *, max_step_percent: int = 3, seed: int | str | None = None) -> None:
        self.max_step_percent = max(1, max_step_percent)
        self._rng = random.Random(seed)

    def next_level(self, bin_id: int, current: int) -> float:
        _ = bin_id
        if current >= 95 and self._rng.random() < 0.05:
            return self._rng.uniform(0.0, 10.0)
        return current + self._rng.uniform(0.0, float(self.max_step_percent))


class ReadingCollector:
    def __init__(
        self,
        engine: BinMonitorEngine,
        source: FillSource,
        *,
        interval_seconds: float = 10.0,
        on_update: Callable[[list[BinState]], Awaitable[None] | None] | None = None,
    ) -> None:
        self.engine = engine
        self.source = source
        self.interval_seconds = interval_seconds
        self.on_update = on_update
        self._running = False

    async def collect_once(self) -> list[BinState]:
        for state in self.engine.read_all():
            level = self.source.next_level(state.bin_id, state.fill_level)
            self.engine.apply_reading(state.bin_id, level)

        states = self.engine.read_all()
        if self.on_update is not None:
            maybe_awaitable = self.on_update(states)
            if asyncio.iscoroutine(maybe_awaitable):
                await maybe_awaitable
        return states

    async def run_forever(self) -> None:
        self._running = True
        LOGGER.info("Reading collector started with %d bins", len(self.engine.registry))

        while self._running:
            await self.collect_once()
            await asyncio.sleep(self.interval_seconds)

    async def stop(self) -> None:
        self._running = False
        LOGGER.info("Reading collector stopped")

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from bin_monitor.api.routes import router as api_router, snapshot_payload
from bin_monitor.api.websocket import ConnectionManager, router as websocket_router
from bin_monitor.config import load_config
from bin_monitor.core.engine import BinMonitorEngine
from bin_monitor.core.registry import NotFoundError
from bin_monitor.sensors.collector import MockFillSource, ReadingCollector

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = load_config()
    engine = BinMonitorEngine.from_config(config)
    ws_manager = ConnectionManager()

    async def publish(_states):
        await ws_manager.broadcast({"type": "state", "data": snapshot_payload(engine)})

    collector = ReadingCollector(
        engine,
        MockFillSource(max_step_percent=config.collector.max_step_percent),
        interval_seconds=config.collector.interval_seconds,
        on_update=publish,
    )
    collector_task: asyncio.Task[Any] | None = None

    if config.collector.auto_start:
        collector_task = asyncio.create_task(collector.run_forever())

    app.state.config = config
    app.state.engine = engine
    app.state.ws_manager = ws_manager
    app.state.collector = collector
    app.state.collector_task = collector_task

    yield

    if collector_task:
        collector_task.cancel()
        with suppress(asyncio.CancelledError):
            await collector_task

    await collector.stop()


app = FastAPI(
    title="Smart Bin Monitoring API",
    version="1.0.0",
    description="Fill levels, alert thresholds, collection scheduling and emptying history for smart waste bins",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotFoundError)
async def bin_not_found(_request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": "Bin not found", "bin_id": exc.bin_id})


app.include_router(api_router)
app.include_router(websocket_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}

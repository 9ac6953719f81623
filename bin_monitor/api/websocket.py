from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from bin_monitor.api.routes import snapshot_payload

LOGGER = logging.getLogger(__name__)

router = APIRouter()


class ConnectionManager:
    """Fan-out of bin state snapshots to dashboard clients."""

    def __init__(self) -> None:
        self._clients: set[WebSocket] = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket: WebSocket, greeting: dict[str, Any] | None = None) -> None:
        await websocket.accept()
        self._clients.add(websocket)
        if greeting is not None:
            await websocket.send_json(greeting)

    def disconnect(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)

    async def broadcast(self, message: dict[str, Any]) -> None:
        dropped: list[WebSocket] = []
        for websocket in list(self._clients):
            try:
                await websocket.send_json(message)
            except Exception as exc:
                LOGGER.debug("Dropping dashboard client: %s", exc)
                dropped.append(websocket)

        for websocket in dropped:
            self.disconnect(websocket)


@router.websocket("/ws/bins")
async def bins_ws(websocket: WebSocket) -> None:
    manager: ConnectionManager = websocket.app.state.ws_manager
    engine = websocket.app.state.engine
    await manager.connect(websocket, greeting={"type": "state", "data": snapshot_payload(engine)})

    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket)

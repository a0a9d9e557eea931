from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket

from fleetwatch.engine.fleet_registry import FleetRegistry
from fleetwatch.engine.periodic import PeriodicTask

logger = logging.getLogger(__name__)

HEARTBEAT_MESSAGE = "heartbeat"


class ConnectionManager:
    """Tracks active WebSocket clients and broadcasts messages.

    Each client gets its own send with a timeout, so a stalled peer is
    dropped without holding up the others.
    """

    def __init__(self, send_timeout: float = 0.5) -> None:
        self.active_connections: list[WebSocket] = []
        self.send_timeout = send_timeout

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info("Dashboard connected (%d active)", len(self.active_connections))

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast(self, data: dict) -> None:
        clients = list(self.active_connections)
        results = await asyncio.gather(
            *(asyncio.wait_for(ws.send_json(data), timeout=self.send_timeout) for ws in clients),
            return_exceptions=True,
        )
        dead = [ws for ws, result in zip(clients, results) if isinstance(result, Exception)]
        for ws in dead:
            self.disconnect(ws)
        if dead:
            logger.info("Dropped %d dashboard client(s)", len(dead))


class Broadcaster(PeriodicTask):
    """Pushes the full server table to every dashboard client each tick."""

    name = "broadcaster"

    def __init__(
        self,
        registry: FleetRegistry,
        manager: ConnectionManager,
        interval: float = 1.0,
    ) -> None:
        super().__init__(interval=interval)
        self.registry = registry
        self.manager = manager

    def heartbeat(self) -> dict:
        return {"type": HEARTBEAT_MESSAGE, "data": {"servers": self.registry.snapshot()}}

    async def tick(self) -> None:
        if not self.manager.active_connections:
            return
        await self.manager.broadcast(self.heartbeat())

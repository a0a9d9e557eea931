from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable

import websockets

from fleetwatch.config import ServerConfig
from fleetwatch.engine.fleet_registry import FleetRegistry
from fleetwatch.engine.publisher import STATS_MESSAGE

logger = logging.getLogger(__name__)


class AgentFeed:
    """Subscribes to one agent's snapshot stream and feeds the registry.

    Each feed is its own failure domain: it reconnects with exponential
    backoff and marks only its own server unreachable while it is down.
    """

    def __init__(
        self,
        server: ServerConfig,
        registry: FleetRegistry,
        max_backoff: float = 30.0,
        connect: Callable[[str], Any] = websockets.connect,
    ) -> None:
        self.server = server
        self.registry = registry
        self.max_backoff = max_backoff
        self._connect = connect
        self._running = False
        self._task: asyncio.Task | None = None

    # ── lifecycle ────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info("Agent feed [%s] started (%s)", self.server.name, self.server.agent_url)

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Agent feed [%s] stopped", self.server.name)

    # ── messages ────────────────────────────────────────

    def handle_message(self, message: str | bytes) -> bool:
        """Apply one stream message; returns False when it was skipped."""
        try:
            data = json.loads(message)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError):
            logger.debug("Ignoring non-JSON message from %s", self.server.name)
            return False
        if not isinstance(data, dict) or data.get("type") != STATS_MESSAGE:
            return False
        self.registry.apply_metrics(self.server.name, data.get("data"))
        return True

    # ── internals ───────────────────────────────────────

    async def _run(self) -> None:
        backoff = 1.0
        while self._running:
            try:
                async with self._connect(self.server.agent_url) as ws:
                    backoff = 1.0
                    self.registry.mark_agent_connected(self.server.name)
                    logger.info("Connected to agent %s", self.server.name)
                    async for message in ws:
                        self.handle_message(message)
                self._connection_lost("stream closed")
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self._connection_lost(exc)
            await asyncio.sleep(backoff)
            backoff = min(backoff * 2, self.max_backoff)

    def _connection_lost(self, reason: object) -> None:
        was_connected = self.registry.get(self.server.name).agent_connected
        self.registry.mark_agent_unreachable(self.server.name)
        if was_connected:
            logger.warning("Lost agent %s: %s", self.server.name, reason)
        else:
            logger.debug("Agent %s unreachable: %s", self.server.name, reason)

    @property
    def running(self) -> bool:
        return self._running

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class PeriodicTask(ABC):
    """Abstract base for work that repeats on a fixed cadence.

    Subclasses implement ``tick()``. The base class handles the async loop,
    deadline-based timing, and graceful shutdown. A tick that overruns its
    slot delays the next one instead of overlapping it.
    """

    name: str = "periodic"
    interval: float = 1.0  # seconds between ticks
    initial_delay: float = 0.0

    def __init__(self, interval: float | None = None, initial_delay: float | None = None) -> None:
        if interval is not None:
            self.interval = interval
        if initial_delay is not None:
            self.initial_delay = initial_delay
        self._running = False
        self._task: asyncio.Task | None = None

    # ── lifecycle ────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("Task [%s] started (interval=%.1fs)", self.name, self.interval)

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
        logger.info("Task [%s] stopped", self.name)

    # ── abstract method ─────────────────────────────────

    @abstractmethod
    async def tick(self) -> None:
        """Do one cycle of work."""
        ...

    # ── internals ───────────────────────────────────────

    async def _loop(self) -> None:
        loop = asyncio.get_running_loop()
        if self.initial_delay > 0:
            await asyncio.sleep(self.initial_delay)
        deadline = loop.time()
        while self._running:
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Task [%s] error during tick()", self.name)
            deadline = max(deadline + self.interval, loop.time())
            await asyncio.sleep(deadline - loop.time())

    @property
    def running(self) -> bool:
        return self._running

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fleetwatch.collectors import CpuCollector, DiskCollector, MemoryCollector, RequestCounter
from fleetwatch.engine.periodic import PeriodicTask
from fleetwatch.models import MetricSnapshot

logger = logging.getLogger(__name__)

STATS_MESSAGE = "monitoring-stats"

Send = Callable[[dict], Awaitable[None]]


class AgentSensors:
    """Sampler state owned by one agent process."""

    def __init__(
        self,
        cpu: CpuCollector,
        memory: MemoryCollector,
        disk: DiskCollector,
        requests: RequestCounter,
    ) -> None:
        self.cpu = cpu
        self.memory = memory
        self.disk = disk
        self.requests = requests

    async def snapshot(self) -> MetricSnapshot:
        return MetricSnapshot(
            memory_load_pct=await self.memory.read(),
            cpu_load_pct=await self.cpu.read(),
            disk_usage_pct=await self.disk.read(),
            requests_per_sec=self.requests.drain(),
        )


class MetricsPublisher(PeriodicTask):
    """Streams one snapshot per tick to a single subscriber.

    Live-only: a failed send is dropped, never retried or buffered.
    """

    name = "metrics_publisher"

    def __init__(self, send: Send, sensors: AgentSensors, interval: float = 1.0) -> None:
        super().__init__(interval=interval)
        self._send = send
        self.sensors = sensors
        self.sent = 0

    async def tick(self) -> None:
        snapshot = await self.sensors.snapshot()
        logger.debug("Publishing %s", snapshot.to_wire())
        try:
            await self._send({"type": STATS_MESSAGE, "data": snapshot.to_wire()})
        except Exception as exc:
            logger.debug("Dropped snapshot, subscriber unavailable: %s", exc)
            return
        self.sent += 1

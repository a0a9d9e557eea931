from __future__ import annotations

import asyncio
import logging
import time

import httpx

from fleetwatch.engine.fleet_registry import FleetRegistry
from fleetwatch.engine.periodic import PeriodicTask
from fleetwatch.models import ServerRecord

logger = logging.getLogger(__name__)


class LivenessProber(PeriodicTask):
    """Measures latency and status code of every worker's public endpoint.

    All servers are probed concurrently, so one cycle takes about one
    ``timeout`` at worst regardless of fleet size. Only the liveness half of
    each record is written.
    """

    name = "liveness_prober"

    def __init__(
        self,
        registry: FleetRegistry,
        interval: float = 5.0,
        initial_delay: float = 1.0,
        timeout: float = 5.0,
        unreachable_latency_ms: int = 9999,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(interval=interval, initial_delay=initial_delay)
        self.registry = registry
        self.unreachable_latency_ms = unreachable_latency_ms
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def stop(self) -> None:
        await super().stop()
        await self._client.aclose()

    async def tick(self) -> None:
        records = self.registry.records
        results = await asyncio.gather(
            *(self.probe(r) for r in records),
            return_exceptions=True,
        )
        for record, result in zip(records, results):
            if isinstance(result, Exception):
                logger.error("Probe of %s raised %r", record.name, result)

    async def probe(self, record: ServerRecord) -> tuple[int, int]:
        start = time.perf_counter()
        try:
            response = await self._client.get(record.endpoint)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("Error checking %s: HTTP %d", record.name, exc.response.status_code)
            latency_ms, status_code = self.unreachable_latency_ms, exc.response.status_code
        except httpx.HTTPError as exc:
            logger.warning("Error checking %s: %s", record.name, exc.__class__.__name__)
            latency_ms, status_code = self.unreachable_latency_ms, 0
        else:
            latency_ms = round((time.perf_counter() - start) * 1000)
            status_code = response.status_code

        self.registry.apply_liveness(record.name, latency_ms, status_code)
        return latency_ms, status_code

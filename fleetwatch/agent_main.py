from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from fleetwatch.api.agent_routes import router
from fleetwatch.collectors import CpuCollector, DiskCollector, MemoryCollector, RequestCounter
from fleetwatch.config import settings
from fleetwatch.engine import AgentSensors

logger = logging.getLogger(__name__)


def build_sensors() -> AgentSensors:
    return AgentSensors(
        cpu=CpuCollector(settings.cgroup_dir, fallback=settings.fallback_percent),
        memory=MemoryCollector(settings.cgroup_dir, fallback=settings.fallback_percent),
        disk=DiskCollector(settings.disk_path, fallback=settings.fallback_percent),
        requests=RequestCounter(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── startup ───────────────────────────────────────
    app.state.sensors = build_sensors()
    app.state.publishers = set()
    logger.info("Agent started")

    yield

    # ── shutdown ──────────────────────────────────────
    for publisher in list(app.state.publishers):
        await publisher.stop()
    logger.info("Agent shut down")


app = FastAPI(title=f"{settings.app_name} agent", lifespan=lifespan)


@app.middleware("http")
async def count_requests(request: Request, call_next):
    request.app.state.sensors.requests.increment()
    return await call_next(request)


app.include_router(router)

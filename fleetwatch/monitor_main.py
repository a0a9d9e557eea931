from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from fleetwatch.api.monitor_routes import router
from fleetwatch.config import settings
from fleetwatch.engine import (
    AgentFeed,
    Broadcaster,
    ConnectionManager,
    FleetRegistry,
    HealthScorer,
    LivenessProber,
)

logger = logging.getLogger(__name__)

_DASHBOARD_DIR = Path(settings.dashboard_dir)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── startup ───────────────────────────────────────
    registry = FleetRegistry(
        settings.servers,
        HealthScorer(trend_capacity=settings.trend_capacity),
    )
    connections = ConnectionManager(send_timeout=settings.broadcast_send_timeout)
    feeds = [
        AgentFeed(server, registry, max_backoff=settings.agent_max_backoff)
        for server in settings.servers
    ]
    prober = LivenessProber(
        registry,
        interval=settings.probe_interval,
        initial_delay=settings.probe_initial_delay,
        timeout=settings.probe_timeout,
        unreachable_latency_ms=settings.unreachable_latency_ms,
    )
    broadcaster = Broadcaster(registry, connections, interval=settings.broadcast_interval)

    for feed in feeds:
        await feed.start()
    await prober.start()
    await broadcaster.start()

    # Store on app.state for route access
    app.state.registry = registry
    app.state.connections = connections
    app.state.feeds = feeds
    app.state.prober = prober
    app.state.broadcaster = broadcaster

    logger.info("Monitor started, watching %d servers", len(settings.servers))

    yield

    # ── shutdown ──────────────────────────────────────
    await broadcaster.stop()
    await prober.stop()
    for feed in feeds:
        await feed.stop()
    logger.info("Monitor shut down")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(router)

# Routes are registered first, so /api/* and /ws/* still win over the static mount.
if _DASHBOARD_DIR.is_dir():
    app.mount("/", StaticFiles(directory=str(_DASHBOARD_DIR), html=True), name="dashboard")

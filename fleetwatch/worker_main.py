from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fleetwatch.api.worker_routes import StressRunner, router
from fleetwatch.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.stress_runner = StressRunner(duration=settings.stress_duration)
    logger.info("Worker started")
    yield
    await app.state.stress_runner.shutdown()
    logger.info("Worker shut down")


app = FastAPI(title=f"{settings.app_name} worker", lifespan=lifespan)
app.include_router(router)

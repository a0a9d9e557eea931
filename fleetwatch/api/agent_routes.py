from __future__ import annotations

import logging

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse

from fleetwatch.config import settings
from fleetwatch.engine import MetricsPublisher

logger = logging.getLogger(__name__)

router = APIRouter()


# ── REST routes ───────────────────────────────────────


@router.get("/", response_class=PlainTextResponse)
async def index() -> str:
    return "OK"


@router.get("/api/status")
async def get_status(request: Request) -> dict:
    state = request.app.state
    return {
        "status": "running",
        "subscribers": len(state.publishers),
        "pending_requests": state.sensors.requests.pending,
    }


# ── WebSocket endpoint ────────────────────────────────


@router.websocket("/ws/stats")
async def stream_stats(websocket: WebSocket) -> None:
    await websocket.accept()
    state = websocket.app.state
    publisher = MetricsPublisher(
        websocket.send_json,
        state.sensors,
        interval=settings.publish_interval,
    )
    state.publishers.add(publisher)
    await publisher.start()
    logger.info("Monitor subscribed to stats")
    try:
        while True:
            # Nothing is expected from the monitor; this only detects disconnects.
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Monitor unsubscribed")
    finally:
        await publisher.stop()
        state.publishers.discard(publisher)

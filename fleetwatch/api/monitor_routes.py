from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter()


# ── REST routes ───────────────────────────────────────


@router.get("/api/servers")
async def get_servers(request: Request) -> list[dict]:
    return request.app.state.registry.snapshot()


@router.get("/api/servers/{name}")
async def get_server(name: str, request: Request) -> dict:
    registry = request.app.state.registry
    try:
        return registry.get(name).to_wire()
    except KeyError:
        raise HTTPException(status_code=404, detail="Server not found")


@router.get("/api/status")
async def get_status(request: Request) -> dict:
    state = request.app.state
    records = state.registry.records
    feeds = getattr(state, "feeds", [])
    return {
        "status": "running",
        "servers": len(records),
        "agents_connected": sum(1 for r in records if r.agent_connected),
        "agent_feeds": len(feeds),
        "dashboard_clients": len(state.connections.active_connections),
        "prober_running": state.prober.running,
        "broadcaster_running": state.broadcaster.running,
    }


# ── WebSocket endpoint ────────────────────────────────


@router.websocket("/ws/dashboard")
async def websocket_dashboard(websocket: WebSocket) -> None:
    manager = websocket.app.state.connections
    await manager.connect(websocket)
    try:
        while True:
            # Keep connection alive; the dashboard never needs to send anything
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket)

from __future__ import annotations

import asyncio

import pytest

from fleetwatch.config import ServerConfig
from fleetwatch.engine.broadcaster import Broadcaster, ConnectionManager
from fleetwatch.engine.fleet_registry import FleetRegistry
from fleetwatch.engine.health_scorer import HealthScorer

SERVERS = [
    ServerConfig(name=f"server-0{i}", port=4000 + i, agent_port=5000 + i)
    for i in range(1, 4)
]


class FakeWebSocket:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.accepted = False
        self.sent: list[dict] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: dict) -> None:
        if self.fail:
            raise RuntimeError("client went away")
        self.sent.append(data)


class StalledWebSocket(FakeWebSocket):
    """A peer whose sends never complete, like a half-open connection."""

    async def send_json(self, data: dict) -> None:
        await asyncio.sleep(3600)


def _registry() -> FleetRegistry:
    return FleetRegistry(SERVERS, HealthScorer())


# ── ConnectionManager ───────────────────────────────────


@pytest.mark.asyncio
async def test_connect_accepts_and_tracks():
    manager = ConnectionManager()
    ws = FakeWebSocket()
    await manager.connect(ws)
    assert ws.accepted is True
    assert manager.active_connections == [ws]


@pytest.mark.asyncio
async def test_failed_client_is_dropped_others_still_served():
    manager = ConnectionManager()
    good_a, bad, good_b = FakeWebSocket(), FakeWebSocket(fail=True), FakeWebSocket()
    for ws in (good_a, bad, good_b):
        await manager.connect(ws)

    await manager.broadcast({"type": "heartbeat"})

    assert good_a.sent == [{"type": "heartbeat"}]
    assert good_b.sent == [{"type": "heartbeat"}]
    assert manager.active_connections == [good_a, good_b]


@pytest.mark.asyncio
async def test_stalled_client_times_out_without_blocking_others():
    manager = ConnectionManager(send_timeout=0.05)
    stalled, good = StalledWebSocket(), FakeWebSocket()
    await manager.connect(stalled)
    await manager.connect(good)

    await asyncio.wait_for(manager.broadcast({"type": "heartbeat"}), timeout=1.0)

    assert good.sent == [{"type": "heartbeat"}]
    assert manager.active_connections == [good]


def test_disconnect_unknown_client_is_noop():
    manager = ConnectionManager()
    manager.disconnect(FakeWebSocket())
    assert manager.active_connections == []


# ── Broadcaster ─────────────────────────────────────────


def test_heartbeat_carries_full_table():
    broadcaster = Broadcaster(_registry(), ConnectionManager())
    heartbeat = broadcaster.heartbeat()
    assert heartbeat["type"] == "heartbeat"
    assert [s["name"] for s in heartbeat["data"]["servers"]] == [
        "server-01",
        "server-02",
        "server-03",
    ]


@pytest.mark.asyncio
async def test_late_client_gets_full_table_on_first_message():
    registry = _registry()
    registry.apply_metrics("server-02", {"cpuLoad": 90})
    manager = ConnectionManager()
    broadcaster = Broadcaster(registry, manager, interval=0.1)

    await broadcaster.start()
    await asyncio.sleep(0.15)
    late = FakeWebSocket()
    await manager.connect(late)
    await asyncio.sleep(0.15)
    await broadcaster.stop()

    assert late.sent, "client received nothing"
    first = late.sent[0]
    assert first["type"] == "heartbeat"
    servers = first["data"]["servers"]
    assert len(servers) == 3
    assert servers[1]["cpuLoad"] == 90


@pytest.mark.asyncio
async def test_client_failure_does_not_stop_cadence():
    manager = ConnectionManager()
    good, bad = FakeWebSocket(), FakeWebSocket(fail=True)
    await manager.connect(bad)
    await manager.connect(good)
    broadcaster = Broadcaster(_registry(), manager, interval=0.05)

    await broadcaster.start()
    await asyncio.sleep(0.18)
    await broadcaster.stop()

    assert len(good.sent) >= 3
    assert bad not in manager.active_connections


@pytest.mark.asyncio
async def test_stalled_client_does_not_stop_cadence():
    manager = ConnectionManager(send_timeout=0.02)
    stalled, good = StalledWebSocket(), FakeWebSocket()
    await manager.connect(stalled)
    await manager.connect(good)
    broadcaster = Broadcaster(_registry(), manager, interval=0.05)

    await broadcaster.start()
    await asyncio.sleep(0.5)
    await broadcaster.stop()

    assert len(good.sent) >= 5
    assert stalled not in manager.active_connections

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from fleetwatch.collectors.request_counter import RequestCounter
from fleetwatch.engine.publisher import AgentSensors, MetricsPublisher


def _sensors(cpu=30, memory=40, disk=50, counter: RequestCounter | None = None) -> AgentSensors:
    def sampler(value):
        mock = MagicMock()
        mock.read = AsyncMock(return_value=value)
        return mock

    return AgentSensors(
        cpu=sampler(cpu),
        memory=sampler(memory),
        disk=sampler(disk),
        requests=counter or RequestCounter(clock=lambda: 0.0),
    )


@pytest.mark.asyncio
async def test_snapshot_gathers_every_sensor():
    snapshot = await _sensors(cpu=12, memory=34, disk=56).snapshot()
    assert snapshot.cpu_load_pct == 12
    assert snapshot.memory_load_pct == 34
    assert snapshot.disk_usage_pct == 56
    assert snapshot.requests_per_sec == 0


@pytest.mark.asyncio
async def test_tick_sends_stats_message():
    sent: list[dict] = []

    async def send(message: dict) -> None:
        sent.append(message)

    publisher = MetricsPublisher(send, _sensors())
    await publisher.tick()

    assert sent == [
        {
            "type": "monitoring-stats",
            "data": {"memoryLoad": 40, "cpuLoad": 30, "diskUsage": 50, "requestsPerSecond": 0},
        }
    ]
    assert publisher.sent == 1


@pytest.mark.asyncio
async def test_request_rate_is_drained():
    now = [0.0]
    counter = RequestCounter(clock=lambda: now[0])
    for _ in range(8):
        counter.increment()
    now[0] = 2.0
    send = AsyncMock()

    await MetricsPublisher(send, _sensors(counter=counter)).tick()

    message = send.await_args.args[0]
    assert message["data"]["requestsPerSecond"] == 4
    assert counter.pending == 0


@pytest.mark.asyncio
async def test_failed_send_is_dropped():
    send = AsyncMock(side_effect=RuntimeError("socket closed"))
    publisher = MetricsPublisher(send, _sensors())

    await publisher.tick()  # must not raise
    await publisher.tick()

    assert send.await_count == 2
    assert publisher.sent == 0


@pytest.mark.asyncio
async def test_publishes_on_cadence():
    send = AsyncMock()
    publisher = MetricsPublisher(send, _sensors(), interval=0.05)
    await publisher.start()
    await asyncio.sleep(0.18)
    await publisher.stop()
    assert send.await_count >= 3

"""Tests for the worker's load-generation endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from fleetwatch.api.worker_routes import StressRunner
from fleetwatch.worker_main import app


@pytest.fixture
async def client():
    app.state.stress_runner = StressRunner(duration="30s")
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    await app.state.stress_runner.shutdown()
    del app.state.stress_runner


def _process() -> MagicMock:
    proc = MagicMock(pid=4321)
    proc.wait = AsyncMock(return_value=0)
    return proc


@pytest.mark.asyncio
async def test_index(client: AsyncClient):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.text == "Hello World!"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path, expected_text, expected_arg",
    [
        ("/memory-load", "Memory stress-ng, started for 30s", "--vm-bytes"),
        ("/cpu-load", "CPU stress-ng, started for 30s", "--cpu-load"),
        ("/max-load", "Max stress-ng, started for 30s", "--vm"),
    ],
)
async def test_load_endpoints_ack_immediately(client, path, expected_text, expected_arg):
    with patch(
        "fleetwatch.api.worker_routes.asyncio.create_subprocess_exec",
        AsyncMock(return_value=_process()),
    ) as mock_exec:
        resp = await client.get(path)

    assert resp.status_code == 200
    assert resp.text == expected_text
    args = mock_exec.await_args.args
    assert args[0] == "stress-ng"
    assert expected_arg in args
    assert args[args.index("--timeout") + 1] == "30s"


@pytest.mark.asyncio
async def test_missing_stress_ng(client: AsyncClient):
    with patch(
        "fleetwatch.api.worker_routes.asyncio.create_subprocess_exec",
        AsyncMock(side_effect=FileNotFoundError("stress-ng")),
    ):
        resp = await client.get("/cpu-load")
    assert resp.status_code == 503
    assert "not installed" in resp.json()["detail"]

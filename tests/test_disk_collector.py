from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from fleetwatch.collectors.base import CollectionError
from fleetwatch.collectors.disk_collector import DiskCollector

DF_OUTPUT = (
    "Filesystem     1024-blocks     Used Available Capacity Mounted on\n"
    "/dev/sda1        102400000 83968000  18432000      82% /\n"
)


@pytest.mark.asyncio
async def test_psutil_percent_rounded():
    collector = DiskCollector("/")
    with patch("fleetwatch.collectors.disk_collector.psutil") as mock_psutil:
        mock_psutil.disk_usage.return_value = MagicMock(percent=73.6)
        assert await collector.read() == 74
        mock_psutil.disk_usage.assert_called_once_with("/")


@pytest.mark.asyncio
async def test_df_fallback():
    collector = DiskCollector("/")
    with patch(
        "fleetwatch.collectors.disk_collector.psutil.disk_usage",
        side_effect=OSError("unsupported"),
    ), patch(
        "fleetwatch.collectors.disk_collector.run_command",
        AsyncMock(return_value=DF_OUTPUT),
    ):
        assert await collector.read() == 82


@pytest.mark.asyncio
async def test_everything_failing_returns_fallback():
    collector = DiskCollector("/", fallback=20)
    with patch(
        "fleetwatch.collectors.disk_collector.psutil.disk_usage",
        side_effect=OSError("unsupported"),
    ), patch(
        "fleetwatch.collectors.disk_collector.run_command",
        AsyncMock(side_effect=CollectionError("df exited with status 1")),
    ):
        assert await collector.read() == 20


@pytest.mark.asyncio
async def test_unexpected_df_output_returns_fallback():
    collector = DiskCollector("/", fallback=20)
    with patch(
        "fleetwatch.collectors.disk_collector.psutil.disk_usage",
        side_effect=OSError,
    ), patch(
        "fleetwatch.collectors.disk_collector.run_command",
        AsyncMock(return_value="Filesystem\n"),
    ):
        assert await collector.read() == 20

from __future__ import annotations

import re
import time
from pathlib import Path
from typing import Callable

import psutil
from pydantic import BaseModel

from fleetwatch.collectors.base import BaseSampler, CollectionError, read_file

_USAGE_RE = re.compile(r"^usage_usec (\d+)$", re.MULTILINE)


class CpuSampleState(BaseModel):
    last_usage_usec: int | None = None
    last_sample_time: float | None = None

    def reset(self) -> None:
        self.last_usage_usec = None
        self.last_sample_time = None


class CpuCollector(BaseSampler):
    """Turns the cumulative CPU-time counter into a load percentage.

    Reads ``usage_usec`` from the cgroup v2 ``cpu.stat`` file and, outside a
    cgroup, falls back to psutil's system-wide busy time averaged over cores.
    The rate is the counter delta divided by the wall-clock delta since the
    previous sample, so the first sample only establishes a baseline.
    """

    name = "cpu_collector"

    def __init__(
        self,
        cgroup_dir: str | Path = "/sys/fs/cgroup",
        fallback: int = 20,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(fallback=fallback)
        self.stat_path = Path(cgroup_dir) / "cpu.stat"
        self.state = CpuSampleState()
        self._clock = clock

    def sample(self, current_usage_usec: int, now: float) -> int:
        """Return CPU load in [0, 100] since the previous sample.

        ``now`` is in seconds. The baseline is replaced on every call, so a
        counter reset or a zero-length interval costs exactly one sample.
        """
        last_usage = self.state.last_usage_usec
        last_time = self.state.last_sample_time
        self.state.last_usage_usec = current_usage_usec
        self.state.last_sample_time = now

        if last_usage is None or last_time is None:
            return self.fallback

        elapsed = now - last_time
        used = current_usage_usec - last_usage
        if elapsed <= 0 or used < 0:
            return self.fallback

        percent = used / (elapsed * 1_000_000) * 100
        return round(min(100.0, max(0.0, percent)))

    async def _read(self) -> int:
        usage = await self._read_usage()
        return self.sample(usage, self._clock())

    def _on_error(self) -> None:
        self.state.reset()

    async def _read_usage(self) -> int:
        try:
            text = await read_file(self.stat_path)
        except FileNotFoundError:
            return self._psutil_usage()
        match = _USAGE_RE.search(text)
        if not match:
            raise CollectionError(f"no usage_usec in {self.stat_path}")
        return int(match.group(1))

    @staticmethod
    def _psutil_usage() -> int:
        times = psutil.cpu_times()
        idle = times.idle + getattr(times, "iowait", 0.0)
        busy = sum(times) - idle
        cores = psutil.cpu_count() or 1
        return int(busy / cores * 1_000_000)

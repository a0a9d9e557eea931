from __future__ import annotations

from pathlib import Path

import psutil

from fleetwatch.collectors.base import (
    BaseSampler,
    CollectionError,
    read_file,
    run_command,
    to_percent,
)


class MemoryCollector(BaseSampler):
    """Memory usage as a share of the cgroup limit.

    When the cgroup reports no limit the denominator is total system memory.
    Nothing is cached between reads.
    """

    name = "memory_collector"

    def __init__(self, cgroup_dir: str | Path = "/sys/fs/cgroup", fallback: int = 20) -> None:
        super().__init__(fallback=fallback)
        self.current_path = Path(cgroup_dir) / "memory.current"
        self.max_path = Path(cgroup_dir) / "memory.max"

    async def _read(self) -> int:
        try:
            current_text = await read_file(self.current_path)
            max_text = await read_file(self.max_path)
        except FileNotFoundError:
            return round(psutil.virtual_memory().percent)

        current = int(current_text.strip())
        limit = self._parse_limit(max_text)
        if limit is None:
            limit = await self._total_memory()
        return to_percent(current, limit)

    @staticmethod
    def _parse_limit(text: str) -> int | None:
        value = text.strip()
        if value == "max":
            return None
        limit = int(value)
        return limit if limit > 0 else None

    async def _total_memory(self) -> int:
        try:
            return psutil.virtual_memory().total
        except (OSError, psutil.Error):
            return await self._total_memory_from_free()

    @staticmethod
    async def _total_memory_from_free() -> int:
        output = await run_command("free", "-b")
        for line in output.splitlines():
            if line.startswith("Mem:"):
                return int(line.split()[1])
        raise CollectionError("no Mem: line in `free` output")

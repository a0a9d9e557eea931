from __future__ import annotations

import psutil

from fleetwatch.collectors.base import BaseSampler, CollectionError, run_command


class DiskCollector(BaseSampler):
    """Disk usage of the filesystem holding ``path``."""

    name = "disk_collector"

    def __init__(self, path: str = "/", fallback: int = 20) -> None:
        super().__init__(fallback=fallback)
        self.path = path

    async def _read(self) -> int:
        try:
            return round(psutil.disk_usage(self.path).percent)
        except OSError:
            return await self._read_from_df()

    async def _read_from_df(self) -> int:
        output = await run_command("df", "-P", self.path)
        lines = output.strip().splitlines()
        if len(lines) < 2:
            raise CollectionError("unexpected `df` output")
        # Filesystem 1024-blocks Used Available Capacity Mounted-on
        capacity = lines[-1].split()[4]
        return int(capacity.rstrip("%"))

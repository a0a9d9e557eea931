from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path

import psutil

logger = logging.getLogger(__name__)


class CollectionError(Exception):
    """A counter or system query returned nothing usable."""


class BaseSampler(ABC):
    """Abstract base for agent-side resource samplers.

    Subclasses implement ``_read()``. The base class turns any collection
    failure into the fixed ``fallback`` value so a broken counter never takes
    down the publisher.
    """

    name: str = "base"

    def __init__(self, fallback: int = 20) -> None:
        self.fallback = fallback

    async def read(self) -> int:
        try:
            return await self._read()
        except (OSError, ValueError, CollectionError, psutil.Error) as exc:
            logger.warning("Sampler [%s] falling back to %d: %s", self.name, self.fallback, exc)
            self._on_error()
            return self.fallback

    @abstractmethod
    async def _read(self) -> int:
        """Return the current reading as an integer percentage."""
        ...

    def _on_error(self) -> None:
        pass


async def read_file(path: Path) -> str:
    return await asyncio.to_thread(path.read_text)


async def run_command(*args: str, timeout: float = 5.0) -> str:
    """Run a system command without blocking the loop and return its stdout."""
    proc = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
    )
    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise CollectionError(f"{args[0]} timed out after {timeout}s")
    if proc.returncode != 0:
        raise CollectionError(f"{args[0]} exited with status {proc.returncode}")
    return stdout.decode()


def to_percent(part: float, whole: float) -> int:
    if whole <= 0:
        raise CollectionError("capacity is zero")
    return round(min(100.0, max(0.0, part / whole * 100)))

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)

router = APIRouter()

# profile -> (stress-ng arguments, acknowledgment label)
STRESS_PROFILES: dict[str, tuple[list[str], str]] = {
    "memory": (["--vm", "1", "--vm-bytes", "300M", "--vm-keep", "--vm-hang", "0"], "Memory stress-ng"),
    "cpu": (["--cpu", "1", "--cpu-load", "50"], "CPU stress-ng"),
    "max": (["--cpu", "1", "--cpu-load", "99", "--vm", "1", "--vm-bytes", "1G"], "Max stress-ng"),
}


class StressRunner:
    """Starts time-bounded ``stress-ng`` runs without waiting for them."""

    def __init__(self, duration: str = "30s", command: str = "stress-ng") -> None:
        self.duration = duration
        self.command = command
        self._reapers: set[asyncio.Task] = set()

    async def launch(self, profile: str) -> int:
        args, _ = STRESS_PROFILES[profile]
        proc = await asyncio.create_subprocess_exec(
            self.command,
            *args,
            "--timeout",
            self.duration,
            "--metrics-brief",
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        logger.info("Started %s stress (pid=%d) for %s", profile, proc.pid, self.duration)
        task = asyncio.create_task(self._reap(profile, proc))
        self._reapers.add(task)
        task.add_done_callback(self._reapers.discard)
        return proc.pid

    async def shutdown(self) -> None:
        for task in list(self._reapers):
            task.cancel()
        await asyncio.gather(*self._reapers, return_exceptions=True)

    @property
    def active(self) -> int:
        return len(self._reapers)

    @staticmethod
    async def _reap(profile: str, proc: asyncio.subprocess.Process) -> None:
        code = await proc.wait()
        logger.info("%s stress (pid=%d) exited with %d", profile, proc.pid, code)


async def _start(request: Request, profile: str) -> str:
    runner: StressRunner = request.app.state.stress_runner
    try:
        await runner.launch(profile)
    except FileNotFoundError:
        raise HTTPException(status_code=503, detail=f"{runner.command} is not installed")
    _, label = STRESS_PROFILES[profile]
    return f"{label}, started for {runner.duration}"


# ── REST routes ───────────────────────────────────────


@router.get("/", response_class=PlainTextResponse)
async def index() -> str:
    return "Hello World!"


@router.get("/memory-load", response_class=PlainTextResponse)
async def memory_load(request: Request) -> str:
    return await _start(request, "memory")


@router.get("/cpu-load", response_class=PlainTextResponse)
async def cpu_load(request: Request) -> str:
    return await _start(request, "cpu")


@router.get("/max-load", response_class=PlainTextResponse)
async def max_load(request: Request) -> str:
    return await _start(request, "max")

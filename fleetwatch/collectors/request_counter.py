from __future__ import annotations

import time
from typing import Callable


class RequestCounter:
    """Counts inbound requests and converts them to a per-second rate."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._count = 0
        self._last_drain = clock()

    def increment(self) -> None:
        self._count += 1

    def drain(self, now: float | None = None) -> int:
        """Return requests/sec since the last drain and reset the counter.

        Windows shorter than one second return 0 and leave the count in
        place rather than extrapolating.
        """
        if now is None:
            now = self._clock()
        elapsed = now - self._last_drain
        if elapsed < 1.0:
            return 0
        rate = round(self._count / elapsed)
        self._count = 0
        self._last_drain = now
        return rate

    @property
    def pending(self) -> int:
        return self._count

"""Single-process sliding-window rate limiter."""

from __future__ import annotations

import asyncio
import time
from datetime import timedelta

from .base import Ratelimiter, RatelimitResponse


class LocalRatelimiter(Ratelimiter):
    """In-process sliding window backed by per-identifier timestamp lists.

    Only admitted requests are recorded, so a rejected burst does not
    extend the window.  Identifiers idle for a whole window are swept at
    most once per window.
    """

    def __init__(self, max_requests: int, window: timedelta) -> None:
        self._max_requests = max_requests
        self._window = window.total_seconds()
        self._buckets: dict[str, list[float]] = {}
        self._next_sweep = 0.0
        self._lock = asyncio.Lock()

    def _sweep_idle(self, now: float, window_start: float) -> None:
        if now < self._next_sweep:
            return
        self._next_sweep = now + self._window
        idle = [key for key, ts in self._buckets.items() if not ts or ts[-1] <= window_start]
        for key in idle:
            del self._buckets[key]

    async def limit(self, identifier: str) -> RatelimitResponse:
        async with self._lock:
            now = time.time()
            window_start = now - self._window
            self._sweep_idle(now, window_start)
            timestamps = [t for t in self._buckets.get(identifier, []) if t > window_start]

            success = len(timestamps) < self._max_requests
            if success:
                timestamps.append(now)
            if timestamps:
                self._buckets[identifier] = timestamps
            else:
                self._buckets.pop(identifier, None)

            reset = int((timestamps[0] + self._window) * 1000) if timestamps else None
            return RatelimitResponse(
                success=success,
                reset=reset,
                limit=self._max_requests,
                remaining=max(0, self._max_requests - len(timestamps)),
            )

    async def aclose(self) -> None:
        self._buckets.clear()

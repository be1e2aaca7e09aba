"""Opt-in rate limiting for chat requests."""

from __future__ import annotations

from .base import Ratelimiter, RatelimitResponse


class RateLimitService:
    """Wraps an optional :class:`Ratelimiter`; no limiter always allows."""

    def __init__(self, ratelimit: Ratelimiter | None = None) -> None:
        self._ratelimit = ratelimit

    async def check_limit(self, session_id: str) -> RatelimitResponse:
        if self._ratelimit is None:
            return RatelimitResponse(success=True, reset=None)
        return await self._ratelimit.limit(session_id)

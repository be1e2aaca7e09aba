"""Distributed sliding-window rate limiter on a Redis sorted set."""

from __future__ import annotations

import logging
import time
from datetime import timedelta

from redis.asyncio import Redis

from ragchat.infra.id_utils import ID_PREFIX_RATELIMIT_ENTRY, generate_id

from .base import Ratelimiter, RatelimitResponse

logger = logging.getLogger(__name__)

_RATELIMIT_KEY = "ragchat:ratelimit:{identifier}"


class RedisRatelimiter(Ratelimiter):
    """Sliding window shared by every process using the same Redis.

    One pipeline trims expired entries, adds the current request, counts
    the window and reads its oldest entry.  An over-limit request is
    removed again so only admitted requests occupy the window.
    """

    def __init__(self, redis: Redis, max_requests: int, window: timedelta) -> None:
        self._redis = redis
        self._max_requests = max_requests
        self._window = window.total_seconds()

    async def limit(self, identifier: str) -> RatelimitResponse:
        now = time.time()
        key = _RATELIMIT_KEY.format(identifier=identifier)
        member = generate_id(ID_PREFIX_RATELIMIT_ENTRY)

        pipe = self._redis.pipeline()
        pipe.zremrangebyscore(key, 0, now - self._window)  # 0
        pipe.zadd(key, {member: now})  # 1
        pipe.zcard(key)  # 2
        pipe.zrange(key, 0, 0, withscores=True)  # 3
        pipe.expire(key, int(self._window) + 1)  # 4
        results = await pipe.execute()

        count = int(results[2])
        oldest = results[3]
        success = count <= self._max_requests
        if not success:
            await self._redis.zrem(key, member)
            count -= 1

        reset = int((float(oldest[0][1]) + self._window) * 1000) if oldest else None
        if not success:
            logger.debug("Rate limit exceeded for %s (%d requests)", identifier, count)
        return RatelimitResponse(
            success=success,
            reset=reset,
            limit=self._max_requests,
            remaining=max(0, self._max_requests - count),
        )

"""Async Redis client lifespan dependency.

``build_redis`` creates a Redis client, verifies the connection, and
falls back to ``None`` when Redis is not configured or unreachable.
Downstream builders (history, rate limiter) then pick their local
backends.  Cleanup runs automatically via ``yield``.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from redis.asyncio import Redis

from ragchat.configs.config import AppConfig, get_app_config

logger = logging.getLogger(__name__)


async def build_redis(
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[Redis | None, None]:
    """Create a Redis client; yield ``None`` if unset or unreachable."""
    redis_uri = config.third_party.redis_uri
    if not redis_uri:
        logger.info("Redis not configured -- using in-memory history.")
        yield None
        return

    client = Redis.from_url(redis_uri, decode_responses=True)
    verified: Redis | None = None
    try:
        await client.ping()
        verified = client
    except Exception:
        logger.warning(
            "Redis unavailable -- falling back to in-memory history "
            "and local rate limiting."
        )

    yield verified

    await client.aclose()

"""Backend selection for chat history."""

from __future__ import annotations

import logging

from redis.asyncio import Redis

from .base import HistoryStore
from .memory import InMemoryHistory
from .redis_backend import RedisHistory

logger = logging.getLogger(__name__)


class HistoryService:
    """Holds the active :class:`HistoryStore`.

    A given store wins; otherwise a Redis client selects
    :class:`RedisHistory`, and with neither the process-local
    :class:`InMemoryHistory` is used.
    """

    def __init__(
        self,
        *,
        redis: Redis | None = None,
        store: HistoryStore | None = None,
    ) -> None:
        if store is not None:
            self.service = store
        elif redis is not None:
            self.service = RedisHistory(redis)
        else:
            self.service = InMemoryHistory()
        logger.info("History backend: %s", type(self.service).__name__)

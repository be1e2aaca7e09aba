"""Durable history backend: one Redis list per session."""

from __future__ import annotations

import logging

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ragchat.core.errors import HistoryStoreError

from .base import HistoryStore, Message

logger = logging.getLogger(__name__)

_HISTORY_KEY = "ragchat:history:{session_id}"


class RedisHistory(HistoryStore):
    """Messages are ``LPUSH``-ed as JSON, so ``LRANGE 0 n`` is newest first.

    Each write refreshes the session TTL in the same pipeline.
    """

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    @staticmethod
    def _key(session_id: str) -> str:
        return _HISTORY_KEY.format(session_id=session_id)

    async def add_message(
        self,
        message: Message,
        session_id: str,
        session_ttl: int | None = None,
    ) -> None:
        key = self._key(session_id)
        pipe = self._redis.pipeline()
        pipe.lpush(key, message.model_dump_json())
        if session_ttl is not None:
            pipe.expire(key, session_ttl)
        try:
            await pipe.execute()
        except RedisError as exc:
            raise HistoryStoreError(
                f"Failed to append message to session {session_id!r}"
            ) from exc

    async def get_messages(self, session_id: str, amount: int) -> list[Message]:
        if amount <= 0:
            return []
        try:
            raw = await self._redis.lrange(self._key(session_id), 0, amount - 1)
        except RedisError as exc:
            raise HistoryStoreError(
                f"Failed to read history of session {session_id!r}"
            ) from exc

        messages: list[Message] = []
        for item in raw:
            try:
                messages.append(Message.model_validate_json(item))
            except ValidationError:
                logger.warning(
                    "Skipping malformed history entry in session %s",
                    session_id,
                    exc_info=True,
                )
        return messages

    async def delete_messages(self, session_id: str) -> None:
        try:
            await self._redis.delete(self._key(session_id))
        except RedisError as exc:
            raise HistoryStoreError(
                f"Failed to delete history of session {session_id!r}"
            ) from exc

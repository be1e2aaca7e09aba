"""Process-local history backend used when no Redis is configured."""

from __future__ import annotations

import asyncio
import heapq
import time

from .base import HistoryStore, Message


class InMemoryHistory(HistoryStore):
    """In-process message log backed by a dict and an ``asyncio.Lock``.

    Expiry times are also pushed on a min-heap; every write pops the
    sessions whose TTL has passed, so abandoned sessions are freed
    without being read again.  A heap entry whose session was refreshed
    or deleted since is skipped.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, list[Message]] = {}
        self._expires_at: dict[str, float] = {}
        self._expiry_heap: list[tuple[float, str]] = []
        self._lock = asyncio.Lock()

    def _drop(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._expires_at.pop(session_id, None)

    def _evict_expired(self, now: float) -> None:
        while self._expiry_heap and self._expiry_heap[0][0] <= now:
            expires_at, session_id = heapq.heappop(self._expiry_heap)
            if self._expires_at.get(session_id) == expires_at:
                self._drop(session_id)

    def _evict_if_expired(self, session_id: str, now: float) -> None:
        expires_at = self._expires_at.get(session_id)
        if expires_at is not None and expires_at <= now:
            self._drop(session_id)

    async def add_message(
        self,
        message: Message,
        session_id: str,
        session_ttl: int | None = None,
    ) -> None:
        async with self._lock:
            now = time.monotonic()
            self._evict_expired(now)
            self._sessions.setdefault(session_id, []).append(message)
            if session_ttl is not None:
                expires_at = now + session_ttl
                self._expires_at[session_id] = expires_at
                heapq.heappush(self._expiry_heap, (expires_at, session_id))

    async def get_messages(self, session_id: str, amount: int) -> list[Message]:
        if amount <= 0:
            return []
        async with self._lock:
            self._evict_if_expired(session_id, time.monotonic())
            messages = self._sessions.get(session_id, [])
            return list(reversed(messages[-amount:]))

    async def delete_messages(self, session_id: str) -> None:
        async with self._lock:
            self._drop(session_id)

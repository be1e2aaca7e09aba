"""Rate limiter interface and its response record."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RatelimitResponse:
    """Outcome of one rate-limit check.

    ``reset`` is the epoch time in milliseconds when the identifier
    regains capacity, or ``None`` when no limiter is configured.
    """

    success: bool
    reset: int | None = None
    limit: int | None = None
    remaining: int | None = None


class Ratelimiter(ABC):
    """Interface for rate-limit backends keyed by an identifier."""

    @abstractmethod
    async def limit(self, identifier: str) -> RatelimitResponse:
        """Account one request for *identifier* and report whether it may proceed."""

    async def aclose(self) -> None:
        """Release any resources held by the backend."""

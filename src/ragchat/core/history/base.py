"""History store interface and the stored ``Message`` model."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Literal

from pydantic import BaseModel, Field

from ragchat.infra.id_utils import ID_PREFIX_MESSAGE, generate_id


class Message(BaseModel):
    """A single stored chat turn.  Immutable once created."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: generate_id(ID_PREFIX_MESSAGE))
    content: str = Field(description="Message text")
    role: Literal["user", "assistant"] = Field(description="Message sender role")
    metadata: dict[str, Any] | None = Field(
        default=None, description="Arbitrary key-value bag attached to the message"
    )


class HistoryStore(ABC):
    """Per-session ordered message log.

    ``get_messages`` returns the most recent ``amount`` messages
    **newest first**; callers reverse for chronological rendering.
    """

    @abstractmethod
    async def add_message(
        self,
        message: Message,
        session_id: str,
        session_ttl: int | None = None,
    ) -> None:
        """Append *message* to the session log, refreshing its TTL (seconds)."""

    @abstractmethod
    async def get_messages(self, session_id: str, amount: int) -> list[Message]:
        """Return up to *amount* most recent messages, newest first."""

    @abstractmethod
    async def delete_messages(self, session_id: str) -> None:
        """Remove every message of the session."""

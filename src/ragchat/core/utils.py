"""Text helpers for questions, retrieved facts and chat history."""

from __future__ import annotations

import inspect
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from .constants import ASSISTANT_MESSAGE_PREFIX, ROLE_USER, USER_MESSAGE_PREFIX

if TYPE_CHECKING:
    from .history.base import Message


def sanitize_question(question: str) -> str:
    """Trim surrounding whitespace and replace newlines with spaces.

    Inner whitespace other than newlines is left untouched, so
    ``"Where  is\\nthe capital?"`` becomes ``"Where  is the capital?"``.
    """
    return question.strip().replace("\r\n", " ").replace("\n", " ").replace("\r", " ")


def format_facts(facts: Iterable[str]) -> str:
    return "\n".join(facts)


def format_chat_history(messages: Sequence["Message"]) -> str:
    """Render messages (already oldest-first) as prefixed prompt lines."""
    return format_facts(
        f"{USER_MESSAGE_PREFIX if message.role == ROLE_USER else ASSISTANT_MESSAGE_PREFIX}"
        f"{message.content}"
        for message in messages
    )


async def call_hook(hook: Any, *args: Any) -> Any:
    """Call a user hook that may be a plain function or a coroutine function."""
    if hook is None:
        return None
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result

"""Observability collaborator invoked at fixed pipeline lifecycle points.

:class:`ChatObserver` is the no-op default.  :class:`ChatLogger` is
installed when ``debug`` is enabled and logs every lifecycle point with
the elapsed time of the timed steps.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from contextvars import ContextVar
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .history.base import Message

logger = logging.getLogger(__name__)

STEP_RETRIEVE_CONTEXT = "retrieve_context"
STEP_RETRIEVE_HISTORY = "retrieve_history"
STEP_LLM_RESPONSE = "llm_response"


class ChatObserver:
    """No-op observer.  Subclasses override the points they care about."""

    def start_retrieve_context(self) -> None:
        pass

    async def end_retrieve_context(self, facts: Sequence[str]) -> None:
        pass

    def start_retrieve_history(self) -> None:
        pass

    async def end_retrieve_history(self, messages: Sequence["Message"]) -> None:
        pass

    async def log_retrieve_format_history(self, formatted_history: str) -> None:
        pass

    async def log_final_prompt(self, prompt: str) -> None:
        pass

    def start_llm_response(self) -> None:
        pass

    async def end_llm_response(self, output: str) -> None:
        pass

    async def log_error(self, error: BaseException) -> None:
        pass


class ChatLogger(ChatObserver):
    """Debug observer writing lifecycle points to the ``ragchat`` logger.

    Start times live in a context variable, so every chat (and any task
    it spawns, such as one draining a stream) sees only its own pending
    steps.  Updates replace the mapping instead of mutating it, which
    keeps tasks that inherited the same mapping independent.
    """

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level
        self._pending: ContextVar[Mapping[str, float]] = ContextVar(
            f"ragchat_chat_logger_{id(self)}", default=MappingProxyType({})
        )

    def pending_steps(self) -> tuple[str, ...]:
        """Steps started but not yet ended in the current context."""
        return tuple(self._pending.get())

    def _start(self, step: str) -> None:
        self._pending.set({**self._pending.get(), step: time.monotonic()})

    def _elapsed_ms(self, step: str) -> float:
        pending = dict(self._pending.get())
        start = pending.pop(step, None)
        self._pending.set(pending)
        if start is None:
            return 0.0
        return (time.monotonic() - start) * 1000

    def start_retrieve_context(self) -> None:
        self._start(STEP_RETRIEVE_CONTEXT)

    async def end_retrieve_context(self, facts: Sequence[str]) -> None:
        logger.log(
            self._level,
            "Retrieved %d context items in %.1f ms: %s",
            len(facts),
            self._elapsed_ms(STEP_RETRIEVE_CONTEXT),
            list(facts),
        )

    def start_retrieve_history(self) -> None:
        self._start(STEP_RETRIEVE_HISTORY)

    async def end_retrieve_history(self, messages: Sequence["Message"]) -> None:
        logger.log(
            self._level,
            "Retrieved %d history messages in %.1f ms",
            len(messages),
            self._elapsed_ms(STEP_RETRIEVE_HISTORY),
        )

    async def log_retrieve_format_history(self, formatted_history: str) -> None:
        logger.log(self._level, "Formatted history:\n%s", formatted_history)

    async def log_final_prompt(self, prompt: str) -> None:
        logger.log(self._level, "Final prompt:\n%s", prompt)

    def start_llm_response(self) -> None:
        self._start(STEP_LLM_RESPONSE)

    async def end_llm_response(self, output: str) -> None:
        logger.log(
            self._level,
            "LLM response (%d chars) in %.1f ms",
            len(output),
            self._elapsed_ms(STEP_LLM_RESPONSE),
        )

    async def log_error(self, error: BaseException) -> None:
        logger.error(
            "Chat failed during %s: %s",
            ", ".join(self.pending_steps()) or "pipeline",
            error,
            exc_info=error,
        )
        self._pending.set(MappingProxyType({}))

"""Model invocation in text or streaming mode.

The model is any langchain ``BaseLanguageModel``: chat models yield
message chunks, completion models yield strings; both are reduced to
plain text here.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from dataclasses import dataclass
from typing import Any, Literal

from langchain_core.language_models import BaseLanguageModel

from ragchat.infra.metrics import STREAM_CHUNKS_TOTAL
from ragchat.infra.telemetry import ATTR_LLM_PROMPT_LEN, SPAN_LLM_CALL, tracer

from .errors import ModelError
from .options import ChunkHook, CompleteHook, ResolvedChatOptions
from .utils import call_hook

logger = logging.getLogger(__name__)

_CONTENT_BLOCK_TEXT = "text"


@dataclass(frozen=True)
class TextChatResult:
    """Completed response of a non-streaming chat."""

    output: str
    is_stream: Literal[False] = False


@dataclass(frozen=True)
class StreamChatResult:
    """Lazily produced, single-pass stream of text chunks."""

    output: AsyncIterator[str]
    is_stream: Literal[True] = True


ChatResult = TextChatResult | StreamChatResult


def chunk_text(chunk: Any) -> str:
    """Extract the text of a model output or output chunk."""
    if isinstance(chunk, str):
        return chunk
    content = getattr(chunk, "content", None)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == _CONTENT_BLOCK_TEXT:
                parts.append(str(block.get(_CONTENT_BLOCK_TEXT, "")))
        return "".join(parts)
    raise ModelError(f"Unsupported model output type: {type(chunk).__name__}")


class LLMService:
    """Calls the model and fires the lifecycle hooks.

    No retries are performed; model errors propagate unchanged.
    """

    def __init__(self, model: BaseLanguageModel) -> None:
        self._model = model
        # Strong references keep scheduled chunk hooks from being collected.
        self._chunk_hook_tasks: set[asyncio.Future[Any]] = set()

    async def call_llm(
        self,
        options: ResolvedChatOptions,
        prompt: str,
        *,
        on_chunk: ChunkHook | None = None,
        on_complete: CompleteHook | None = None,
    ) -> ChatResult:
        if options.streaming:
            return StreamChatResult(
                output=self._stream(prompt, on_chunk=on_chunk, on_complete=on_complete)
            )

        with tracer.start_as_current_span(SPAN_LLM_CALL) as span:
            span.set_attribute(ATTR_LLM_PROMPT_LEN, len(prompt))
            response = await self._model.ainvoke(prompt)
        output = chunk_text(response)
        await call_hook(on_complete, output)
        return TextChatResult(output=output)

    def _notify_chunk(self, on_chunk: ChunkHook | None, text: str) -> None:
        """Fire ``on_chunk`` without waiting for it.

        A coroutine hook is scheduled as a task; hook failures are
        logged and never reach the stream.
        """
        if on_chunk is None:
            return
        try:
            result = on_chunk(text)
        except Exception:
            logger.warning("on_chunk hook failed; continuing stream", exc_info=True)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._chunk_hook_tasks.add(task)
            task.add_done_callback(self._chunk_hook_done)

    def _chunk_hook_done(self, task: asyncio.Future[Any]) -> None:
        self._chunk_hook_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(
                "on_chunk hook failed; continuing stream", exc_info=task.exception()
            )

    async def _stream(
        self,
        prompt: str,
        *,
        on_chunk: ChunkHook | None,
        on_complete: CompleteHook | None,
    ) -> AsyncGenerator[str, None]:
        """Yield text chunks; ``on_complete`` runs once the source is exhausted.

        Completion fires when the consumer asks for the chunk after the
        last one, so the last chunk is never held back by it.  Closing
        the generator early stops production and skips completion.
        """
        parts: list[str] = []
        async for chunk in self._model.astream(prompt):
            text = chunk_text(chunk)
            if not text:
                continue
            parts.append(text)
            STREAM_CHUNKS_TOTAL.inc()
            self._notify_chunk(on_chunk, text)
            yield text

        await call_hook(on_complete, "".join(parts))

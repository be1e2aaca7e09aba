"""Chat orchestrator: one ``chat()`` call per user message.

Steps, strictly sequential per request:

1. resolve options
2. rate-limit check (rejects before any history write)
3. record the raw user message
4. sanitize the question
5. retrieve context (skipped when retrieval is disabled)
6. fetch and format history, oldest first
7. build the prompt
8. invoke the model; on completion record the assistant message

Every failure is reported to the observer and re-raised unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing
from functools import partial

from langchain_core.language_models import BaseLanguageModel
from langchain_core.prompts import PromptTemplate
from langchain_core.vectorstores import VectorStore as LCVectorStore
from opentelemetry import trace
from opentelemetry.trace import Span
from redis.asyncio import Redis

from ragchat.configs.system import ChatDefaultsConfig
from ragchat.infra.logging import bind_chat_session
from ragchat.infra.metrics import (
    CHAT_REQUESTS_TOTAL,
    MODE_STREAM,
    MODE_TEXT,
    RATELIMIT_REJECTIONS_TOTAL,
    STATUS_CANCELLED,
    STATUS_ERROR,
    STATUS_OK,
    STATUS_RATELIMITED,
)
from ragchat.infra.telemetry import (
    ATTR_CHAT_DISABLE_RAG,
    ATTR_CHAT_QUESTION_LEN,
    ATTR_CHAT_SESSION_ID,
    ATTR_CHAT_STREAMING,
    ATTR_HISTORY_MESSAGE_COUNT,
    ATTR_RATELIMIT_SUCCESS,
    SPAN_CHAT,
    SPAN_HISTORY_LOAD,
    SPAN_RATELIMIT,
    tracer,
)

from .constants import ROLE_ASSISTANT, ROLE_USER
from .context import ContextService, LangChainVectorStore, VectorStore
from .errors import ConfigurationError, RateLimited
from .history import HistoryService, HistoryStore, Message
from .llm import ChatResult, LLMService, StreamChatResult
from .observer import ChatLogger, ChatObserver
from .options import ChatOptions, ResolvedChatOptions, resolve_chat_options
from .prompt import DEFAULT_PROMPT, PromptFn, PromptParameters, prompt_from_template
from .ratelimit import Ratelimiter, RateLimitService
from .utils import call_hook, format_chat_history, sanitize_question

logger = logging.getLogger(__name__)


class RAGChat:
    """Retrieval-augmented chat over a vector store, a history store and a model.

    ``context`` and ``history`` are public so callers can manage stored
    facts and conversations directly.
    """

    def __init__(
        self,
        *,
        model: BaseLanguageModel | None = None,
        vector: VectorStore | LCVectorStore | None = None,
        redis: Redis | None = None,
        history: HistoryStore | None = None,
        ratelimit: Ratelimiter | None = None,
        prompt: PromptFn | PromptTemplate | None = None,
        config: ChatDefaultsConfig | None = None,
        observer: ChatObserver | None = None,
    ) -> None:
        if vector is None:
            raise ConfigurationError("Vector store can not be undefined!")
        if model is None:
            raise ConfigurationError("Model can not be undefined!")

        self.config = config or ChatDefaultsConfig()
        if isinstance(prompt, PromptTemplate):
            prompt = prompt_from_template(prompt)
        self._prompt: PromptFn = prompt or DEFAULT_PROMPT

        if isinstance(vector, LCVectorStore):
            vector = LangChainVectorStore(vector)

        if observer is None:
            observer = ChatLogger() if self.config.debug else ChatObserver()
        self._observer = observer

        self.context = ContextService(vector, self.config.namespace, observer)
        self.history = HistoryService(redis=redis, store=history)
        self._llm = LLMService(model)
        self._ratelimit = RateLimitService(ratelimit)

    async def chat(
        self, message: str, options: ChatOptions | None = None
    ) -> ChatResult:
        """Answer *message* using retrieved context and recent history.

        Returns a :class:`TextChatResult` or, when ``streaming`` resolves
        to ``True``, a :class:`StreamChatResult` whose ``output`` must be
        consumed for the assistant message to be recorded.

        Raises:
            RateLimited: the rate limiter rejected the session; nothing
                was written to history.
        """
        resolved = self._resolve_options(options)
        mode = MODE_STREAM if resolved.streaming else MODE_TEXT

        # Ended here for text answers; streams end it once drained or closed.
        span = tracer.start_span(SPAN_CHAT)
        with trace.use_span(
            span, end_on_exit=False, record_exception=False
        ), bind_chat_session(resolved.session_id):
            span.set_attribute(ATTR_CHAT_SESSION_ID, resolved.session_id)
            span.set_attribute(ATTR_CHAT_STREAMING, resolved.streaming)
            span.set_attribute(ATTR_CHAT_DISABLE_RAG, resolved.disable_rag)
            try:
                await self._check_ratelimit(resolved)

                # The literal input is stored, never the sanitized form.
                await self._add_user_message(message, resolved)

                question = sanitize_question(message)
                span.set_attribute(ATTR_CHAT_QUESTION_LEN, len(question))

                context = await self.context.get_context(resolved, question)
                formatted_history = await self._get_chat_history(resolved)
                prompt = await self._generate_prompt(
                    resolved, context, question, formatted_history
                )

                self._observer.start_llm_response()
                result = await self._llm.call_llm(
                    resolved,
                    prompt,
                    on_chunk=resolved.on_chunk,
                    on_complete=partial(self._on_complete, resolved),
                )
            except Exception as exc:
                span.record_exception(exc)
                status = STATUS_RATELIMITED if isinstance(exc, RateLimited) else STATUS_ERROR
                CHAT_REQUESTS_TOTAL.labels(mode=mode, status=status).inc()
                await self._observer.log_error(exc)
                span.end()
                raise

        if isinstance(result, StreamChatResult):
            return StreamChatResult(
                output=self._observe_stream(
                    result.output, mode, span, resolved.session_id
                )
            )

        CHAT_REQUESTS_TOTAL.labels(mode=mode, status=STATUS_OK).inc()
        span.end()
        return result

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _resolve_options(self, options: ChatOptions | None) -> ResolvedChatOptions:
        return resolve_chat_options(options, self.config, self._prompt)

    async def _check_ratelimit(self, options: ResolvedChatOptions) -> None:
        with tracer.start_as_current_span(SPAN_RATELIMIT) as span:
            response = await self._ratelimit.check_limit(options.ratelimit_session_id)
            span.set_attribute(ATTR_RATELIMIT_SUCCESS, response.success)

        await call_hook(options.ratelimit_details, response)
        if not response.success:
            RATELIMIT_REJECTIONS_TOTAL.inc()
            raise RateLimited(
                "Couldn't process chat due to ratelimit.", reset=response.reset
            )

    async def _add_user_message(
        self, message: str, options: ResolvedChatOptions
    ) -> None:
        await self.history.service.add_message(
            Message(content=message, role=ROLE_USER),
            session_id=options.session_id,
            session_ttl=options.history_ttl,
        )

    async def _get_chat_history(self, options: ResolvedChatOptions) -> str:
        self._observer.start_retrieve_history()
        with tracer.start_as_current_span(SPAN_HISTORY_LOAD) as span:
            original = await self.history.service.get_messages(
                options.session_id, options.history_length
            )
            span.set_attribute(ATTR_HISTORY_MESSAGE_COUNT, len(original))

        cloned = [m.model_copy(deep=True) for m in original]
        modified = await call_hook(options.on_chat_history_fetched, cloned)
        messages = list(original if modified is None else modified)
        messages = messages[: options.history_length]
        await self._observer.end_retrieve_history(messages)

        # Stores return newest first; the prompt reads oldest first.
        formatted = format_chat_history(list(reversed(messages)))
        await self._observer.log_retrieve_format_history(formatted)
        return formatted

    async def _generate_prompt(
        self,
        options: ResolvedChatOptions,
        context: str,
        question: str,
        formatted_history: str,
    ) -> str:
        prompt = options.prompt_fn(
            PromptParameters(
                question=question,
                context=context,
                chat_history=formatted_history,
            )
        )
        await self._observer.log_final_prompt(prompt)
        return prompt

    async def _on_complete(self, options: ResolvedChatOptions, output: str) -> None:
        await self._observer.end_llm_response(output)
        await self.history.service.add_message(
            Message(content=output, role=ROLE_ASSISTANT, metadata=options.metadata),
            session_id=options.session_id,
            session_ttl=options.history_ttl,
        )
        await call_hook(options.on_complete, output)

    async def _observe_stream(
        self,
        stream: AsyncGenerator[str, None],
        mode: str,
        span: Span,
        session_id: str,
    ) -> AsyncGenerator[str, None]:
        """Relay *stream* under the chat span and session of the request.

        The consumer may pull from another task, so both are re-entered
        around every pull.  Closing before the end counts as cancelled.
        """
        status = STATUS_CANCELLED
        try:
            async with aclosing(stream):
                while True:
                    with trace.use_span(
                        span, end_on_exit=False, record_exception=False
                    ), bind_chat_session(session_id):
                        try:
                            chunk = await anext(stream)
                        except StopAsyncIteration:
                            break
                        except Exception as exc:
                            status = STATUS_ERROR
                            span.record_exception(exc)
                            await self._observer.log_error(exc)
                            raise
                    yield chunk
            status = STATUS_OK
        finally:
            CHAT_REQUESTS_TOTAL.labels(mode=mode, status=status).inc()
            span.end()

"""Context retrieval for the prompt, plus context management helpers."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Any

from ragchat.core.observer import ChatObserver
from ragchat.core.options import ResolvedChatOptions
from ragchat.core.utils import call_hook, format_facts
from ragchat.infra.metrics import CONTEXT_FACTS_RETURNED, RETRIEVAL_LATENCY_SECONDS
from ragchat.infra.telemetry import (
    ATTR_RETRIEVE_NAMESPACE,
    ATTR_RETRIEVE_RESULT_COUNT,
    ATTR_RETRIEVE_THRESHOLD,
    ATTR_RETRIEVE_TOP_K,
    SPAN_RETRIEVE,
    tracer,
)

from .base import VectorStore

logger = logging.getLogger(__name__)


class ContextService:
    """Queries the vector store and renders the facts as one text blob."""

    def __init__(
        self,
        vector: VectorStore,
        namespace: str,
        observer: ChatObserver | None = None,
    ) -> None:
        self._vector = vector
        self._namespace = namespace
        self._observer = observer or ChatObserver()

    async def get_context(self, options: ResolvedChatOptions, question: str) -> str:
        """Return the formatted context for *question*.

        Returns ``""`` without querying when retrieval is disabled.  The
        ``on_context_fetched`` hook receives a copy of the raw facts; a
        non-``None`` return value replaces them.
        """
        if options.disable_rag:
            return ""

        self._observer.start_retrieve_context()
        with tracer.start_as_current_span(SPAN_RETRIEVE) as span:
            span.set_attribute(ATTR_RETRIEVE_NAMESPACE, options.namespace)
            span.set_attribute(ATTR_RETRIEVE_TOP_K, options.top_k)
            span.set_attribute(ATTR_RETRIEVE_THRESHOLD, options.similarity_threshold)

            start = time.monotonic()
            facts = await self._vector.retrieve(
                question,
                similarity_threshold=options.similarity_threshold,
                top_k=options.top_k,
                metadata_key=options.metadata_key,
                namespace=options.namespace,
            )
            RETRIEVAL_LATENCY_SECONDS.observe(time.monotonic() - start)
            CONTEXT_FACTS_RETURNED.observe(len(facts))
            span.set_attribute(ATTR_RETRIEVE_RESULT_COUNT, len(facts))

        modified = await call_hook(options.on_context_fetched, list(facts))
        if modified is not None:
            facts = list(modified)

        await self._observer.end_retrieve_context(facts)
        return format_facts(facts)

    async def add_context(
        self,
        texts: str | Sequence[str],
        *,
        metadata: dict[str, Any] | Sequence[dict[str, Any]] | None = None,
        ids: Sequence[str] | None = None,
        namespace: str | None = None,
    ) -> list[str]:
        """Store *texts* in the vector store; returns their IDs.

        A single ``metadata`` dict is attached to every text.
        """
        if isinstance(texts, str):
            texts = [texts]
        if isinstance(metadata, dict):
            metadatas: Sequence[dict[str, Any]] | None = [dict(metadata) for _ in texts]
        else:
            metadatas = metadata
        target = self._namespace if namespace is None else namespace
        stored = await self._vector.add(
            texts, metadatas=metadatas, ids=ids, namespace=target
        )
        logger.info("Stored %d context items in namespace %r", len(stored), target)
        return stored

    async def remove_context(
        self, ids: str | Sequence[str], *, namespace: str | None = None
    ) -> None:
        if isinstance(ids, str):
            ids = [ids]
        target = self._namespace if namespace is None else namespace
        await self._vector.delete(ids, namespace=target)

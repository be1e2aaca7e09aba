"""Adapter exposing any langchain ``VectorStore`` as a :class:`VectorStore`.

Namespaces are stored in document metadata under ``namespace_key`` and
turned into a search filter by ``filter_builder``.  The default builder
produces a ``{namespace_key: namespace}`` dict, which is what most
langchain integrations accept; stores with other filter syntaxes (for
example ``InMemoryVectorStore``, which takes a predicate) pass their own
builder.  The empty namespace searches without a filter.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from langchain_core.documents import Document
from langchain_core.vectorstores import InMemoryVectorStore
from langchain_core.vectorstores import VectorStore as LCVectorStore

from ragchat.core.constants import DEFAULT_METADATA_KEY
from ragchat.core.errors import RetrievalError

from .base import VectorStore

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE_KEY = "namespace"

FilterBuilder = Callable[[str], Any]


class LangChainVectorStore(VectorStore):
    def __init__(
        self,
        store: LCVectorStore,
        *,
        namespace_key: str = DEFAULT_NAMESPACE_KEY,
        filter_builder: FilterBuilder | None = None,
    ) -> None:
        self._store = store
        self._namespace_key = namespace_key
        self._filter_builder = filter_builder or (lambda ns: {namespace_key: ns})

    def _search_kwargs(self, namespace: str) -> dict[str, Any]:
        if not namespace:
            return {}
        return {"filter": self._filter_builder(namespace)}

    @staticmethod
    def _fact(document: Document, metadata_key: str) -> str | None:
        value = document.metadata.get(metadata_key)
        if value is None and metadata_key == DEFAULT_METADATA_KEY:
            return document.page_content
        return None if value is None else str(value)

    async def retrieve(
        self,
        question: str,
        *,
        similarity_threshold: float,
        top_k: int,
        metadata_key: str,
        namespace: str,
    ) -> list[str]:
        try:
            results = await self._store.asimilarity_search_with_relevance_scores(
                question,
                k=top_k,
                score_threshold=similarity_threshold,
                **self._search_kwargs(namespace),
            )
        except Exception as exc:
            raise RetrievalError(f"Vector store query failed: {exc}") from exc

        facts = [self._fact(document, metadata_key) for document, _score in results]
        if results and all(fact is None for fact in facts):
            raise RetrievalError(
                f"Metadata key {metadata_key!r} not found in any retrieved document. "
                "Make sure the context was stored with this key."
            )
        return [fact for fact in facts if fact is not None]

    async def add(
        self,
        texts: Sequence[str],
        *,
        metadatas: Sequence[dict[str, Any]] | None = None,
        ids: Sequence[str] | None = None,
        namespace: str,
    ) -> list[str]:
        base = list(metadatas) if metadatas is not None else [{} for _ in texts]
        if len(base) != len(texts):
            raise ValueError("metadatas must have the same length as texts")
        tagged = [{**metadata, self._namespace_key: namespace} for metadata in base]
        kwargs: dict[str, Any] = {"metadatas": tagged}
        if ids is not None:
            kwargs["ids"] = list(ids)
        try:
            return await self._store.aadd_texts(list(texts), **kwargs)
        except Exception as exc:
            raise RetrievalError(f"Failed to store context: {exc}") from exc

    async def delete(self, ids: Sequence[str], *, namespace: str) -> None:
        try:
            await self._store.adelete(list(ids))
        except Exception as exc:
            raise RetrievalError(f"Failed to delete context: {exc}") from exc


class CosineInMemoryVectorStore(InMemoryVectorStore):
    """``InMemoryVectorStore`` whose raw scores are already cosine similarities."""

    def _select_relevance_score_fn(self) -> Callable[[float], float]:
        return lambda score: score


def namespace_predicate(
    namespace: str, namespace_key: str = DEFAULT_NAMESPACE_KEY
) -> Callable[[Document], bool]:
    """Filter builder for stores that take a document predicate."""
    return lambda doc: doc.metadata.get(namespace_key) == namespace

"""Tests for context retrieval and the langchain vector store adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings

from ragchat.configs.system import ChatDefaultsConfig
from ragchat.core.context import (
    ContextService,
    CosineInMemoryVectorStore,
    LangChainVectorStore,
    namespace_predicate,
)
from ragchat.core.errors import RetrievalError
from ragchat.core.options import ChatOptions, resolve_chat_options
from ragchat.core.prompt import DEFAULT_PROMPT



def _resolve(**kwargs):
    return resolve_chat_options(ChatOptions(**kwargs), ChatDefaultsConfig(), DEFAULT_PROMPT)


class _KeywordEmbeddings(Embeddings):
    """One axis per known city, so cosine similarity is 1 or 0."""

    _AXES = ("ankara", "paris", "rome")

    def _embed(self, text: str) -> list[float]:
        lowered = text.lower()
        vector = [1.0 if axis in lowered else 0.0 for axis in self._AXES]
        return vector if any(vector) else [0.1, 0.1, 0.1]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._embed(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._embed(text)


# =========================================================================
# ContextService
# =========================================================================


class TestContextService:
    @pytest.mark.asyncio
    async def test_formats_facts_with_newlines(self, vector):
        service = ContextService(vector, namespace="")
        context = await service.get_context(_resolve(), "capital?")
        assert context == "Ankara is the capital of Turkey.\nParis is in France."

    @pytest.mark.asyncio
    async def test_passes_retrieval_options(self, vector):
        service = ContextService(vector, namespace="")
        await service.get_context(
            _resolve(top_k=1, similarity_threshold=0.8, namespace="geo", metadata_key="body"),
            "capital?",
        )
        assert vector.queries == [
            {
                "question": "capital?",
                "similarity_threshold": 0.8,
                "top_k": 1,
                "metadata_key": "body",
                "namespace": "geo",
            }
        ]

    @pytest.mark.asyncio
    async def test_disable_rag_skips_query(self, vector):
        service = ContextService(vector, namespace="")
        assert await service.get_context(_resolve(disable_rag=True), "q") == ""
        assert vector.queries == []

    @pytest.mark.asyncio
    async def test_hook_replaces_facts(self, vector):
        seen: list[list[str]] = []

        async def on_context_fetched(facts):
            seen.append(facts)
            return ["custom fact"]

        service = ContextService(vector, namespace="")
        context = await service.get_context(
            _resolve(on_context_fetched=on_context_fetched), "q"
        )
        assert context == "custom fact"
        assert seen == [["Ankara is the capital of Turkey.", "Paris is in France."]]

    @pytest.mark.asyncio
    async def test_hook_returning_none_keeps_facts(self, vector):
        service = ContextService(vector, namespace="")
        context = await service.get_context(
            _resolve(on_context_fetched=lambda facts: None, top_k=1), "q"
        )
        assert context == "Ankara is the capital of Turkey."

    @pytest.mark.asyncio
    async def test_empty_result_is_empty_context(self, vector):
        vector.facts = []
        service = ContextService(vector, namespace="")
        assert await service.get_context(_resolve(), "q") == ""

    @pytest.mark.asyncio
    async def test_add_single_text_uses_default_namespace(self, vector):
        service = ContextService(vector, namespace="docs")
        ids = await service.add_context("fact", metadata={"source": "a"})
        assert ids == ["id-0"]
        assert vector.stored["id-0"] == ("fact", {"source": "a", "namespace": "docs"})

    @pytest.mark.asyncio
    async def test_add_and_remove_in_namespace(self, vector):
        service = ContextService(vector, namespace="docs")
        ids = await service.add_context(["a", "b"], ids=["x", "y"], namespace="other")
        assert ids == ["x", "y"]
        assert vector.stored["y"][1]["namespace"] == "other"
        await service.remove_context("x")
        assert set(vector.stored) == {"y"}


# =========================================================================
# LangChainVectorStore
# =========================================================================


def _mock_store(results=None) -> MagicMock:
    store = MagicMock()
    store.asimilarity_search_with_relevance_scores = AsyncMock(return_value=results or [])
    store.aadd_texts = AsyncMock(return_value=["a", "b"])
    store.adelete = AsyncMock()
    return store


class TestLangChainVectorStore:
    @pytest.mark.asyncio
    async def test_search_arguments_without_namespace(self):
        store = _mock_store()
        adapter = LangChainVectorStore(store)
        await adapter.retrieve(
            "q", similarity_threshold=0.5, top_k=3, metadata_key="text", namespace=""
        )
        store.asimilarity_search_with_relevance_scores.assert_awaited_once_with(
            "q", k=3, score_threshold=0.5
        )

    @pytest.mark.asyncio
    async def test_namespace_becomes_filter(self):
        store = _mock_store()
        adapter = LangChainVectorStore(store)
        await adapter.retrieve(
            "q", similarity_threshold=0.5, top_k=3, metadata_key="text", namespace="ns"
        )
        kwargs = store.asimilarity_search_with_relevance_scores.call_args.kwargs
        assert kwargs["filter"] == {"namespace": "ns"}

    @pytest.mark.asyncio
    async def test_text_key_falls_back_to_page_content(self):
        store = _mock_store([(Document(page_content="fact one"), 0.9)])
        adapter = LangChainVectorStore(store)
        facts = await adapter.retrieve(
            "q", similarity_threshold=0.5, top_k=3, metadata_key="text", namespace=""
        )
        assert facts == ["fact one"]

    @pytest.mark.asyncio
    async def test_custom_metadata_key(self):
        store = _mock_store(
            [(Document(page_content="ignored", metadata={"body": "from metadata"}), 0.9)]
        )
        adapter = LangChainVectorStore(store)
        facts = await adapter.retrieve(
            "q", similarity_threshold=0.5, top_k=3, metadata_key="body", namespace=""
        )
        assert facts == ["from metadata"]

    @pytest.mark.asyncio
    async def test_missing_metadata_key_raises(self):
        store = _mock_store([(Document(page_content="x"), 0.9)])
        adapter = LangChainVectorStore(store)
        with pytest.raises(RetrievalError, match="body"):
            await adapter.retrieve(
                "q", similarity_threshold=0.5, top_k=3, metadata_key="body", namespace=""
            )

    @pytest.mark.asyncio
    async def test_store_failure_wrapped(self):
        store = _mock_store()
        store.asimilarity_search_with_relevance_scores.side_effect = RuntimeError("boom")
        adapter = LangChainVectorStore(store)
        with pytest.raises(RetrievalError) as exc_info:
            await adapter.retrieve(
                "q", similarity_threshold=0.5, top_k=3, metadata_key="text", namespace=""
            )
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_add_tags_namespace(self):
        store = _mock_store()
        adapter = LangChainVectorStore(store)
        ids = await adapter.add(["a", "b"], metadatas=[{"k": 1}, {}], namespace="ns")
        assert ids == ["a", "b"]
        store.aadd_texts.assert_awaited_once_with(
            ["a", "b"], metadatas=[{"k": 1, "namespace": "ns"}, {"namespace": "ns"}]
        )

    @pytest.mark.asyncio
    async def test_add_rejects_mismatched_metadata(self):
        adapter = LangChainVectorStore(_mock_store())
        with pytest.raises(ValueError):
            await adapter.add(["a", "b"], metadatas=[{}], namespace="")

    @pytest.mark.asyncio
    async def test_delete(self):
        store = _mock_store()
        await LangChainVectorStore(store).delete(["a"], namespace="")
        store.adelete.assert_awaited_once_with(["a"])


class TestInMemoryStoreIntegration:
    @pytest.mark.asyncio
    async def test_threshold_and_namespace(self):
        adapter = LangChainVectorStore(
            CosineInMemoryVectorStore(_KeywordEmbeddings()),
            filter_builder=namespace_predicate,
        )
        await adapter.add(
            ["Ankara is the capital of Turkey.", "Paris is the capital of France."],
            namespace="geo",
        )
        await adapter.add(["Rome was not built in a day."], namespace="sayings")

        facts = await adapter.retrieve(
            "What about Ankara?",
            similarity_threshold=0.5,
            top_k=5,
            metadata_key="text",
            namespace="geo",
        )
        assert facts == ["Ankara is the capital of Turkey."]

        assert await adapter.retrieve(
            "Tell me about Rome",
            similarity_threshold=0.5,
            top_k=5,
            metadata_key="text",
            namespace="geo",
        ) == []

        unfiltered = await adapter.retrieve(
            "Tell me about Rome",
            similarity_threshold=0.5,
            top_k=5,
            metadata_key="text",
            namespace="",
        )
        assert unfiltered == ["Rome was not built in a day."]

"""Shared fixtures: fake vector store and fake chat models."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from ragchat.core.chat import RAGChat
from ragchat.core.context.base import VectorStore
from ragchat.core.history import InMemoryHistory


class FakeVectorStore(VectorStore):
    """Returns canned facts and records every query."""

    def __init__(self, facts: Sequence[str] = ()) -> None:
        self.facts = list(facts)
        self.queries: list[dict[str, Any]] = []
        self.stored: dict[str, tuple[str, dict[str, Any]]] = {}

    async def retrieve(
        self,
        question: str,
        *,
        similarity_threshold: float,
        top_k: int,
        metadata_key: str,
        namespace: str,
    ) -> list[str]:
        self.queries.append(
            {
                "question": question,
                "similarity_threshold": similarity_threshold,
                "top_k": top_k,
                "metadata_key": metadata_key,
                "namespace": namespace,
            }
        )
        return list(self.facts[:top_k])

    async def add(
        self,
        texts: Sequence[str],
        *,
        metadatas: Sequence[dict[str, Any]] | None = None,
        ids: Sequence[str] | None = None,
        namespace: str,
    ) -> list[str]:
        ids = list(ids) if ids is not None else [f"id-{len(self.stored) + i}" for i in range(len(texts))]
        metadatas = metadatas or [{} for _ in texts]
        for id_, text, metadata in zip(ids, texts, metadatas):
            self.stored[id_] = (text, {**metadata, "namespace": namespace})
        return ids

    async def delete(self, ids: Sequence[str], *, namespace: str) -> None:
        for id_ in ids:
            self.stored.pop(id_, None)


@pytest.fixture
def vector() -> FakeVectorStore:
    return FakeVectorStore(["Ankara is the capital of Turkey.", "Paris is in France."])


@pytest.fixture
def model() -> FakeListChatModel:
    return FakeListChatModel(responses=["Ankara.", "Paris."])


@pytest.fixture
def history() -> InMemoryHistory:
    return InMemoryHistory()


@pytest.fixture
def rag_chat(model, vector, history) -> RAGChat:
    return RAGChat(model=model, vector=vector, history=history)

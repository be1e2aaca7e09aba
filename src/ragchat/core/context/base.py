"""Vector store interface used by the context service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


class VectorStore(ABC):
    """Similarity search over facts, partitioned by namespace."""

    @abstractmethod
    async def retrieve(
        self,
        question: str,
        *,
        similarity_threshold: float,
        top_k: int,
        metadata_key: str,
        namespace: str,
    ) -> list[str]:
        """Return at most *top_k* facts scoring at least *similarity_threshold*."""

    @abstractmethod
    async def add(
        self,
        texts: Sequence[str],
        *,
        metadatas: Sequence[dict[str, Any]] | None = None,
        ids: Sequence[str] | None = None,
        namespace: str,
    ) -> list[str]:
        """Embed and store *texts*; returns their IDs."""

    @abstractmethod
    async def delete(self, ids: Sequence[str], *, namespace: str) -> None:
        """Remove stored facts by ID."""

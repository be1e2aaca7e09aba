"""Retrieval of prompt context from a vector store."""

from .base import VectorStore
from .langchain_store import (
    CosineInMemoryVectorStore,
    LangChainVectorStore,
    namespace_predicate,
)
from .service import ContextService

__all__ = [
    "ContextService",
    "CosineInMemoryVectorStore",
    "LangChainVectorStore",
    "VectorStore",
    "namespace_predicate",
]

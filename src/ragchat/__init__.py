"""Retrieval-augmented chat orchestration."""

from ragchat.core.chat import RAGChat
from ragchat.core.errors import (
    ConfigurationError,
    HistoryStoreError,
    ModelError,
    RAGChatError,
    RateLimited,
    RetrievalError,
)
from ragchat.core.history import InMemoryHistory, Message, RedisHistory
from ragchat.core.llm import ChatResult, StreamChatResult, TextChatResult
from ragchat.core.options import ChatOptions
from ragchat.core.prompt import (
    DEFAULT_PROMPT,
    DEFAULT_PROMPT_WITHOUT_RAG,
    PromptParameters,
    prompt_from_template,
)
from ragchat.core.ratelimit import LocalRatelimiter, RatelimitResponse, RedisRatelimiter

__all__ = [
    "ChatOptions",
    "ChatResult",
    "ConfigurationError",
    "DEFAULT_PROMPT",
    "DEFAULT_PROMPT_WITHOUT_RAG",
    "HistoryStoreError",
    "InMemoryHistory",
    "LocalRatelimiter",
    "Message",
    "ModelError",
    "PromptParameters",
    "RAGChat",
    "RAGChatError",
    "RateLimited",
    "RatelimitResponse",
    "RedisHistory",
    "RedisRatelimiter",
    "RetrievalError",
    "StreamChatResult",
    "TextChatResult",
    "prompt_from_template",
]

"""Builders wiring ``RAGChat`` from ``AppConfig`` for the HTTP app.

``build_rag_chat`` is a lifespan dependency: it creates the model,
vector store, rate limiter and ``RAGChat``, and attaches the latter to
``app.state``.  ``get_rag_chat`` reads it back per request.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI, OpenAIEmbeddings
from redis.asyncio import Redis

from ragchat.configs.config import AppConfig, get_app_config
from ragchat.configs.system import LLMConfig, RatelimitConfig, ThirdPartyConfig
from ragchat.infra.lifespan import get_app
from ragchat.infra.redis import build_redis

from .chat import RAGChat
from .context import (
    CosineInMemoryVectorStore,
    LangChainVectorStore,
    namespace_predicate,
)
from .ratelimit import LocalRatelimiter, Ratelimiter, RedisRatelimiter

logger = logging.getLogger(__name__)


def build_llm(llm: LLMConfig, third_party: ThirdPartyConfig) -> BaseChatModel:
    return ChatOpenAI(
        base_url=third_party.model_server_endpoint,
        api_key=third_party.api_key,
        model=llm.model_name,
        temperature=llm.temperature,
        max_tokens=llm.max_tokens,
        timeout=llm.timeout.total_seconds(),
        max_retries=llm.max_retries,
        streaming=True,
    )


def build_embeddings(llm: LLMConfig, third_party: ThirdPartyConfig) -> Embeddings:
    return OpenAIEmbeddings(
        base_url=third_party.model_server_endpoint,
        api_key=third_party.api_key,
        model=llm.embedding_model_name,
        max_retries=llm.max_retries,
    )


def build_ratelimiter(
    config: RatelimitConfig, redis: Redis | None
) -> Ratelimiter | None:
    """Return a limiter when enabled: Redis-backed if available, else local."""
    if not config.enabled:
        return None
    if redis is not None:
        return RedisRatelimiter(redis, config.max_requests, config.window)
    return LocalRatelimiter(config.max_requests, config.window)


async def build_rag_chat(
    app: Annotated[FastAPI, Depends(get_app)],
    redis_client: Annotated[Redis | None, Depends(build_redis)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[None, None]:
    """Create ``RAGChat`` and attach it to ``app.state``."""
    vector = LangChainVectorStore(
        CosineInMemoryVectorStore(build_embeddings(config.llm, config.third_party)),
        filter_builder=namespace_predicate,
    )
    ratelimit = build_ratelimiter(config.ratelimit, redis_client)
    app.state.rag_chat = RAGChat(
        model=build_llm(config.llm, config.third_party),
        vector=vector,
        redis=redis_client,
        ratelimit=ratelimit,
        config=config.chat,
    )
    logger.info(
        "RAGChat ready (model=%s, ratelimit=%s)",
        config.llm.model_name,
        type(ratelimit).__name__ if ratelimit else "disabled",
    )
    yield
    if ratelimit is not None:
        await ratelimit.aclose()


def get_rag_chat(request: Request) -> RAGChat:
    """Return the ``RAGChat`` stored on ``app.state`` by the lifespan."""
    return request.app.state.rag_chat

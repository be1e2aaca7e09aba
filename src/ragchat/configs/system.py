from datetime import timedelta
from typing import Any

from pydantic import BaseModel, Field

from ragchat.core.constants import (
    DEFAULT_CHAT_RATELIMIT_SESSION_ID,
    DEFAULT_CHAT_SESSION_ID,
    DEFAULT_HISTORY_LENGTH,
    DEFAULT_HISTORY_TTL,
    DEFAULT_METADATA_KEY,
    DEFAULT_NAMESPACE,
    DEFAULT_SIMILARITY_THRESHOLD,
    DEFAULT_TOP_K,
)


class ThirdPartyConfig(BaseModel):
    """Configuration for third-party integrations."""

    redis_uri: str | None = Field(
        default=None,
        description="Redis connection URI; in-memory history when unset",
    )
    model_server_endpoint: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI-compatible model server endpoint URL",
    )
    api_key: str | None = Field(
        default=None, description="API key for the model server"
    )


class LLMConfig(BaseModel):
    """Chat model and embedding model settings."""

    model_name: str = Field(default="gpt-4o-mini", description="Chat model name")
    embedding_model_name: str = Field(
        default="text-embedding-3-small", description="Embedding model name"
    )
    temperature: float = Field(default=0.0, description="Sampling temperature")
    max_tokens: int | None = Field(
        default=None, description="Maximum tokens in a single response"
    )
    max_retries: int = Field(
        default=2, description="Retries performed by the model client"
    )
    timeout: timedelta = Field(
        default=timedelta(seconds=60), description="Model request timeout"
    )


class ChatDefaultsConfig(BaseModel):
    """Instance-level chat defaults; per-call options take precedence."""

    streaming: bool = Field(default=False, description="Stream responses by default")
    session_id: str = Field(
        default=DEFAULT_CHAT_SESSION_ID, description="Default chat session ID"
    )
    ratelimit_session_id: str = Field(
        default=DEFAULT_CHAT_RATELIMIT_SESSION_ID,
        description="Default rate-limit session ID",
    )
    history_length: int = Field(
        default=DEFAULT_HISTORY_LENGTH,
        ge=0,
        description="Number of past messages included in the prompt",
    )
    history_ttl: int = Field(
        default=DEFAULT_HISTORY_TTL,
        gt=0,
        description="Seconds a session history is retained",
    )
    similarity_threshold: float = Field(
        default=DEFAULT_SIMILARITY_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Minimum relevance score of retrieved context",
    )
    top_k: int = Field(
        default=DEFAULT_TOP_K, gt=0, description="Number of context items retrieved"
    )
    namespace: str = Field(
        default=DEFAULT_NAMESPACE, description="Vector store namespace"
    )
    metadata_key: str = Field(
        default=DEFAULT_METADATA_KEY,
        description="Metadata key holding the context text",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Metadata attached to assistant messages",
    )
    debug: bool = Field(default=False, description="Log pipeline lifecycle points")


class RatelimitConfig(BaseModel):
    """Per-session sliding-window rate limit for chat requests."""

    enabled: bool = Field(default=False, description="Enable rate limiting")
    max_requests: int = Field(
        default=10, gt=0, description="Requests allowed per window"
    )
    window: timedelta = Field(
        default=timedelta(days=1), description="Sliding window length"
    )


class LoggingConfig(BaseModel):
    """Root logger settings."""

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(
        default=False, description="Emit JSON lines instead of coloured text"
    )


class TracingConfig(BaseModel):
    """OpenTelemetry tracing settings."""

    enabled: bool = Field(default=False, description="Enable OTLP tracing")
    endpoint: str | None = Field(
        default=None, description="OTLP HTTP traces endpoint"
    )
    service_name: str = Field(default="ragchat", description="Service name")
    sample_rate: float = Field(
        default=1.0, ge=0.0, le=1.0, description="Root trace sampling ratio"
    )
    excluded_urls: list[str] = Field(
        default_factory=lambda: ["/health", "/metrics"],
        description="URLs not traced by the FastAPI instrumentor",
    )

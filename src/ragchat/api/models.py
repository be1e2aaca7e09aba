"""Pydantic models for the HTTP API."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from ragchat.core.options import ChatOptions

# Maximum length for chat input
CHAT_INPUT_MAX_LENGTH = 4096


class ChatRequest(BaseModel):
    """Request model for the chat endpoint; unset fields use instance defaults."""

    input: str = Field(description="User message", max_length=CHAT_INPUT_MAX_LENGTH)
    streaming: bool | None = Field(default=None, description="Stream the answer")
    session_id: str | None = Field(default=None, description="Chat session ID")
    ratelimit_session_id: str | None = Field(
        default=None, description="Rate-limit session ID"
    )
    history_length: int | None = Field(default=None, ge=0)
    history_ttl: int | None = Field(default=None, gt=0)
    similarity_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    top_k: int | None = Field(default=None, gt=0)
    namespace: str | None = None
    metadata_key: str | None = None
    metadata: dict[str, Any] | None = None
    disable_rag: bool | None = None

    def to_options(self) -> ChatOptions:
        return ChatOptions(**self.model_dump(exclude={"input"}))


class ChatResponse(BaseModel):
    """Non-streaming chat response."""

    output: str = Field(description="Complete response text")


class AddContextRequest(BaseModel):
    texts: list[str] = Field(min_length=1, description="Facts to store")
    metadata: dict[str, Any] | None = Field(
        default=None, description="Metadata attached to every text"
    )
    ids: list[str] | None = None
    namespace: str | None = None


class AddContextResponse(BaseModel):
    ids: list[str]


class RemoveContextRequest(BaseModel):
    ids: list[str] = Field(min_length=1)
    namespace: str | None = None


class HistoryMessage(BaseModel):
    id: str
    role: Literal["user", "assistant"]
    content: str
    metadata: dict[str, Any] | None = None


class HistoryResponse(BaseModel):
    session_id: str
    messages: list[HistoryMessage] = Field(description="Oldest first")


# ---------------------------------------------------------------------------
# Streaming events
# ---------------------------------------------------------------------------


class ChunkEvent(BaseModel):
    """Streamed text chunk."""

    type: Literal["chunk"] = "chunk"
    content: str = Field(description="Text chunk")


class EndOfStreamEvent(BaseModel):
    """End of stream marker event."""

    type: Literal["end"] = "end"


class ErrorEvent(BaseModel):
    """Stream-level error event."""

    type: Literal["error"] = "error"
    message: str = Field(description="Error message")
    code: str | None = Field(default=None, description="Error code")


StreamEvent = ChunkEvent | EndOfStreamEvent | ErrorEvent


def format_sse(event: StreamEvent) -> str:
    return f"data: {event.model_dump_json()}\n\n"

"""Chat, context and history endpoints."""

import asyncio
import logging
from collections.abc import AsyncGenerator, AsyncIterator

from fastapi import APIRouter, status
from fastapi.responses import StreamingResponse

from ragchat.core.history import Message

from .deps import RAGChatDep
from .models import (
    AddContextRequest,
    AddContextResponse,
    ChatRequest,
    ChatResponse,
    ChunkEvent,
    EndOfStreamEvent,
    ErrorEvent,
    HistoryMessage,
    HistoryResponse,
    RemoveContextRequest,
    format_sse,
)

logger = logging.getLogger(__name__)

STREAMING_RESPONSE_MEDIA_TYPE = "text/event-stream"
STREAMING_RESPONSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

# Upper bound on messages returned by the history endpoint
HISTORY_PAGE_SIZE = 100

router = APIRouter(prefix="/api/v1", tags=["chat"])


async def sse_stream(chunks: AsyncIterator[str]) -> AsyncGenerator[str, None]:
    """Format text chunks as SSE; a failure ends the stream with an error event."""
    try:
        async for chunk in chunks:
            yield format_sse(ChunkEvent(content=chunk))
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        logger.warning("Chat stream failed", exc_info=True)
        yield format_sse(ErrorEvent(message=str(exc), code=type(exc).__name__))
        return
    yield format_sse(EndOfStreamEvent())


@router.post("/chat", response_model=None)
async def chat(
    chat_request: ChatRequest,
    rag_chat: RAGChatDep,
) -> ChatResponse | StreamingResponse:
    """Answer a chat message as JSON, or as Server-Sent Events when streaming.

    Rate-limited requests fail with 429 before any event is sent.
    """
    result = await rag_chat.chat(chat_request.input, chat_request.to_options())
    if result.is_stream:
        return StreamingResponse(
            sse_stream(result.output),
            media_type=STREAMING_RESPONSE_MEDIA_TYPE,
            headers=STREAMING_RESPONSE_HEADERS,
        )
    return ChatResponse(output=result.output)


@router.post("/context", status_code=status.HTTP_201_CREATED)
async def add_context(
    body: AddContextRequest, rag_chat: RAGChatDep
) -> AddContextResponse:
    ids = await rag_chat.context.add_context(
        body.texts, metadata=body.metadata, ids=body.ids, namespace=body.namespace
    )
    return AddContextResponse(ids=ids)


@router.delete("/context", status_code=status.HTTP_204_NO_CONTENT)
async def remove_context(body: RemoveContextRequest, rag_chat: RAGChatDep) -> None:
    await rag_chat.context.remove_context(body.ids, namespace=body.namespace)


def _to_history_message(message: Message) -> HistoryMessage:
    return HistoryMessage(**message.model_dump())


@router.get("/history/{session_id}")
async def get_history(session_id: str, rag_chat: RAGChatDep) -> HistoryResponse:
    messages = await rag_chat.history.service.get_messages(
        session_id, HISTORY_PAGE_SIZE
    )
    return HistoryResponse(
        session_id=session_id,
        messages=[_to_history_message(m) for m in reversed(messages)],
    )


@router.delete("/history/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_history(session_id: str, rag_chat: RAGChatDep) -> None:
    await rag_chat.history.service.delete_messages(session_id)

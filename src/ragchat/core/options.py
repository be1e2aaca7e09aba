"""Per-call chat options and their resolution against instance defaults.

Resolution order per field: call-site value, then the instance's
:class:`ChatDefaultsConfig`, whose own field defaults are the global
constants.  The resolved record never carries ``None`` for a
configuration field; only the hooks stay optional.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from .prompt import DEFAULT_PROMPT_WITHOUT_RAG, PromptFn

if TYPE_CHECKING:
    from ragchat.configs.system import ChatDefaultsConfig

    from .history.base import Message
    from .ratelimit.base import RatelimitResponse

# Hooks may be plain functions or coroutine functions.
ChunkHook = Callable[[str], Union[None, Awaitable[None]]]
CompleteHook = Callable[[str], Union[None, Awaitable[None]]]
HistoryFetchedHook = Callable[
    [list["Message"]], Union[list["Message"], None, Awaitable[list["Message"] | None]]
]
ContextFetchedHook = Callable[
    [list[str]], Union[list[str], None, Awaitable[list[str] | None]]
]
RatelimitDetailsHook = Callable[["RatelimitResponse"], Union[None, Awaitable[None]]]


@dataclass
class ChatOptions:
    """Call-site options; every field is optional."""

    streaming: bool | None = None
    session_id: str | None = None
    ratelimit_session_id: str | None = None
    history_length: int | None = None
    history_ttl: int | None = None
    similarity_threshold: float | None = None
    top_k: int | None = None
    namespace: str | None = None
    metadata_key: str | None = None
    metadata: dict[str, Any] | None = None
    disable_rag: bool | None = None
    prompt_fn: PromptFn | None = None

    on_chunk: ChunkHook | None = None
    on_complete: CompleteHook | None = None
    on_chat_history_fetched: HistoryFetchedHook | None = None
    on_context_fetched: ContextFetchedHook | None = None
    ratelimit_details: RatelimitDetailsHook | None = None


@dataclass
class ResolvedChatOptions:
    """Fully-populated options for one ``chat()`` call."""

    streaming: bool
    session_id: str
    ratelimit_session_id: str
    history_length: int
    history_ttl: int
    similarity_threshold: float
    top_k: int
    namespace: str
    metadata_key: str
    metadata: dict[str, Any]
    disable_rag: bool
    prompt_fn: PromptFn

    on_chunk: ChunkHook | None = None
    on_complete: CompleteHook | None = None
    on_chat_history_fetched: HistoryFetchedHook | None = None
    on_context_fetched: ContextFetchedHook | None = None
    ratelimit_details: RatelimitDetailsHook | None = None


def _pick(value: Any, default: Any) -> Any:
    return default if value is None else value


def resolve_chat_options(
    options: ChatOptions | None,
    defaults: "ChatDefaultsConfig",
    prompt_fn: PromptFn,
) -> ResolvedChatOptions:
    """Merge *options* over *defaults*.

    When retrieval is disabled and no prompt function was given, the
    no-context template replaces the instance prompt so a context
    placeholder is never rendered empty.
    """
    opts = options or ChatOptions()
    disable_rag = _pick(opts.disable_rag, False)

    if opts.prompt_fn is not None:
        resolved_prompt = opts.prompt_fn
    elif disable_rag:
        resolved_prompt = DEFAULT_PROMPT_WITHOUT_RAG
    else:
        resolved_prompt = prompt_fn

    return ResolvedChatOptions(
        streaming=_pick(opts.streaming, defaults.streaming),
        session_id=_pick(opts.session_id, defaults.session_id),
        ratelimit_session_id=_pick(
            opts.ratelimit_session_id, defaults.ratelimit_session_id
        ),
        history_length=_pick(opts.history_length, defaults.history_length),
        history_ttl=_pick(opts.history_ttl, defaults.history_ttl),
        similarity_threshold=_pick(
            opts.similarity_threshold, defaults.similarity_threshold
        ),
        top_k=_pick(opts.top_k, defaults.top_k),
        namespace=_pick(opts.namespace, defaults.namespace),
        metadata_key=_pick(opts.metadata_key, defaults.metadata_key),
        metadata=dict(_pick(opts.metadata, defaults.metadata)),
        disable_rag=disable_rag,
        prompt_fn=resolved_prompt,
        on_chunk=opts.on_chunk,
        on_complete=opts.on_complete,
        on_chat_history_fetched=opts.on_chat_history_fetched,
        on_context_fetched=opts.on_context_fetched,
        ratelimit_details=opts.ratelimit_details,
    )

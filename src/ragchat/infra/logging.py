"""Logging bootstrap for the ragchat service.

``setup_logging`` installs a single stdout handler on the root logger.
Records are rendered as JSON lines (``json_output=True``) or as coloured
development lines through uvicorn's formatter.

Every record is tagged with the chat session being served (bound by
``RAGChat.chat`` through :func:`bind_chat_session`) and, when a span is
active, with the OpenTelemetry trace and span IDs.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from opentelemetry import trace

from ragchat.configs.system import LoggingConfig

_chat_session: ContextVar[str] = ContextVar("ragchat_chat_session", default="")

# Logger of the debug observer; kept at INFO when chat debugging is on.
OBSERVER_LOGGER = "ragchat.core.observer"

_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "opentelemetry")
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

_DEV_FORMAT = "%(levelprefix)s %(asctime)s %(name)s [%(session_id)s]  %(message)s"
_DEV_DATEFMT = "%H:%M:%S"
_JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(session_id)s %(trace_id)s %(span_id)s"


@contextmanager
def bind_chat_session(session_id: str) -> Iterator[None]:
    """Tag log records emitted inside the block with *session_id*."""
    token = _chat_session.set(session_id)
    try:
        yield
    finally:
        _chat_session.reset(token)


def current_chat_session() -> str:
    """Session ID bound to the running context, or ``""`` outside a chat."""
    return _chat_session.get()


class _ChatContextFilter(logging.Filter):
    """Adds ``session_id``, ``trace_id`` and ``span_id`` to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = current_chat_session()  # type: ignore[attr-defined]
        ctx = trace.get_current_span().get_span_context()
        if ctx.is_valid:
            record.trace_id = format(ctx.trace_id, "032x")  # type: ignore[attr-defined]
            record.span_id = format(ctx.span_id, "016x")  # type: ignore[attr-defined]
        else:
            record.trace_id = ""  # type: ignore[attr-defined]
            record.span_id = ""  # type: ignore[attr-defined]
        return True


def _build_formatter(json_output: bool) -> logging.Formatter:
    if json_output:
        from pythonjsonlogger.json import JsonFormatter

        return JsonFormatter(
            fmt=_JSON_FORMAT,
            rename_fields={
                "asctime": "timestamp",
                "levelname": "level",
                "name": "logger",
            },
            defaults={"session_id": "", "trace_id": "", "span_id": ""},
        )

    from uvicorn.logging import DefaultFormatter

    return DefaultFormatter(fmt=_DEV_FORMAT, datefmt=_DEV_DATEFMT, use_colors=True)


def setup_logging(config: LoggingConfig | None = None, *, debug: bool = False) -> None:
    """Configure the root logger once at startup.

    With *debug* the lifecycle lines of the chat observer stay visible
    even when the root level is above INFO.
    """
    config = config or LoggingConfig()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_ChatContextFilter())
    handler.setFormatter(_build_formatter(config.json_output))

    root = logging.getLogger()
    root.setLevel(config.level.upper())
    root.handlers = [handler]

    for name in _UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if debug:
        logging.getLogger(OBSERVER_LOGGER).setLevel(logging.INFO)

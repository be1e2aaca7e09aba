"""OpenTelemetry bootstrap -- tracing initialisation and span names.

Configures a ``TracerProvider`` with an OTLP HTTP exporter when tracing is
enabled via ``TracingConfig``.  When disabled the module is a graceful no-op
and ``tracer`` hands out non-recording spans.

Usage::

    from ragchat.infra.telemetry import SPAN_CHAT, tracer

    with tracer.start_as_current_span(SPAN_CHAT) as span:
        ...
"""

from __future__ import annotations

import logging

from opentelemetry import trace
from opentelemetry.trace import format_trace_id

from ragchat.configs.system import TracingConfig

logger = logging.getLogger(__name__)

tracer = trace.get_tracer("ragchat")

# ---------------------------------------------------------------------------
# Span names
# ---------------------------------------------------------------------------

SPAN_CHAT = "ragchat.chat"
SPAN_RATELIMIT = "ragchat.ratelimit"
SPAN_RETRIEVE = "ragchat.retrieve"
SPAN_HISTORY_LOAD = "ragchat.history.load"
SPAN_LLM_CALL = "ragchat.llm"

# ---------------------------------------------------------------------------
# Span attribute keys
# ---------------------------------------------------------------------------

ATTR_CHAT_SESSION_ID = "chat.session_id"
ATTR_CHAT_STREAMING = "chat.streaming"
ATTR_CHAT_DISABLE_RAG = "chat.disable_rag"
ATTR_CHAT_QUESTION_LEN = "chat.question_len"

ATTR_RATELIMIT_SUCCESS = "ratelimit.success"

ATTR_RETRIEVE_NAMESPACE = "retrieve.namespace"
ATTR_RETRIEVE_TOP_K = "retrieve.top_k"
ATTR_RETRIEVE_THRESHOLD = "retrieve.threshold"
ATTR_RETRIEVE_RESULT_COUNT = "retrieve.result_count"

ATTR_HISTORY_MESSAGE_COUNT = "history.message_count"

ATTR_LLM_PROMPT_LEN = "llm.prompt_len"


def init_telemetry(
    app: object | None = None,
    settings: TracingConfig | None = None,
) -> None:
    """Initialise the OTEL ``TracerProvider``.

    Parameters
    ----------
    app:
        Optional FastAPI application, instrumented for inbound spans.
    settings:
        Tracing configuration.  When ``None`` or ``enabled`` is
        ``False``, this function is a no-op.
    """
    if settings is None or not settings.enabled:
        logger.info("OpenTelemetry tracing disabled.")
        return

    if not settings.endpoint:
        logger.warning(
            "Tracing enabled but no endpoint configured -- "
            "skipping OpenTelemetry setup."
        )
        return

    from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
        OTLPSpanExporter,
    )
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

    resource = Resource.create({"service.name": settings.service_name})
    sampler = ParentBased(root=TraceIdRatioBased(settings.sample_rate))
    provider = TracerProvider(resource=resource, sampler=sampler)
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.endpoint))
    )
    trace.set_tracer_provider(provider)

    if app is not None:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        excluded = ",".join(settings.excluded_urls) if settings.excluded_urls else ""
        FastAPIInstrumentor.instrument_app(app, excluded_urls=excluded)

    logger.info(
        "OpenTelemetry tracing initialised (service=%s).", settings.service_name
    )


def get_current_trace_id() -> str | None:
    """Return the active trace ID as a 32-char hex string, or ``None``."""
    ctx = trace.get_current_span().get_span_context()
    if ctx is None or not ctx.is_valid:
        return None
    return format_trace_id(ctx.trace_id)

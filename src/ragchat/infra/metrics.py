"""Prometheus metrics for the chat pipeline.

All metrics use the ``ragchat_`` prefix.  The HTTP app exposes them on
``/metrics``.
"""

from prometheus_client import Counter, Histogram

CHAT_REQUESTS_TOTAL = Counter(
    "ragchat_chat_requests_total",
    "Total chat requests, by mode and outcome",
    ["mode", "status"],  # mode: stream | text; status: ok | error | ratelimited | cancelled
)

RATELIMIT_REJECTIONS_TOTAL = Counter(
    "ragchat_ratelimit_rejections_total",
    "Chat requests rejected by the rate limiter",
)

STREAM_CHUNKS_TOTAL = Counter(
    "ragchat_stream_chunks_total",
    "Text chunks delivered on streaming responses",
)

RETRIEVAL_LATENCY_SECONDS = Histogram(
    "ragchat_retrieval_latency_seconds",
    "Vector store query latency",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5),
)

CONTEXT_FACTS_RETURNED = Histogram(
    "ragchat_context_facts_returned",
    "Number of context facts returned per retrieval",
    buckets=(0, 1, 2, 3, 5, 10, 20),
)

MODE_STREAM = "stream"
MODE_TEXT = "text"

STATUS_OK = "ok"
STATUS_ERROR = "error"
STATUS_RATELIMITED = "ratelimited"
STATUS_CANCELLED = "cancelled"

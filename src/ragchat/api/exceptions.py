"""Global exception handlers mapping pipeline errors to HTTP responses.

| Error                | Status |
|----------------------|--------|
| ``RateLimited``      | 429    |
| ``ConfigurationError`` | 500  |
| other ``RAGChatError`` (store, retrieval, model output) | 502 |

Bodies carry ``detail``, ``code`` and, when tracing is active, the
``trace_id`` of the failed request.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ragchat.core.errors import ConfigurationError, RAGChatError, RateLimited
from ragchat.infra.telemetry import get_current_trace_id

RATELIMIT_RESET_HEADER = "X-RateLimit-Reset"
CONFIGURATION_ERROR_CODE = "CONFIGURATION_ERROR"


def _error_body(exc: Exception, code: str, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"detail": str(exc), "code": code, **extra}
    trace_id = get_current_trace_id()
    if trace_id is not None:
        body["trace_id"] = trace_id
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """Register the handlers on ``app``; must run before startup."""

    @app.exception_handler(RateLimited)
    async def handle_rate_limited(request: Request, exc: RateLimited) -> JSONResponse:
        headers = {}
        if exc.reset is not None:
            headers[RATELIMIT_RESET_HEADER] = str(exc.reset)
        return JSONResponse(
            status_code=429,
            content=_error_body(exc, exc.code, reset=exc.reset),
            headers=headers,
        )

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content=_error_body(exc, CONFIGURATION_ERROR_CODE),
        )

    @app.exception_handler(RAGChatError)
    async def handle_ragchat_error(request: Request, exc: RAGChatError) -> JSONResponse:
        return JSONResponse(
            status_code=502,
            content=_error_body(exc, type(exc).__name__),
        )

"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

import uvicorn
from fastapi import Depends, FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from ragchat.api.chat import router as chat_router
from ragchat.api.exceptions import register_exception_handlers
from ragchat.configs.config import get_app_config
from ragchat.core.deps import build_rag_chat
from ragchat.infra.lifespan import inject
from ragchat.infra.logging import setup_logging
from ragchat.infra.telemetry import init_telemetry

logger = logging.getLogger(__name__)


@inject
async def lifespan(
    app: FastAPI,
    _rag_chat: Annotated[None, Depends(build_rag_chat)],
) -> AsyncGenerator[None, None]:
    """Application lifespan: every resource is built by its dependency."""
    logger.info("ragchat started.")
    yield
    logger.info("ragchat shutting down.")


def get_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    config = get_app_config()
    setup_logging(config.logging, debug=config.chat.debug)

    app = FastAPI(
        title="ragchat",
        description="Retrieval-augmented chat over a vector store",
        version="0.1.0",
        lifespan=lifespan,
    )
    init_telemetry(app, config.tracing)
    register_exception_handlers(app)
    Instrumentator().instrument(app).expose(app, include_in_schema=False)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(chat_router)
    return app


def main() -> None:
    uvicorn.run("ragchat.app:get_app", factory=True, host="0.0.0.0", port=8080)


if __name__ == "__main__":
    main()

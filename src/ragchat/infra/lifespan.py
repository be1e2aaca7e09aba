"""``Depends()`` support for the application lifespan.

The chat service builds its long-lived resources (Redis client, model,
vector store, ``RAGChat``) as dependency generators.  :func:`inject`
resolves them with FastAPI's own dependency solver when the app starts
and unwinds them in reverse order when it stops, so the lifespan itself
only declares what it needs.

Adapted from https://github.com/fastapi/fastapi/discussions/11742
"""

import logging
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import AsyncExitStack, asynccontextmanager
from functools import partial
from typing import Any

from fastapi import FastAPI, Request
from fastapi.dependencies.utils import get_dependant, solve_dependencies

from ragchat.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

LIFESPAN_SCOPE_HEADER = (b"x-ragchat-scope", b"lifespan")

# Minimal HTTP scope; solve_dependencies needs a request and none exists
# during startup.
_STARTUP_SCOPE: dict[str, Any] = {
    "type": "http",
    "http_version": "1.1",
    "method": "GET",
    "scheme": "http",
    "path": "/",
    "raw_path": b"/",
    "query_string": b"",
    "root_path": "",
    "headers": (LIFESPAN_SCOPE_HEADER,),
    "client": None,
    "server": None,
}


def get_app(request: Request) -> FastAPI:
    """Dependency returning the application being started."""
    return request.app


def _startup_request(app: FastAPI) -> Request:
    return Request(scope={**_STARTUP_SCOPE, "app": app, "state": app.state})


def _describe_errors(errors: Sequence[Any]) -> str:
    names = [".".join(str(part) for part in err.get("loc", ())) for err in errors]
    return ", ".join(name for name in names if name) or "unknown"


def inject(
    lifespan: Callable[..., AsyncIterator[None]],
) -> Callable[[FastAPI], Any]:
    """Turn a lifespan declaring ``Depends()`` parameters into a plain one.

    ``app.dependency_overrides`` applies here as it does for routes.

    Raises:
        ConfigurationError: at startup, when a lifespan parameter asks for
            request data (query, header, body) that cannot exist there.
    """

    @asynccontextmanager
    async def run(app: FastAPI) -> AsyncIterator[None]:
        dependant = get_dependant(path="/", call=partial(lifespan, app))
        async with AsyncExitStack() as resources:
            solved = await solve_dependencies(
                request=_startup_request(app),
                dependant=dependant,
                async_exit_stack=resources,
                embed_body_fields=False,
                dependency_overrides_provider=app,
            )
            if solved.errors:
                raise ConfigurationError(
                    f"Unresolvable lifespan dependencies: {_describe_errors(solved.errors)}"
                )
            logger.debug("Resolved lifespan dependencies: %s", sorted(solved.values))
            async with asynccontextmanager(lifespan)(app, **solved.values):
                yield
        logger.debug("Lifespan resources released")

    return run

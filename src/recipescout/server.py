"""HTTP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState inside the Starlette lifespan
- Register routes, CORS and optional static files
- Start uvicorn
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

import recipescout.handlers.recipe as recipe_handler
import recipescout.handlers.search as search_handler
from recipescout import __version__
from recipescout.cache import RecipeCache
from recipescout.config import Settings
from recipescout.errors import ErrorCode, RecipeScoutError
from recipescout.fetcher import PageFetcher, build_http_client
from recipescout.pipeline import RecipePipeline
from recipescout.search import SearchOrchestrator
from recipescout.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# State and lifespan
# ---------------------------------------------------------------------------


def build_state(settings: Settings) -> AppState:
    """Wire the HTTP client, cache, pipeline and orchestrator together."""
    http_client = build_http_client(settings.fetcher)
    cache = RecipeCache(
        ttl=timedelta(seconds=settings.cache.ttl_seconds),
        sweep_interval=timedelta(seconds=settings.cache.effective_sweep_interval),
    )
    fetcher = PageFetcher(http_client, max_redirects=settings.fetcher.max_redirects)
    pipeline = RecipePipeline(cache, fetcher)
    orchestrator = SearchOrchestrator(cache, pipeline)
    return AppState(
        settings=settings,
        cache=cache,
        pipeline=pipeline,
        orchestrator=orchestrator,
        http_client=http_client,
    )


def _make_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        """Create and tear down all shared resources for the server's lifetime."""
        log.info("server_starting", version=__version__)

        state = build_state(settings)
        state.cache.init()
        app.state.app_state = state

        log.info(
            "server_started",
            version=__version__,
            host=settings.server.host,
            port=settings.server.port,
            cache_ttl_seconds=settings.cache.ttl_seconds,
        )

        try:
            yield
        finally:
            await state.orchestrator.shutdown()
            await state.cache.shutdown()
            if state.http_client is not None:
                await state.http_client.aclose()
            log.info("server_stopping")

    return lifespan


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def _error_response(error: RecipeScoutError) -> JSONResponse:
    return JSONResponse(error.to_dict(), status_code=error.status_code)


def _internal_error(message: str) -> JSONResponse:
    error = RecipeScoutError(code=ErrorCode.INTERNAL_ERROR, message=message)
    return _error_response(error)


async def search(request: Request) -> JSONResponse:
    """Return one result stub per known site for the ``query`` parameter."""
    state: AppState = request.app.state.app_state
    try:
        body = await search_handler.handle(request.query_params.get("query"), state)
    except RecipeScoutError as exc:
        log.warning("request_error", route="search", code=exc.code, message=exc.message)
        return _error_response(exc)
    except Exception:
        log.error("request_unexpected_error", route="search", exc_info=True)
        return _internal_error("Search service error")
    return JSONResponse(body)


async def recipe(request: Request) -> JSONResponse:
    """Return full recipe detail for the ``url`` parameter."""
    state: AppState = request.app.state.app_state
    try:
        body = await recipe_handler.handle(request.query_params.get("url"), state)
    except RecipeScoutError as exc:
        log.warning("request_error", route="recipe", code=exc.code, message=exc.message)
        return _error_response(exc)
    except Exception:
        log.error("request_unexpected_error", route="recipe", exc_info=True)
        return _internal_error("Failed to fetch recipe details")
    return JSONResponse(body)


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def create_app(settings: Settings | None = None, state: AppState | None = None) -> Starlette:
    """Build the Starlette application.

    With ``state`` given the app uses it as-is and runs no lifespan; the
    caller owns startup and shutdown. Otherwise the lifespan builds state
    from ``settings``.
    """
    if settings is None:
        settings = state.settings if state is not None else Settings()

    routes: list[Route | Mount] = [
        Route("/api/search", search, methods=["GET"]),
        Route("/api/recipe", recipe, methods=["GET"]),
        Route("/api/health", health, methods=["GET"]),
    ]
    if settings.server.static_dir:
        routes.append(
            Mount("/", app=StaticFiles(directory=settings.server.static_dir, html=True))
        )

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=settings.server.cors_allow_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    ]

    app = Starlette(
        routes=routes,
        middleware=middleware,
        lifespan=_make_lifespan(settings) if state is None else None,
    )
    if state is not None:
        app.state.app_state = state
    return app


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()
    _setup_logging(settings)

    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )


if __name__ == "__main__":
    main()

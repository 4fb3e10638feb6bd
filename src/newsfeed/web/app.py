"""FastAPI application factory for the newsfeed web API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from newsfeed.config import Config, SourcesConfig
from newsfeed.errors import FeedError
from newsfeed.store.base import FeedStore
from newsfeed.web.routes import health_router, router

logger = logging.getLogger(__name__)


async def _feed_error_handler(request: Request, exc: FeedError) -> JSONResponse:
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse({"error": str(exc)}, status_code=500)


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    logger.warning("%s %s rejected: %s", request.method, request.url.path, problems)
    return JSONResponse({"error": f"Invalid request: {problems}"}, status_code=500)


def create_app(
    config: Config, store: FeedStore, sources: SourcesConfig, lifespan=None
) -> FastAPI:
    """Build and return a configured FastAPI application."""
    app = FastAPI(title="newsfeed", docs_url="/api/docs", lifespan=lifespan)
    app.state.store = store
    app.state.sources = sources
    app.state.api_key = config.feed_api_key
    app.state.max_items = config.max_items_per_source
    app.state.fetch_timeout = config.fetch_timeout_seconds
    app.add_exception_handler(FeedError, _feed_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(health_router)
    app.include_router(router)
    return app

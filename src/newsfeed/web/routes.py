"""API route handlers for the newsfeed web API."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Query, Request
from fastapi.responses import JSONResponse

from newsfeed.errors import InvalidToken, StoreUnavailable
from newsfeed.ingestion.push import ingest_pushed
from newsfeed.ingestion.registry import get_source_type
from newsfeed.jobs import run_ingestion
from newsfeed.registration import register
from newsfeed.store.base import USER_GROUP, FeedKey
from newsfeed.web.models import (
    ErrorResponse,
    FeedResponse,
    InitializeResponse,
    RegistrationRequest,
    RegistrationResponse,
    SourceResult,
    WebhookResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()
health_router = APIRouter()

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {500: {"model": ErrorResponse}}


def _token_user(request: Request) -> str | None:
    """User id from the request's bearer token, or None if absent or invalid."""
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    try:
        return request.app.state.store.verify_token(token.strip())
    except InvalidToken as exc:
        logger.info("Rejected feed token: %s", exc)
        return None


@health_router.get("/health")
def health(request: Request) -> JSONResponse:
    """Check feed store connectivity and return health status."""
    try:
        request.app.state.store.ping()
        return JSONResponse({"status": "healthy", "store": "ok"})
    except StoreUnavailable as exc:
        logger.warning("Health check failed: %s", exc)
        return JSONResponse(
            {"status": "unhealthy", "store": "error", "detail": str(exc)},
            status_code=503,
        )


@router.post(
    "/registration",
    response_model=RegistrationResponse,
    responses=_ERROR_RESPONSES,
)
def registration(request: Request, body: RegistrationRequest) -> RegistrationResponse:
    state = request.app.state
    result = register(state.store, body.username, state.sources.follow)
    return RegistrationResponse(
        token=result.token,
        api_key=state.api_key,
        username=result.username,
    )


@router.post("/initialize", response_model=InitializeResponse, responses=_ERROR_RESPONSES)
def initialize(request: Request) -> Any:
    state = request.app.state
    run = run_ingestion(
        state.store,
        state.sources.sources,
        max_items=state.max_items,
        timeout=state.fetch_timeout,
    )
    if not run.ok:
        failures = "; ".join(f"{name}: {msg}" for name, msg in run.errors.items())
        return JSONResponse({"error": f"Ingestion failed for {failures}"}, status_code=500)
    return InitializeResponse(
        sources={
            name: SourceResult(**result.to_dict()) for name, result in run.results.items()
        }
    )


@router.post(
    "/{source}-webhook",
    response_model=WebhookResponse,
    responses={404: {"model": ErrorResponse}, **_ERROR_RESPONSES},
)
def webhook(request: Request, source: str, payload: Any = Body(...)) -> Any:
    if get_source_type(source) is None:
        return JSONResponse({"error": f"Unknown source '{source}'"}, status_code=404)
    activity_id = ingest_pushed(request.app.state.store, source, payload)
    return WebhookResponse(id=activity_id)


@router.get(
    "/feeds/{group}/{slug}",
    response_model=FeedResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, **_ERROR_RESPONSES},
)
def read_feed(
    request: Request,
    group: str,
    slug: str,
    limit: int = Query(25, ge=1, le=100),
) -> Any:
    """Read a feed. User feeds require that user's registration token."""
    feed = FeedKey(group, slug)
    if feed.group == USER_GROUP:
        user_id = _token_user(request)
        if user_id is None:
            return JSONResponse({"error": "Missing or invalid bearer token"}, status_code=401)
        if user_id != feed.slug:
            return JSONResponse({"error": f"Token does not grant access to {feed}"}, status_code=403)
    activities = request.app.state.store.read_feed(feed, limit=limit)
    return FeedResponse(feed=str(feed), activities=activities)

"""Pydantic v2 request and response models for the newsfeed web API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------
class RegistrationRequest(BaseModel):
    username: str = Field(min_length=1)


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    api_key: str = Field(alias="apiKey")
    username: str


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------
class SourceResult(BaseModel):
    submitted: int
    failed: int


class InitializeResponse(BaseModel):
    sources: dict[str, SourceResult]


class WebhookResponse(BaseModel):
    id: str


# ---------------------------------------------------------------------------
# Feeds
# ---------------------------------------------------------------------------
class FeedResponse(BaseModel):
    feed: str
    activities: list[dict[str, Any]]


class ErrorResponse(BaseModel):
    error: str

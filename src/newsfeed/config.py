"""Configuration loading and validation."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class Config:
    """Application configuration. All values sourced from environment variables."""

    # Required
    feed_api_key: str
    feed_api_secret: str
    database_path: str

    # Optional — Feed store
    feed_store: str = "sqlite"
    sqlite_busy_timeout_seconds: float = 5.0

    # Optional — Ingestion
    sources_config_path: str = "./config/sources.json"
    fetch_interval_minutes: int = 60
    fetch_timeout_seconds: float = 30.0
    max_items_per_source: int = 25

    # Optional — Web
    web_host: str = "0.0.0.0"
    web_port: int = 8080

    # Optional — Application
    log_level: str = "INFO"
    log_format: str = "json"
    app_env: str = "production"


@dataclass(frozen=True)
class SourcesConfig:
    """Deploy-time source configuration.

    ``sources`` are pull source configs passed to ``ingest_once``;
    ``follow`` names the source feeds every new user follows.
    """

    sources: list[dict] = field(default_factory=list)
    follow: list[str] = field(default_factory=list)


_REQUIRED_VARS = [
    "FEED_API_KEY",
    "FEED_API_SECRET",
    "DATABASE_PATH",
]

_FEED_STORES = ("sqlite", "memory")


def load_config(env_path: str | Path | None = None) -> Config:
    """Load configuration from environment variables.

    Loads a .env file if present (for local development), then validates
    that all required variables are set. Raises ValueError listing any
    missing variables.
    """
    load_dotenv(dotenv_path=env_path)

    missing = [var for var in _REQUIRED_VARS if not os.environ.get(var)]
    if missing:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    feed_store = os.environ.get("FEED_STORE", "sqlite")
    if feed_store not in _FEED_STORES:
        raise ValueError(
            f"FEED_STORE must be one of {', '.join(_FEED_STORES)}, got '{feed_store}'"
        )

    return Config(
        # Required
        feed_api_key=os.environ["FEED_API_KEY"],
        feed_api_secret=os.environ["FEED_API_SECRET"],
        database_path=os.environ["DATABASE_PATH"],
        # Optional — Feed store
        feed_store=feed_store,
        sqlite_busy_timeout_seconds=float(os.environ.get("SQLITE_BUSY_TIMEOUT_SECONDS", "5")),
        # Optional — Ingestion
        sources_config_path=os.environ.get("SOURCES_CONFIG_PATH", "./config/sources.json"),
        fetch_interval_minutes=int(os.environ.get("FETCH_INTERVAL_MINUTES", "60")),
        fetch_timeout_seconds=float(os.environ.get("FETCH_TIMEOUT_SECONDS", "30")),
        max_items_per_source=int(os.environ.get("MAX_ITEMS_PER_SOURCE", "25")),
        # Optional — Web
        web_host=os.environ.get("WEB_HOST", "0.0.0.0"),
        web_port=int(os.environ.get("WEB_PORT", "8080")),
        # Optional — Application
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        log_format=os.environ.get("LOG_FORMAT", "json"),
        app_env=os.environ.get("APP_ENV", "production"),
    )


def load_sources(path: str | Path) -> SourcesConfig:
    """Read the JSON sources file. Raises ValueError if it is malformed."""
    with open(path) as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Sources config {path} must be a JSON object")
    sources = data.get("sources", [])
    follow = data.get("follow", [])
    if not isinstance(sources, list) or not all(isinstance(s, dict) for s in sources):
        raise ValueError(f"'sources' in {path} must be a list of objects")
    if not isinstance(follow, list) or not all(isinstance(s, str) for s in follow):
        raise ValueError(f"'follow' in {path} must be a list of source names")
    return SourcesConfig(sources=sources, follow=follow)

"""Application entry point — runs the ingestion scheduler and web server in one process."""

from __future__ import annotations

import json
import logging
import sys
import threading
from contextlib import asynccontextmanager

import uvicorn
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from newsfeed.config import Config, load_config, load_sources
from newsfeed.jobs import run_scheduled_ingestion
from newsfeed.store import InMemoryFeedStore, SQLiteFeedStore
from newsfeed.store.base import FeedStore
from newsfeed.web.app import create_app

logger = logging.getLogger("newsfeed")


def _setup_logging(log_level: str, log_format: str) -> None:
    """Configure root logger based on config."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps(
                {
                    "time": "%(asctime)s",
                    "level": "%(levelname)s",
                    "logger": "%(name)s",
                    "message": "%(message)s",
                }
            )
        )
    else:
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def build_store(config: Config) -> FeedStore:
    """Construct the process-wide feed store selected by FEED_STORE."""
    if config.feed_store == "memory":
        return InMemoryFeedStore(config.feed_api_secret)
    return SQLiteFeedStore(
        config.database_path,
        config.feed_api_secret,
        busy_timeout=config.sqlite_busy_timeout_seconds,
    )


def _build_scheduler(config: Config, store: FeedStore) -> BackgroundScheduler:
    """Create a BackgroundScheduler that polls all pull sources on an interval."""
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        run_scheduled_ingestion,
        trigger=IntervalTrigger(minutes=config.fetch_interval_minutes),
        args=[config, store],
        id="ingestion",
        name="Pull source ingestion",
        max_instances=1,
    )
    return scheduler


def _shutdown(
    scheduler: BackgroundScheduler,
    initial: threading.Thread,
    store: FeedStore,
    timeout: float,
) -> None:
    """Stop ingestion, then close the store once no job can still write to it."""
    logger.info("Scheduler shutting down")
    scheduler.shutdown(wait=True)
    initial.join(timeout)
    if initial.is_alive():
        logger.warning("Initial ingestion still running after %.0fs", timeout)
    store.close()


def main() -> None:
    """Load config, set up logging, and start scheduler + web server."""
    config = load_config()
    _setup_logging(config.log_level, config.log_format)

    sources = load_sources(config.sources_config_path)
    logger.info(
        "newsfeed starting (env=%s, store=%s, sources=%d, follow=%s)",
        config.app_env,
        config.feed_store,
        len(sources.sources),
        ",".join(sources.follow),
    )

    store = build_store(config)
    scheduler = _build_scheduler(config, store)

    @asynccontextmanager
    async def lifespan(app):
        logger.info("Scheduler starting")
        scheduler.start()
        # Initial pass in the background so the web server is available immediately
        initial = threading.Thread(
            target=run_scheduled_ingestion, args=(config, store), daemon=True
        )
        initial.start()
        yield
        _shutdown(scheduler, initial, store, config.fetch_timeout_seconds * 2)

    app = create_app(config, store, sources, lifespan=lifespan)

    uvicorn.run(app, host=config.web_host, port=config.web_port)


if __name__ == "__main__":
    main()

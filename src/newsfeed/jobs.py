"""Ingestion job — run every configured pull source once."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from newsfeed.config import Config, load_sources
from newsfeed.errors import FeedError
from newsfeed.ingestion.pull import IngestResult, ingest_once
from newsfeed.ingestion.registry import get_source_type
from newsfeed.store.base import FeedStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestionRun:
    """Per-source outcome of one pass over all pull sources."""

    results: dict[str, IngestResult] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def _feed_name(source_config: dict) -> str:
    """Name of the source feed a config writes to, as ingest_once resolves it."""
    if source_config.get("source"):
        return str(source_config["source"])
    source_type = get_source_type(str(source_config.get("source_type", "")))
    if source_type is not None:
        return source_type.actor
    return str(source_config.get("source_type") or source_config.get("url", "unknown"))


def _record_error(run: IngestionRun, name: str, message: str) -> None:
    if name in run.errors:
        message = f"{run.errors[name]}; {message}"
    run.errors[name] = message


def run_ingestion(
    store: FeedStore,
    sources: list[dict],
    max_items: int = 25,
    timeout: float = 30.0,
) -> IngestionRun:
    """Ingest every enabled pull source.

    Sources are independent: a failing source is recorded in ``errors``
    and the remaining sources still run. Both maps are keyed by source feed
    name, and sources sharing a feed have their counts summed.
    """
    run = IngestionRun()
    for source_config in sources:
        if not source_config.get("enabled", True):
            continue
        label = _feed_name(source_config)
        try:
            result = ingest_once(store, source_config, max_items, timeout)
        except FeedError as exc:
            logger.error("Ingestion of %s failed: %s", label, exc)
            _record_error(run, label, str(exc))
            continue
        except (KeyError, ValueError) as exc:
            logger.exception("Source %s is misconfigured", label)
            _record_error(run, label, f"Invalid source config: {exc}")
            continue
        previous = run.results.get(result.source)
        if previous is not None:
            result = IngestResult(
                source=result.source,
                submitted=previous.submitted + result.submitted,
                failed=previous.failed + result.failed,
            )
        run.results[result.source] = result

    submitted = sum(r.submitted for r in run.results.values())
    failed = sum(r.failed for r in run.results.values())
    logger.info(
        "Ingestion complete: %d submitted, %d failed, %d sources errored",
        submitted, failed, len(run.errors),
    )
    return run


def run_scheduled_ingestion(config: Config, store: FeedStore) -> None:
    """Scheduler entry point. Never raises."""
    try:
        sources = load_sources(config.sources_config_path)
        run_ingestion(
            store,
            sources.sources,
            max_items=config.max_items_per_source,
            timeout=config.fetch_timeout_seconds,
        )
    except Exception:
        logger.exception("Scheduled ingestion failed")

"""Pull ingestion — fetch a bounded batch from one source and submit it."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from newsfeed.errors import MalformedInput, StoreUnavailable
from newsfeed.ingestion.adapter import PullAdapter
from newsfeed.ingestion.normalize import normalize
from newsfeed.ingestion.registry import get_adapter_class
from newsfeed.store.base import FeedStore, source_feed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestResult:
    """Outcome of one pull ingestion invocation."""

    source: str
    submitted: int
    failed: int

    def to_dict(self) -> dict[str, int]:
        return {"submitted": self.submitted, "failed": self.failed}


def build_adapter(
    source_config: dict, max_items: int = 25, timeout: float = 30.0
) -> PullAdapter:
    """Instantiate and configure the adapter named by ``source_config["type"]``.

    Raises ValueError for an unknown adapter type.
    """
    adapter_type = source_config.get("type", "")
    adapter_cls = get_adapter_class(adapter_type)
    if adapter_cls is None:
        raise ValueError(f"Unknown adapter type '{adapter_type}'")
    adapter = adapter_cls(max_items, timeout)
    adapter.configure(source_config)
    return adapter


def ingest_once(
    store: FeedStore,
    source_config: dict,
    max_items: int = 25,
    timeout: float = 30.0,
) -> IngestResult:
    """Fetch one batch from a pull source and append it to the source feed.

    A fetch failure raises UpstreamUnavailable before anything is
    submitted. Items that fail to normalize or to append are logged and
    counted, and the rest of the batch continues. Re-running is safe since
    the store deduplicates on ``(foreign_id, object)``.
    """
    adapter = build_adapter(source_config, max_items, timeout)
    raw_items = adapter.fetch()

    feed = source_feed(adapter.source)
    store.ensure_user(adapter.source, source_config.get("name", adapter.source))

    submitted = 0
    failed = 0
    for raw in raw_items:
        try:
            activity = normalize(adapter.source_type, raw)
            store.append(feed, activity)
        except MalformedInput as exc:
            logger.warning("Skipping malformed %s item: %s", adapter.source_type, exc)
            failed += 1
            continue
        except StoreUnavailable:
            logger.exception("Failed to append %s item to %s", adapter.source_type, feed)
            failed += 1
            continue
        submitted += 1

    logger.info(
        "Ingested %s: %d submitted, %d failed", adapter.source, submitted, failed
    )
    return IngestResult(source=adapter.source, submitted=submitted, failed=failed)

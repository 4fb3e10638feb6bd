"""Push ingestion — normalize and submit one externally delivered item."""

from __future__ import annotations

import logging
from typing import Any

from newsfeed.ingestion.normalize import normalize
from newsfeed.store.base import FeedStore, source_feed

logger = logging.getLogger(__name__)


def ingest_pushed(store: FeedStore, source_type: str, raw: Any) -> str:
    """Normalize a pushed payload and append it to its source feed.

    Raises MalformedInput (nothing is appended) or StoreUnavailable.
    Delivering the same item again returns the id of the existing activity.
    """
    activity = normalize(source_type, raw)
    activity_id = store.append(source_feed(activity.actor), activity)
    logger.info("Pushed %s item %s (%s)", source_type, activity_id, activity.object)
    return activity_id

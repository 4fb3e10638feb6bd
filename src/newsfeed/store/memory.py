"""In-process feed store, for tests and single-process development."""

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from newsfeed.store.base import FeedKey, FeedStore, as_feed_key

if TYPE_CHECKING:
    from newsfeed.ingestion.normalize import Activity


class InMemoryFeedStore(FeedStore):
    """Feed store holding users, activities, and follow edges in dicts.

    All state is guarded by one lock, so appends from the scheduler thread
    and the request threadpool stay idempotent.
    """

    def __init__(self, api_secret: str) -> None:
        super().__init__(api_secret)
        self.users: dict[str, str] = {}
        self.activities: dict[FeedKey, list[dict[str, Any]]] = {}
        self.follows: dict[FeedKey, set[FeedKey]] = {}
        self._seq = 0
        self._lock = threading.Lock()

    def ensure_user(self, user_id: str, display_name: str) -> None:
        self._check_open()
        with self._lock:
            self.users.setdefault(user_id, display_name)

    def append(self, feed: FeedKey | str, activity: Activity) -> str:
        self._check_open()
        key = as_feed_key(feed)
        # Same identity as the SQLite unique index: a missing foreign id is ''.
        identity = (activity.foreign_id or "", activity.object)
        with self._lock:
            stored = self.activities.setdefault(key, [])
            for existing in stored:
                if (existing.get("foreign_id") or "", existing["object"]) == identity:
                    return existing["id"]

            self._seq += 1
            record = activity.to_dict()
            record.update(
                id=str(uuid.uuid4()),
                time=datetime.now(timezone.utc).isoformat(),
                _seq=self._seq,
            )
            stored.append(record)
            return record["id"]

    def follow(self, follower: FeedKey | str, target: FeedKey | str) -> None:
        self._check_open()
        src = as_feed_key(follower)
        dst = as_feed_key(target)
        with self._lock:
            self.follows.setdefault(src, set()).add(dst)

    def read_feed(self, feed: FeedKey | str, limit: int = 25) -> list[dict[str, Any]]:
        self._check_open()
        key = as_feed_key(feed)
        records: dict[str, dict[str, Any]] = {}
        with self._lock:
            for source in (key, *self.follows.get(key, ())):
                for record in self.activities.get(source, []):
                    records[record["id"]] = record
        ordered = sorted(records.values(), key=lambda r: r["_seq"], reverse=True)
        return [
            {k: v for k, v in record.items() if k != "_seq"}
            for record in ordered[:limit]
        ]

"""SQLite-backed feed engine."""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Generator

from newsfeed.errors import StoreUnavailable
from newsfeed.store.base import FeedKey, FeedStore, as_feed_key
from newsfeed.store.connection import DEFAULT_BUSY_TIMEOUT, get_connection
from newsfeed.store.schema import init_db

if TYPE_CHECKING:
    from newsfeed.ingestion.normalize import Activity

logger = logging.getLogger(__name__)


class SQLiteFeedStore(FeedStore):
    """Feed store persisting users, activities, and follows in SQLite.

    A user feed is composed at read time from its own rows and the rows of
    every feed it follows.
    """

    def __init__(
        self,
        database_path: str,
        api_secret: str,
        busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
    ) -> None:
        super().__init__(api_secret)
        self._database_path = database_path
        self._busy_timeout = busy_timeout
        try:
            init_db(database_path, busy_timeout)
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"Cannot open feed store {database_path}: {exc}") from exc

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        self._check_open()
        try:
            with get_connection(self._database_path, self._busy_timeout) as conn:
                yield conn
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"Feed store error: {exc}") from exc

    def ping(self) -> None:
        """Raise StoreUnavailable unless the database answers a trivial query."""
        with self._connect() as conn:
            conn.execute("SELECT 1")

    def ensure_user(self, user_id: str, display_name: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO users (id, display_name, created_at) VALUES (?, ?, ?) "
                "ON CONFLICT(id) DO NOTHING",
                (user_id, display_name, now),
            )

    def append(self, feed: FeedKey | str, activity: Activity) -> str:
        key = as_feed_key(feed)
        foreign_id = activity.foreign_id or ""
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO activities "
                "(id, feed_group, feed_slug, actor, verb, object, foreign_id, payload, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(feed_group, feed_slug, foreign_id, object) DO NOTHING",
                (
                    str(uuid.uuid4()),
                    key.group,
                    key.slug,
                    activity.actor,
                    activity.verb,
                    activity.object,
                    foreign_id,
                    json.dumps(activity.to_dict(), sort_keys=True),
                    now,
                ),
            )
            row = conn.execute(
                "SELECT id FROM activities "
                "WHERE feed_group = ? AND feed_slug = ? AND foreign_id = ? AND object = ?",
                (key.group, key.slug, foreign_id, activity.object),
            ).fetchone()

        if cursor.rowcount == 0:
            logger.debug("Activity %s already in %s", row["id"], key)
        return row["id"]

    def follow(self, follower: FeedKey | str, target: FeedKey | str) -> None:
        src = as_feed_key(follower)
        dst = as_feed_key(target)
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO follows "
                "(follower_group, follower_slug, target_group, target_slug, created_at) "
                "VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT DO NOTHING",
                (src.group, src.slug, dst.group, dst.slug, now),
            )

    def read_feed(self, feed: FeedKey | str, limit: int = 25) -> list[dict[str, Any]]:
        key = as_feed_key(feed)
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT a.id, a.payload, a.created_at FROM activities a "
                "WHERE (a.feed_group = ? AND a.feed_slug = ?) "
                "OR EXISTS ("
                "  SELECT 1 FROM follows f "
                "  WHERE f.follower_group = ? AND f.follower_slug = ? "
                "  AND f.target_group = a.feed_group AND f.target_slug = a.feed_slug"
                ") "
                "ORDER BY a.seq DESC LIMIT ?",
                (key.group, key.slug, key.group, key.slug, limit),
            ).fetchall()

        activities = []
        for row in rows:
            record = json.loads(row["payload"])
            record.update(id=row["id"], time=row["created_at"])
            activities.append(record)
        return activities

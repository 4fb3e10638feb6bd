"""Feed store schema definition and initialization."""

from __future__ import annotations

import logging

from newsfeed.store.connection import DEFAULT_BUSY_TIMEOUT, get_connection

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """\
-- Feed engine users (sources and registered end users)
CREATE TABLE IF NOT EXISTS users (
    id              TEXT PRIMARY KEY,
    display_name    TEXT NOT NULL,
    created_at      TEXT NOT NULL
);

-- Append-only activity log, one row per (feed, activity)
CREATE TABLE IF NOT EXISTS activities (
    seq             INTEGER PRIMARY KEY AUTOINCREMENT,
    id              TEXT NOT NULL UNIQUE,
    feed_group      TEXT NOT NULL,
    feed_slug       TEXT NOT NULL,
    actor           TEXT NOT NULL,
    verb            TEXT NOT NULL,
    object          TEXT NOT NULL,
    foreign_id      TEXT NOT NULL DEFAULT '',   -- '' when the source has no native id
    payload         TEXT NOT NULL,              -- JSON object
    created_at      TEXT NOT NULL
);

-- Follow edges between feeds
CREATE TABLE IF NOT EXISTS follows (
    follower_group  TEXT NOT NULL,
    follower_slug   TEXT NOT NULL,
    target_group    TEXT NOT NULL,
    target_slug     TEXT NOT NULL,
    created_at      TEXT NOT NULL,
    PRIMARY KEY (follower_group, follower_slug, target_group, target_slug)
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_activities_dedup
    ON activities(feed_group, feed_slug, foreign_id, object);
CREATE INDEX IF NOT EXISTS idx_activities_feed ON activities(feed_group, feed_slug, seq);
CREATE INDEX IF NOT EXISTS idx_follows_target ON follows(target_group, target_slug);
"""


def init_db(database_path: str, busy_timeout: float = DEFAULT_BUSY_TIMEOUT) -> None:
    """Create all tables and indexes if they do not already exist."""
    with get_connection(database_path, busy_timeout) as conn:
        conn.executescript(_SCHEMA_SQL)
    logger.info("Feed store initialized at %s", database_path)

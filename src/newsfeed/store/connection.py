"""SQLite connection management for the feed store."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Generator

# Seconds a writer waits on a locked database before raising.
DEFAULT_BUSY_TIMEOUT = 5.0


@contextmanager
def get_connection(
    database_path: str, busy_timeout: float = DEFAULT_BUSY_TIMEOUT
) -> Generator[sqlite3.Connection, None, None]:
    """Open a SQLite connection with WAL mode and a busy timeout.

    The scheduler thread and the request threadpool write concurrently;
    ``busy_timeout`` makes a writer wait for the lock instead of failing
    with "database is locked". Commits on clean exit, rolls back on
    exception, and always closes.
    """
    conn = sqlite3.connect(database_path, timeout=busy_timeout)
    conn.execute(f"PRAGMA busy_timeout={int(busy_timeout * 1000)}")
    conn.execute("PRAGMA journal_mode=WAL")
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()

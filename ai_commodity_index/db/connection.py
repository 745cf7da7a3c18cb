"""
SQLite connection management.

``get_connection()`` yields a connection with foreign keys enforced, WAL
journal mode (optional), a busy timeout and ``sqlite3.Row`` rows. It commits
on clean exit and rolls back on exception.

Usage::

    from ai_commodity_index.db.connection import get_connection

    with get_connection("data/db/acci.db") as conn:
        MarketRepository(conn).get_commodities()
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

logger = logging.getLogger(__name__)


def connect(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> sqlite3.Connection:
    """Open and configure a connection without managing its lifetime.

    Args:
        db_path: SQLite file path, or ``":memory:"``. Parent directories of a
            file path are created.
        wal_mode: Enable WAL journal mode (ignored for in-memory databases).
        busy_timeout_ms: Lock wait before ``OperationalError``.
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    conn.execute(f"PRAGMA busy_timeout = {busy_timeout_ms};")
    if wal_mode and db_path != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL;")
    return conn


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Generator[sqlite3.Connection, None, None]:
    """Context manager yielding a configured SQLite connection.

    Raises:
        sqlite3.OperationalError: If the database cannot be opened or is locked.
    """
    conn = connect(db_path, wal_mode=wal_mode, busy_timeout_ms=busy_timeout_ms)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

"""
Base repository with shared SQLite helpers.

Repositories receive an open ``sqlite3.Connection`` (usually from
``get_connection()``); the caller owns commit/rollback. All SQL is explicit
and lives in repository methods. Repositories return pydantic models or
dataclasses, never raw rows.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Any, Optional

from ai_commodity_index.utils.time_utils import ensure_utc, parse_datetime

logger = logging.getLogger(__name__)

Params = tuple[Any, ...] | dict[str, Any]


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialise a datetime as an ISO-8601 UTC string for storage."""
    return ensure_utc(value).isoformat() if value is not None else None


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """Inverse of ``to_iso``; also accepts the ``...Z`` form of SQL defaults."""
    return parse_datetime(value) if value else None


class BaseRepository:
    """Shared SQL execution helpers.

    Attributes:
        conn: The active ``sqlite3.Connection``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        logger.debug("SQL: %s | params: %s", sql.strip(), params)
        return self.conn.execute(sql, params)

    def executemany(self, sql: str, params_list: list[Params]) -> sqlite3.Cursor:
        logger.debug("SQL (many): %s | count: %d", sql.strip(), len(params_list))
        return self.conn.executemany(sql, params_list)

    def fetchone(self, sql: str, params: Params = ()) -> Optional[sqlite3.Row]:
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def last_insert_rowid(self) -> int:
        row = self.fetchone("SELECT last_insert_rowid() AS rowid;")
        assert row is not None
        return int(row["rowid"])

"""
Repository for composite index snapshots.

Snapshots are append-only: one row per calculation run, never updated.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta
from typing import Optional

from ai_commodity_index.db.repositories.base import BaseRepository, from_iso, to_iso
from ai_commodity_index.models.index import CompositeIndexSnapshot
from ai_commodity_index.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class CompositeIndexRepository(BaseRepository):
    """Read/write access to ``composite_index``."""

    def insert_snapshot(self, snapshot: CompositeIndexSnapshot) -> int:
        """Persist a snapshot and return its ``snapshot_id``.

        Raises:
            sqlite3.IntegrityError: If a snapshot with the same ``date`` exists.
        """
        self.execute(
            """
            INSERT INTO composite_index (
                date, overall_index, hard_commodities_index, soft_commodities_index,
                directional_component, confidence_component, accuracy_component,
                momentum_component, total_predictions, market_sentiment, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                to_iso(snapshot.date),
                snapshot.overall_index,
                snapshot.hard_commodities_index,
                snapshot.soft_commodities_index,
                snapshot.directional_component,
                snapshot.confidence_component,
                snapshot.accuracy_component,
                snapshot.momentum_component,
                snapshot.total_predictions,
                snapshot.market_sentiment,
                to_iso(snapshot.created_at or utcnow()),
            ),
        )
        snapshot_id = self.last_insert_rowid()
        logger.debug("Stored composite index snapshot %d for %s", snapshot_id, snapshot.date)
        return snapshot_id

    def get_latest(self) -> Optional[CompositeIndexSnapshot]:
        """Return the most recent snapshot by ``date``, or ``None``."""
        row = self.fetchone("SELECT * FROM composite_index ORDER BY date DESC LIMIT 1;")
        return _row_to_snapshot(row) if row else None

    def get_history(self, days: int = 30, now: Optional[datetime] = None) -> list[CompositeIndexSnapshot]:
        """Snapshots dated within the last ``days`` days, newest first."""
        cutoff = (now or utcnow()) - timedelta(days=days)
        rows = self.fetchall(
            "SELECT * FROM composite_index WHERE date >= ? ORDER BY date DESC;",
            (to_iso(cutoff),),
        )
        return [_row_to_snapshot(r) for r in rows]

    def count(self) -> int:
        row = self.fetchone("SELECT COUNT(*) AS n FROM composite_index;")
        return int(row["n"]) if row else 0


def _row_to_snapshot(row: sqlite3.Row) -> CompositeIndexSnapshot:
    return CompositeIndexSnapshot(
        snapshot_id=row["snapshot_id"],
        date=from_iso(row["date"]),
        overall_index=row["overall_index"],
        hard_commodities_index=row["hard_commodities_index"],
        soft_commodities_index=row["soft_commodities_index"],
        directional_component=row["directional_component"],
        confidence_component=row["confidence_component"],
        accuracy_component=row["accuracy_component"],
        momentum_component=row["momentum_component"],
        total_predictions=row["total_predictions"],
        market_sentiment=row["market_sentiment"],
        created_at=from_iso(row["created_at"]),
    )

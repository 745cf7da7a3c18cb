"""
Repository for accuracy metrics and model rank history.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Sequence

from ai_commodity_index.db.repositories.base import BaseRepository, from_iso, to_iso
from ai_commodity_index.models.accuracy import AccuracyMetricRecord, ModelRanking
from ai_commodity_index.utils.numeric import format_decimal, parse_decimal
from ai_commodity_index.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class AccuracyRepository(BaseRepository):
    """Read/write access to ``accuracy_metrics`` and ``model_rank_history``."""

    # ── Accuracy metrics ──────────────────────────────────────────────────────

    def upsert_metric(self, metric: AccuracyMetricRecord) -> None:
        """Insert or replace the row for (model, commodity, period)."""
        self.execute(
            """
            INSERT INTO accuracy_metrics (
                ai_model_id, commodity_id, period, accuracy,
                total_predictions, correct_predictions, avg_error, last_updated
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(ai_model_id, commodity_id, period) DO UPDATE SET
                accuracy            = excluded.accuracy,
                total_predictions   = excluded.total_predictions,
                correct_predictions = excluded.correct_predictions,
                avg_error           = excluded.avg_error,
                last_updated        = excluded.last_updated;
            """,
            (
                metric.ai_model_id,
                metric.commodity_id,
                metric.period,
                metric.accuracy,
                metric.total_predictions,
                metric.correct_predictions,
                metric.avg_error,
                to_iso(metric.last_updated or utcnow()),
            ),
        )

    def get_metrics(self, period: str = "all") -> list[AccuracyMetricRecord]:
        """Metrics for ``period``, highest accuracy first.

        Sorting is numeric on the parsed decimal, not on the stored text.
        """
        rows = self.fetchall(
            "SELECT * FROM accuracy_metrics WHERE period = ? ORDER BY metric_id;",
            (period,),
        )
        metrics = [_row_to_metric(r) for r in rows]
        metrics.sort(key=lambda m: parse_decimal(m.accuracy, "accuracy"), reverse=True)
        return metrics

    # ── Rank history ──────────────────────────────────────────────────────────

    def store_rankings(
        self,
        rankings: Sequence[ModelRanking],
        period: str,
        ranked_at: datetime,
    ) -> int:
        """Append one history row per ranked model. Returns rows written."""
        if not rankings:
            return 0
        ranked_at_iso = to_iso(ranked_at)
        self.executemany(
            """
            INSERT INTO model_rank_history (
                ai_model_id, period, rank, overall_accuracy, total_predictions, ranked_at
            ) VALUES (?, ?, ?, ?, ?, ?);
            """,
            [
                (
                    r.ai_model.id,
                    period,
                    r.rank,
                    format_decimal(r.overall_accuracy),
                    r.total_predictions,
                    ranked_at_iso,
                )
                for r in rankings
            ],
        )
        return len(rankings)

    def get_previous_ranks(self, period: str = "all") -> dict[str, int]:
        """``{ai_model_id: rank}`` from the most recent stored run for ``period``."""
        rows = self.fetchall(
            """
            SELECT ai_model_id, rank FROM model_rank_history
            WHERE period = ?
              AND ranked_at = (
                  SELECT MAX(ranked_at) FROM model_rank_history WHERE period = ?
              );
            """,
            (period, period),
        )
        return {r["ai_model_id"]: int(r["rank"]) for r in rows}


def _row_to_metric(row: sqlite3.Row) -> AccuracyMetricRecord:
    return AccuracyMetricRecord(
        metric_id=row["metric_id"],
        ai_model_id=row["ai_model_id"],
        commodity_id=row["commodity_id"],
        period=row["period"],
        accuracy=row["accuracy"],
        total_predictions=row["total_predictions"],
        correct_predictions=row["correct_predictions"],
        avg_error=row["avg_error"],
        last_updated=from_iso(row["last_updated"]),
    )

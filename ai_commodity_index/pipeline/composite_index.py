"""
CompositeIndexStage: calculate today's ACCI and store one snapshot.

Every run writes exactly one ``composite_index`` row. With no predictions
at all the row holds neutral values (50.0, neutral sentiment, zero
predictions) so the history has no gaps.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ai_commodity_index.index.composite import build_snapshot, calculate_composite_index
from ai_commodity_index.models.index import CompositeIndexSnapshot
from ai_commodity_index.models.meta import RunMetadata
from ai_commodity_index.pipeline.base import PipelineStage
from ai_commodity_index.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class CompositeIndexStage(PipelineStage):
    """Compute and persist the composite index. Returns 1 (rows written)."""

    stage_name = "composite_index"
    snapshot: Optional[CompositeIndexSnapshot] = None

    def _execute(
        self,
        run: RunMetadata,
        now: Optional[datetime] = None,
        **kwargs,
    ) -> int:
        from ai_commodity_index.db.repositories.index_repo import CompositeIndexRepository
        from ai_commodity_index.db.repositories.market_repo import MarketRepository

        now = now or utcnow()
        index_cfg = self.config.index

        with self._connection() as conn:
            market = MarketRepository(conn)
            commodities = market.get_commodities()
            logger.info("Found %d commodities", len(commodities))

            predictions_by_commodity = {
                c.id: market.get_predictions(commodity_id=c.id) for c in commodities
            }

            result = calculate_composite_index(
                commodities,
                predictions_by_commodity,
                now=now,
                window_days=index_cfg.recent_window_days,
                fallback_limit=index_cfg.fallback_prediction_limit,
            )
            snapshot = build_snapshot(result, now)
            snapshot_id = CompositeIndexRepository(conn).insert_snapshot(snapshot)

        self.snapshot = snapshot.model_copy(
            update={"snapshot_id": snapshot_id}
        )
        logger.info(
            "Stored composite index %s (%s) | snapshot_id=%d%s",
            snapshot.overall_index, snapshot.market_sentiment, snapshot_id,
            " | fallback" if result.is_fallback else "",
        )
        return 1

"""
AccuracyMetricsStage: refresh the ``accuracy_metrics`` table.

For every (model, commodity) pair that scores over its whole history, the
score is recomputed for each configured period and upserted. Periods whose
window contains no matured, matched predictions leave their previous row
untouched.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ai_commodity_index.models.accuracy import AccuracyMetricRecord
from ai_commodity_index.models.meta import RunMetadata
from ai_commodity_index.pipeline.base import PipelineStage
from ai_commodity_index.scoring.accuracy import compute_accuracy, filter_by_period
from ai_commodity_index.utils.numeric import format_decimal
from ai_commodity_index.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class AccuracyMetricsStage(PipelineStage):
    """Recompute per-period accuracy rows. Returns the number of rows upserted."""

    stage_name = "accuracy_metrics"

    def _execute(
        self,
        run: RunMetadata,
        now: Optional[datetime] = None,
        **kwargs,
    ) -> int:
        from ai_commodity_index.db.repositories.accuracy_repo import AccuracyRepository
        from ai_commodity_index.db.repositories.market_repo import MarketRepository

        now = now or utcnow()
        periods = list(self.config.accuracy.periods)
        price_limit = self.config.accuracy.actual_price_limit
        upserted = 0

        with self._connection() as conn:
            market = MarketRepository(conn)
            accuracy_repo = AccuracyRepository(conn)
            models = market.get_ai_models()
            commodities = market.get_commodities()

            for commodity in commodities:
                prices = market.get_actual_prices(commodity.id, limit=price_limit)
                if not prices:
                    continue

                for model in models:
                    predictions = market.get_predictions(
                        commodity_id=commodity.id, ai_model_id=model.id,
                    )
                    if compute_accuracy(predictions, prices, now) is None:
                        continue

                    for period in periods:
                        result = compute_accuracy(
                            filter_by_period(predictions, period, now), prices, now,
                        )
                        if result is None:
                            continue
                        accuracy_repo.upsert_metric(AccuracyMetricRecord(
                            ai_model_id=model.id,
                            commodity_id=commodity.id,
                            period=period,
                            accuracy=format_decimal(result.accuracy),
                            total_predictions=result.total_predictions,
                            correct_predictions=result.correct_predictions,
                            avg_error=format_decimal(result.avg_absolute_error),
                            last_updated=now,
                        ))
                        upserted += 1

        logger.info(
            "Accuracy metrics refreshed | rows=%d | periods=%s", upserted, ",".join(periods),
        )
        return upserted

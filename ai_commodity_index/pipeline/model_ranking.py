"""
ModelRankingStage: build the league table for one period and record it in
``model_rank_history`` so the next run can report rank trends.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ai_commodity_index.models.accuracy import ModelRanking
from ai_commodity_index.models.meta import RunMetadata
from ai_commodity_index.pipeline.base import PipelineStage
from ai_commodity_index.scoring.ranker import rank_models
from ai_commodity_index.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class ModelRankingStage(PipelineStage):
    """Rank all AI models for ``period``. Returns the number of ranked models."""

    stage_name = "model_ranking"
    rankings: Optional[list[ModelRanking]] = None

    def _execute(
        self,
        run: RunMetadata,
        period: Optional[str] = None,
        now: Optional[datetime] = None,
        **kwargs,
    ) -> int:
        from ai_commodity_index.db.repositories.accuracy_repo import AccuracyRepository
        from ai_commodity_index.db.repositories.market_repo import MarketRepository

        now = now or utcnow()
        period = period or self.config.accuracy.default_period
        price_limit = self.config.accuracy.actual_price_limit

        with self._connection() as conn:
            market = MarketRepository(conn)
            accuracy_repo = AccuracyRepository(conn)

            models = market.get_ai_models()
            commodities = market.get_commodities()
            predictions = market.get_predictions()
            prices = [
                p for c in commodities for p in market.get_actual_prices(c.id, limit=price_limit)
            ]
            previous = accuracy_repo.get_previous_ranks(period)

            rankings = rank_models(
                models, commodities, predictions, prices,
                period=period, previous_ranks=previous, now=now,
            )
            accuracy_repo.store_rankings(rankings, period=period, ranked_at=now)

        self.rankings = rankings
        return len(rankings)

"""
DashboardService: the cached read API behind the dashboard and CLI.

Results are cached in an injected ``TTLCache`` keyed by query and argument,
for example ``("rankings", "30d")``. ``clear_cache()`` drops everything, for a
long-lived service that must see rows written since its last read.

Rankings computed here use the stored rank history for their trend but
never write to it; only ``ModelRankingStage`` records rank history.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ai_commodity_index.config import AccuracyConfig
from ai_commodity_index.db.repositories.accuracy_repo import AccuracyRepository
from ai_commodity_index.db.repositories.index_repo import CompositeIndexRepository
from ai_commodity_index.db.repositories.market_repo import MarketRepository
from ai_commodity_index.index.fear_greed import fear_greed_from_snapshot
from ai_commodity_index.models.accuracy import ModelRanking
from ai_commodity_index.models.index import CompositeIndexSnapshot, FearGreedReading
from ai_commodity_index.scoring.ranker import rank_models
from ai_commodity_index.utils.cache import TTLCache
from ai_commodity_index.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

STATS_PERIOD = "30d"
NO_PREDICTIONS_LABEL = "No predictions yet"


@dataclass(frozen=True)
class DashboardStats:
    """Headline numbers for the dashboard overview."""

    total_predictions: int
    top_model: str
    top_accuracy: float
    active_commodities: int
    avg_accuracy: float


class DashboardService:
    """Cached queries over one open connection.

    Args:
        conn:     Open SQLite connection (schema applied).
        cache:    Cache shared by all queries of this service.
        now_fn:   Clock for ranking windows and Fear/Greed timestamps.
        accuracy: Ranking settings (per-commodity actual price limit).
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        cache: TTLCache,
        now_fn: Callable[[], datetime] = utcnow,
        accuracy: Optional[AccuracyConfig] = None,
    ) -> None:
        self.market = MarketRepository(conn)
        self.index_repo = CompositeIndexRepository(conn)
        self.accuracy_repo = AccuracyRepository(conn)
        self.cache = cache
        self.now_fn = now_fn
        self.accuracy_config = accuracy or AccuracyConfig()

    # ── Rankings ──────────────────────────────────────────────────────────────

    def get_model_rankings(self, period: str = "all") -> list[ModelRanking]:
        """League table for ``period``.

        Raises:
            ValueError: For an unknown period string.
        """
        return self.cache.get_or_set(("rankings", period), lambda: self._rank(period))

    def _rank(self, period: str) -> list[ModelRanking]:
        commodities = self.market.get_commodities()
        limit = self.accuracy_config.actual_price_limit
        prices = [p for c in commodities for p in self.market.get_actual_prices(c.id, limit=limit)]
        return rank_models(
            self.market.get_ai_models(),
            commodities,
            self.market.get_predictions(),
            prices,
            period=period,
            previous_ranks=self.accuracy_repo.get_previous_ranks(period),
            now=self.now_fn(),
        )

    # ── Composite index ───────────────────────────────────────────────────────

    def get_latest_index(self) -> Optional[CompositeIndexSnapshot]:
        return self.cache.get_or_set(("latest_index",), self.index_repo.get_latest)

    def get_index_history(self, days: int = 30) -> list[CompositeIndexSnapshot]:
        """Snapshots from the last ``days`` days, newest first."""
        return self.cache.get_or_set(
            ("index_history", days),
            lambda: self.index_repo.get_history(days, now=self.now_fn()),
        )

    def get_fear_greed(self) -> Optional[FearGreedReading]:
        """Fear/Greed reading for the latest snapshot; ``None`` if there is none."""
        latest = self.get_latest_index()
        if latest is None:
            return None
        return fear_greed_from_snapshot(latest, now=self.now_fn())

    # ── Overview ──────────────────────────────────────────────────────────────

    def get_dashboard_stats(self) -> DashboardStats:
        """Totals plus the leader of the 30-day league table.

        Only models with at least one scored prediction count towards the
        leader and the average accuracy.
        """
        def build() -> DashboardStats:
            scored = [r for r in self.get_model_rankings(STATS_PERIOD) if r.total_predictions > 0]
            top = scored[0] if scored else None
            return DashboardStats(
                total_predictions=self.market.count_predictions(),
                top_model=top.ai_model.name if top else NO_PREDICTIONS_LABEL,
                top_accuracy=top.overall_accuracy if top else 0.0,
                active_commodities=len(self.market.get_commodities()),
                avg_accuracy=(
                    sum(r.overall_accuracy for r in scored) / len(scored) if scored else 0.0
                ),
            )

        return self.cache.get_or_set(("dashboard_stats",), build)

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Dashboard cache cleared")

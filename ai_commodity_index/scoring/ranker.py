"""
Model league table: rank AI models by accuracy across all commodities.

Usage flow
----------
1. score_model(model, commodities, ...)
   -> ModelRanking with rank=0 (one per model)

2. rank_models(models, commodities, predictions, actual_prices, period)
   -> list[ModelRanking] sorted best first, rank and trend assigned

Aggregation
-----------
For each model, every commodity with a non-empty ``AccuracyResult``
contributes ``accuracy * n`` and ``n`` (n = matched predictions), so

    overall_accuracy = Σ(accuracy × n) / Σ(n)

is a prediction-count-weighted mean, not a mean of per-commodity scores.
Average absolute and percentage errors are weighted the same way. A model
with no matches anywhere still appears, with zeros.

Ordering
--------
Sorted by ``overall_accuracy`` descending. Python's sort is stable, so tied
models keep their input order. Trend compares the new rank against
``previous_ranks`` (from the last stored ranking run): +1 if the rank number
went down, -1 if it went up, 0 if unchanged or there is no previous rank.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Mapping, Optional, Sequence

from ai_commodity_index.models.accuracy import CommodityPerformance, ModelRanking
from ai_commodity_index.models.market import ActualPrice, AiModel, Commodity, Prediction
from ai_commodity_index.scoring.accuracy import compute_accuracy, filter_by_period
from ai_commodity_index.utils.time_utils import period_cutoff, utcnow

logger = logging.getLogger(__name__)

PairKey = tuple[str, str]  # (ai_model_id, commodity_id)


def group_predictions(predictions: Sequence[Prediction]) -> dict[PairKey, list[Prediction]]:
    """Group predictions by (ai_model_id, commodity_id), input order kept."""
    grouped: dict[PairKey, list[Prediction]] = defaultdict(list)
    for p in predictions:
        grouped[(p.ai_model_id, p.commodity_id)].append(p)
    return dict(grouped)


def group_prices(actual_prices: Sequence[ActualPrice]) -> dict[str, list[ActualPrice]]:
    """Group actual prices by commodity_id, input order kept."""
    grouped: dict[str, list[ActualPrice]] = defaultdict(list)
    for price in actual_prices:
        grouped[price.commodity_id].append(price)
    return dict(grouped)


def score_model(
    model: AiModel,
    commodities: Sequence[Commodity],
    predictions_by_pair: Mapping[PairKey, Sequence[Prediction]],
    prices_by_commodity: Mapping[str, Sequence[ActualPrice]],
    period: str,
    now: datetime,
) -> ModelRanking:
    """Aggregate one model's accuracy across all commodities (rank left at 0)."""
    weighted_accuracy = 0.0
    weighted_abs_error = 0.0
    weighted_pct_error = 0.0
    total = 0
    performance: list[CommodityPerformance] = []

    for commodity in commodities:
        predictions = predictions_by_pair.get((model.id, commodity.id), [])
        filtered = filter_by_period(predictions, period, now)
        if not filtered:
            continue

        result = compute_accuracy(filtered, prices_by_commodity.get(commodity.id, []), now)
        if result is None or result.total_predictions == 0:
            continue

        n = result.total_predictions
        weighted_accuracy += result.accuracy * n
        weighted_abs_error += result.avg_absolute_error * n
        weighted_pct_error += result.avg_percentage_error * n
        total += n
        performance.append(CommodityPerformance(
            commodity=commodity,
            accuracy=result.accuracy,
            predictions=n,
        ))

    performance.sort(key=lambda cp: cp.accuracy, reverse=True)

    return ModelRanking(
        ai_model=model,
        overall_accuracy=weighted_accuracy / total if total > 0 else 0.0,
        total_predictions=total,
        avg_absolute_error=weighted_abs_error / total if total > 0 else 0.0,
        avg_percentage_error=weighted_pct_error / total if total > 0 else 0.0,
        commodity_performance=tuple(performance),
    )


def rank_trend(rank: int, previous_rank: Optional[int]) -> int:
    """+1 if ``rank`` improved on ``previous_rank``, -1 if worse, else 0."""
    if not previous_rank:
        return 0
    if rank < previous_rank:
        return 1
    if rank > previous_rank:
        return -1
    return 0


def rank_models(
    models: Sequence[AiModel],
    commodities: Sequence[Commodity],
    predictions: Sequence[Prediction],
    actual_prices: Sequence[ActualPrice],
    period: str = "all",
    previous_ranks: Optional[Mapping[str, int]] = None,
    now: Optional[datetime] = None,
) -> list[ModelRanking]:
    """Build the league table for ``period``.

    Args:
        models:          AI models to rank; every one appears in the output.
        commodities:     Commodities to score across.
        predictions:     All predictions (any model/commodity).
        actual_prices:   All actual prices (any commodity).
        period:          ``"7d"``, ``"30d"``, ``"90d"`` or ``"all"``.
        previous_ranks:  ``{ai_model_id: rank}`` from the last ranking run.
        now:             Reference time (defaults to current UTC time).

    Returns:
        Rankings sorted by overall accuracy, best first, with 1-based
        ``rank`` and ``trend`` set.

    Raises:
        ValueError: For an unknown period string.
    """
    now = now or utcnow()
    period_cutoff(period, now)  # validate up front, even with no predictions
    previous_ranks = previous_ranks or {}

    predictions_by_pair = group_predictions(predictions)
    prices_by_commodity = group_prices(actual_prices)

    scored = [
        score_model(model, commodities, predictions_by_pair, prices_by_commodity, period, now)
        for model in models
    ]
    scored.sort(key=lambda r: r.overall_accuracy, reverse=True)

    rankings: list[ModelRanking] = []
    for position, ranking in enumerate(scored, start=1):
        rankings.append(replace(
            ranking,
            rank=position,
            trend=rank_trend(position, previous_ranks.get(ranking.ai_model.id)),
        ))

    logger.info(
        "Ranked %d models | period=%s | leader=%s (%.2f)",
        len(rankings), period,
        rankings[0].ai_model.name if rankings else "-",
        rankings[0].overall_accuracy if rankings else 0.0,
    )
    return rankings

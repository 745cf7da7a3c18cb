"""
Composite index aggregation.

    index = directional * 0.40 + confidence * 0.25
          + accuracy    * 0.20 + momentum   * 0.15      (clamped to 0–100)

Sentiment:  index >= 55 → bullish,  index <= 45 → bearish,  else neutral.

Three indices per run — overall (all groups), hard, soft — each computed
from its own component set. An empty category gives 50.0. When no
commodity has any predictions the whole result is neutral (all 50.0,
zero predictions) and a snapshot is still produced, so every scheduled
run writes exactly one row.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Mapping, Optional, Sequence

from ai_commodity_index.index.components import (
    FALLBACK_PREDICTION_LIMIT,
    RECENT_WINDOW_DAYS,
    build_prediction_groups,
    calculate_components,
)
from ai_commodity_index.models.index import (
    NEUTRAL_VALUE,
    CompositeIndexResult,
    CompositeIndexSnapshot,
    IndexComponents,
    Sentiment,
)
from ai_commodity_index.models.market import Commodity, Prediction
from ai_commodity_index.utils.numeric import clamp, format_decimal
from ai_commodity_index.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

DIRECTIONAL_WEIGHT = 0.40
CONFIDENCE_WEIGHT = 0.25
ACCURACY_WEIGHT = 0.20
MOMENTUM_WEIGHT = 0.15

BULLISH_THRESHOLD = 55.0
BEARISH_THRESHOLD = 45.0


def combine_components(components: IndexComponents) -> float:
    weighted = (
        components.directional * DIRECTIONAL_WEIGHT
        + components.confidence * CONFIDENCE_WEIGHT
        + components.accuracy * ACCURACY_WEIGHT
        + components.momentum * MOMENTUM_WEIGHT
    )
    return clamp(weighted)


def determine_sentiment(index: float) -> Sentiment:
    if index >= BULLISH_THRESHOLD:
        return "bullish"
    if index <= BEARISH_THRESHOLD:
        return "bearish"
    return "neutral"


def calculate_composite_index(
    commodities: Sequence[Commodity],
    predictions_by_commodity: Mapping[str, Sequence[Prediction]],
    now: Optional[datetime] = None,
    window_days: int = RECENT_WINDOW_DAYS,
    fallback_limit: int = FALLBACK_PREDICTION_LIMIT,
) -> CompositeIndexResult:
    """Compute the overall, hard and soft indices from raw predictions.

    Pure function of its inputs and ``now``; nothing is read or written.

    Args:
        commodities:              All tracked commodities.
        predictions_by_commodity: ``{commodity_id: predictions}``.
        now:                      Reference time for the recent window.
        window_days:              Recent-prediction window.
        fallback_limit:           Predictions used when none are recent.

    Returns:
        ``CompositeIndexResult``; neutral when no commodity has predictions.
    """
    now = now or utcnow()
    groups = build_prediction_groups(
        commodities, predictions_by_commodity, now,
        window_days=window_days, fallback_limit=fallback_limit,
    )
    total_available = sum(len(v) for v in predictions_by_commodity.values())
    logger.info(
        "Composite index input | predictions=%d | commodities=%d | with_data=%d",
        total_available, len(commodities), len(groups),
    )

    if not groups:
        logger.warning("No predictions for any commodity; using neutral index values")
        return CompositeIndexResult.neutral()

    overall_components = calculate_components(groups)
    overall = combine_components(overall_components)

    hard_groups = [g for g in groups if g.category == "hard"]
    soft_groups = [g for g in groups if g.category == "soft"]
    logger.info(
        "Hard commodities: %d (%s)", len(hard_groups),
        ", ".join(g.commodity_name for g in hard_groups),
    )
    logger.info(
        "Soft commodities: %d (%s)", len(soft_groups),
        ", ".join(g.commodity_name for g in soft_groups),
    )

    hard = combine_components(calculate_components(hard_groups)) if hard_groups else NEUTRAL_VALUE
    soft = combine_components(calculate_components(soft_groups)) if soft_groups else NEUTRAL_VALUE

    result = CompositeIndexResult(
        overall=overall,
        hard=hard,
        soft=soft,
        components=overall_components,
        sentiment=determine_sentiment(overall),
        total_predictions=sum(len(g.predictions) for g in groups),
        commodities_used=len(groups),
    )
    logger.info(
        "ACCI %.2f (%s) | hard=%.2f soft=%.2f | D:%.1f C:%.1f A:%.1f M:%.1f",
        result.overall, result.sentiment, result.hard, result.soft,
        overall_components.directional, overall_components.confidence,
        overall_components.accuracy, overall_components.momentum,
    )
    return result


def build_snapshot(result: CompositeIndexResult, now: datetime) -> CompositeIndexSnapshot:
    """Convert a calculation result into the row to persist, dated ``now``."""
    return CompositeIndexSnapshot(
        date=now,
        overall_index=format_decimal(result.overall),
        hard_commodities_index=format_decimal(result.hard),
        soft_commodities_index=format_decimal(result.soft),
        directional_component=format_decimal(result.components.directional),
        confidence_component=format_decimal(result.components.confidence),
        accuracy_component=format_decimal(result.components.accuracy),
        momentum_component=format_decimal(result.components.momentum),
        total_predictions=result.total_predictions,
        market_sentiment=result.sentiment,
    )

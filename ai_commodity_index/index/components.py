"""
Composite index components, computed per commodity group and averaged.

Directional (0–100)
  Each prediction with confidence > 0.5 adds its confidence to a bullish
  accumulator; every prediction adds 1 to the weight. Result is
  ``clamp(bullish / weight * 100)``. Missing confidence counts as 0.5 and so
  is never bullish.

Confidence (0–100)
  ``clamp(mean(confidence) * 100 * 0.7 + max(0, 100 - variance * 400) * 0.3)``
  with the population variance of the raw 0–1 confidences.

Accuracy weight
  The constant 60. This is a placeholder heuristic and is deliberately
  independent of the prediction-vs-actual scorer in ``scoring.accuracy``.

Momentum (0–100)
  Predictions sorted by prediction date; mean percentage change between
  consecutive predicted prices, mapped to ``clamp(50 + avg_change * 10)``.
  50 with fewer than two predictions.

Each component is averaged over groups with a simple mean (groups are not
weighted by prediction count). An empty group list gives 50 for all four.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Mapping, Sequence

from ai_commodity_index.models.index import (
    NEUTRAL_VALUE,
    CommodityPredictionGroup,
    IndexComponents,
)
from ai_commodity_index.models.market import Commodity, Prediction
from ai_commodity_index.utils.numeric import clamp

logger = logging.getLogger(__name__)

RECENT_WINDOW_DAYS = 90
FALLBACK_PREDICTION_LIMIT = 20

BULLISH_CONFIDENCE = 0.5
CONFIDENCE_MEAN_WEIGHT = 0.7
CONFIDENCE_VARIANCE_WEIGHT = 0.3
VARIANCE_SCALE = 400.0
ACCURACY_PLACEHOLDER = 60.0
MOMENTUM_SCALE = 10.0


# ── Prediction selection ──────────────────────────────────────────────────────

def select_recent_predictions(
    predictions: Sequence[Prediction],
    now: datetime,
    window_days: int = RECENT_WINDOW_DAYS,
    fallback_limit: int = FALLBACK_PREDICTION_LIMIT,
) -> list[Prediction]:
    """Pick the predictions of one commodity that feed the index.

    Predictions made within the last ``window_days``; if there are none,
    the ``fallback_limit`` most recent predictions of any age.
    """
    cutoff = now - timedelta(days=window_days)
    recent = [p for p in predictions if p.prediction_date >= cutoff]
    if recent:
        return recent
    newest_first = sorted(predictions, key=lambda p: p.prediction_date, reverse=True)
    return newest_first[:fallback_limit]


def build_prediction_groups(
    commodities: Sequence[Commodity],
    predictions_by_commodity: Mapping[str, Sequence[Prediction]],
    now: datetime,
    window_days: int = RECENT_WINDOW_DAYS,
    fallback_limit: int = FALLBACK_PREDICTION_LIMIT,
) -> list[CommodityPredictionGroup]:
    """One group per commodity that has any predictions; others are skipped."""
    groups: list[CommodityPredictionGroup] = []
    for commodity in commodities:
        selected = select_recent_predictions(
            predictions_by_commodity.get(commodity.id, []),
            now,
            window_days=window_days,
            fallback_limit=fallback_limit,
        )
        if not selected:
            continue
        groups.append(CommodityPredictionGroup(
            commodity_id=commodity.id,
            commodity_name=commodity.name,
            category=commodity.category,
            predictions=tuple(selected),
        ))
    return groups


# ── Components ────────────────────────────────────────────────────────────────

def directional_sentiment(predictions: Sequence[Prediction]) -> float:
    if not predictions:
        return NEUTRAL_VALUE
    bullish = 0.0
    weight = 0.0
    for p in predictions:
        confidence = p.confidence_value
        if confidence > BULLISH_CONFIDENCE:
            bullish += confidence
        weight += 1
    return clamp(bullish / weight * 100)


def confidence_score(predictions: Sequence[Prediction]) -> float:
    if not predictions:
        return NEUTRAL_VALUE
    confidences = [p.confidence_value for p in predictions]
    mean = sum(confidences) / len(confidences)
    variance = sum((c - mean) ** 2 for c in confidences) / len(confidences)

    mean_score = mean * 100
    variance_score = max(0.0, 100 - variance * VARIANCE_SCALE)
    return clamp(mean_score * CONFIDENCE_MEAN_WEIGHT + variance_score * CONFIDENCE_VARIANCE_WEIGHT)


def accuracy_weight(predictions: Sequence[Prediction]) -> float:
    """Fixed placeholder; not derived from realised accuracy."""
    return ACCURACY_PLACEHOLDER


def momentum(predictions: Sequence[Prediction]) -> float:
    if len(predictions) < 2:
        return NEUTRAL_VALUE

    ordered = sorted(predictions, key=lambda p: p.prediction_date)
    prices = [p.predicted_value for p in ordered]

    changes = [
        (cur - prev) / prev * 100
        for prev, cur in zip(prices, prices[1:])
        if prev != 0
    ]
    if not changes:
        return NEUTRAL_VALUE

    avg_change = sum(changes) / len(changes)
    return clamp(NEUTRAL_VALUE + avg_change * MOMENTUM_SCALE)


def group_components(group: CommodityPredictionGroup) -> IndexComponents:
    """All four components for a single commodity group."""
    preds = group.predictions
    return IndexComponents(
        directional=directional_sentiment(preds),
        confidence=confidence_score(preds),
        accuracy=accuracy_weight(preds),
        momentum=momentum(preds),
    )


def calculate_components(groups: Sequence[CommodityPredictionGroup]) -> IndexComponents:
    """Average each component across non-empty groups; neutral if none."""
    per_group = [group_components(g) for g in groups if g.predictions]
    if not per_group:
        return IndexComponents.neutral()

    count = len(per_group)
    return IndexComponents(
        directional=sum(c.directional for c in per_group) / count,
        confidence=sum(c.confidence for c in per_group) / count,
        accuracy=sum(c.accuracy for c in per_group) / count,
        momentum=sum(c.momentum for c in per_group) / count,
    )

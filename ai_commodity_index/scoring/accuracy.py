"""
Accuracy scoring for one (model, commodity) prediction set.

Score formula
-------------
    accuracy = (100 - min(MAPE, 100)) * 0.40
             + directional_accuracy   * 0.35
             + threshold_accuracy     * 0.25

MAPE (percent)
  Mean of ``|actual - predicted| / actual * 100`` over matched pairs.
  Capped at 100 inside the blend; the MAPE term never goes negative.

Directional accuracy (percent)
  Over consecutive pairs ordered by target date, the share of transitions
  where the predicted move and the actual move have the same sign. Flat on
  both sides counts as agreement. 0 when fewer than 2 pairs.

Threshold accuracy (percent)
  Share of pairs with percentage error <= 5.0. The same pairs are reported
  as ``correct_predictions``.

The coefficients are product heuristics and are reproduced as-is.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ai_commodity_index.models.accuracy import AccuracyResult, PricePair
from ai_commodity_index.models.market import ActualPrice, Prediction
from ai_commodity_index.scoring.matcher import is_mature, match_predictions
from ai_commodity_index.utils.numeric import round_half_up
from ai_commodity_index.utils.time_utils import period_cutoff, utcnow

logger = logging.getLogger(__name__)

THRESHOLD_PCT = 5.0
MAPE_CAP = 100.0

MAPE_WEIGHT = 0.40
DIRECTIONAL_WEIGHT = 0.35
THRESHOLD_WEIGHT = 0.25


def filter_by_period(
    predictions: Sequence[Prediction],
    period: str,
    now: Optional[datetime] = None,
) -> list[Prediction]:
    """Restrict predictions to those whose target date fell in the trailing window.

    The window is keyed on ``target_date``, not on when the prediction was
    made: ``"30d"`` means "targets reached in the last 30 days".

    Args:
        predictions: Predictions to filter.
        period:      ``"7d"``, ``"30d"``, ``"90d"`` or ``"all"`` (no filter).
        now:         Reference time (defaults to current UTC time).

    Returns:
        Filtered list, input order preserved.

    Raises:
        ValueError: For an unknown period string.
    """
    now = now or utcnow()
    cutoff = period_cutoff(period, now)
    if cutoff is None:
        return list(predictions)
    return [p for p in predictions if cutoff <= p.target_date <= now]


def _direction(delta: float) -> int:
    if delta > 0:
        return 1
    if delta < 0:
        return -1
    return 0


def directional_accuracy(pairs: Sequence[PricePair]) -> float:
    """Percent of consecutive transitions where predicted and actual moves agree."""
    if len(pairs) < 2:
        return 0.0
    agreements = sum(
        1
        for prev, cur in zip(pairs, pairs[1:])
        if _direction(cur.actual - prev.actual) == _direction(cur.predicted - prev.predicted)
    )
    return agreements / (len(pairs) - 1) * 100


def blend_accuracy(
    avg_percentage_error: float,
    directional: float,
    threshold: float,
) -> float:
    """Combine the three accuracy views into one unrounded 0–100 score."""
    return (
        (100 - min(avg_percentage_error, MAPE_CAP)) * MAPE_WEIGHT
        + directional * DIRECTIONAL_WEIGHT
        + threshold * THRESHOLD_WEIGHT
    )


def compute_accuracy(
    predictions: Sequence[Prediction],
    actual_prices: Sequence[ActualPrice],
    now: Optional[datetime] = None,
) -> Optional[AccuracyResult]:
    """Score a (model, commodity) prediction set against observed prices.

    Args:
        predictions:   Predictions for one model and one commodity, already
                       period-filtered by the caller if needed.
        actual_prices: Actual prices for that commodity.
        now:           Reference time (defaults to current UTC time).

    Returns:
        ``AccuracyResult``, or ``None`` when there are no predictions, no
        prices, no matured predictions, or no matches.

    Raises:
        MalformedDecimalError: If a matched price field cannot be parsed.
        ValueError: If a matched actual price is zero.
    """
    if not predictions or not actual_prices:
        return None

    now = now or utcnow()
    if not any(is_mature(p, now) for p in predictions):
        return None

    pairs = match_predictions(predictions, actual_prices, now)
    if not pairs:
        return None

    n = len(pairs)
    abs_errors = [p.absolute_error for p in pairs]
    pct_errors = [p.percentage_error for p in pairs]

    avg_abs = sum(abs_errors) / n
    avg_pct = sum(pct_errors) / n

    directional = directional_accuracy(pairs)
    correct = sum(1 for e in pct_errors if e <= THRESHOLD_PCT)
    threshold = correct / n * 100

    accuracy = round_half_up(blend_accuracy(avg_pct, directional, threshold), 2)

    first = predictions[0]
    logger.debug(
        "Accuracy model=%s commodity=%s | n=%d mape=%.3f dir=%.1f thr=%.1f -> %.2f",
        first.ai_model_id, first.commodity_id, n, avg_pct, directional, threshold, accuracy,
    )

    return AccuracyResult(
        ai_model_id=first.ai_model_id,
        commodity_id=first.commodity_id,
        total_predictions=n,
        correct_predictions=correct,
        avg_absolute_error=avg_abs,
        avg_percentage_error=avg_pct,
        accuracy=accuracy,
        last_updated=now,
        directional_accuracy=directional,
        threshold_accuracy=threshold,
    )

"""
Prediction → actual-price matching.

Matching rule for a prediction with target date T:
  1. Among actual prices dated in ``[T, T + 7 days]``, take the earliest.
  2. Otherwise take the price closest to T with ``|date - T| < 24 h``.
  3. Otherwise the prediction is unmatched and is left out of scoring.

Only mature predictions (``target_date <= now``) are ever matched. A
prediction whose target is still in the future is dropped before matching,
regardless of what prices exist.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ai_commodity_index.models.accuracy import PricePair
from ai_commodity_index.models.market import ActualPrice, Prediction

logger = logging.getLogger(__name__)

MATCH_WINDOW = timedelta(days=7)
SAME_DAY_TOLERANCE = timedelta(hours=24)


def is_mature(prediction: Prediction, now: datetime) -> bool:
    """True once the prediction's target date has been reached."""
    return prediction.target_date <= now


def find_matching_price(
    prediction: Prediction,
    actual_prices: Sequence[ActualPrice],
) -> Optional[ActualPrice]:
    """Return the actual price that scores ``prediction``, or ``None``.

    Args:
        prediction:    The prediction to match.
        actual_prices: Candidate prices for the same commodity, any order.

    Returns:
        Earliest price on/after the target within 7 days, else the closest
        price within 24 hours either side, else ``None``.
    """
    target = prediction.target_date

    forward = [
        p for p in actual_prices
        if timedelta(0) <= p.date - target <= MATCH_WINDOW
    ]
    if forward:
        return min(forward, key=lambda p: p.date)

    same_day = [p for p in actual_prices if abs(p.date - target) < SAME_DAY_TOLERANCE]
    if same_day:
        return min(same_day, key=lambda p: abs(p.date - target))

    return None


def match_predictions(
    predictions: Sequence[Prediction],
    actual_prices: Sequence[ActualPrice],
    now: datetime,
) -> list[PricePair]:
    """Match every mature prediction and return pairs ordered by target date.

    Unmatched and immature predictions are dropped. Ties on target date keep
    their input order.
    """
    pairs: list[PricePair] = []
    for prediction in predictions:
        if not is_mature(prediction, now):
            continue
        price = find_matching_price(prediction, actual_prices)
        if price is None:
            continue
        pairs.append(PricePair(
            predicted=prediction.predicted_value,
            actual=price.price_value,
            target_date=prediction.target_date,
        ))

    pairs.sort(key=lambda p: p.target_date)
    logger.debug(
        "Matched %d of %d predictions against %d prices",
        len(pairs), len(predictions), len(actual_prices),
    )
    return pairs

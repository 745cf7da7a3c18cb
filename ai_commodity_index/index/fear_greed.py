"""
Fear/Greed view of the composite index.

    value = round(overall_index * 0.8 + 10)      # 10–90

Bands: >= 75 Extreme Greed, >= 60 Greed, >= 40 Neutral, >= 25 Fear,
otherwise Extreme Fear. ``previous_close`` is ``max(10, value - 2)``.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from ai_commodity_index.models.index import CompositeIndexSnapshot, FearGreedReading
from ai_commodity_index.utils.time_utils import utcnow

SCALE = 0.8
OFFSET = 10.0

_BANDS: list[tuple[int, str]] = [
    (75, "Extreme Greed"),
    (60, "Greed"),
    (40, "Neutral"),
    (25, "Fear"),
]


def fear_greed_value(overall_index: float) -> int:
    return math.floor(overall_index * SCALE + OFFSET + 0.5)


def classify_fear_greed(value: int) -> str:
    for floor_value, label in _BANDS:
        if value >= floor_value:
            return label
    return "Extreme Fear"


def fear_greed_from_snapshot(
    snapshot: CompositeIndexSnapshot,
    now: Optional[datetime] = None,
) -> FearGreedReading:
    value = fear_greed_value(snapshot.overall_value)
    return FearGreedReading(
        value=value,
        classification=classify_fear_greed(value),
        timestamp=now or utcnow(),
        previous_close=max(10, value - 2),
    )

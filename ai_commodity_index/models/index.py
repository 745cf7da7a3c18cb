"""
Composite index models.

``IndexComponents`` and ``CompositeIndexResult`` are the in-memory output of
one index calculation. ``CompositeIndexSnapshot`` is the persisted row; one
is written per calculation run and never updated afterwards. Its numeric
fields are decimal strings, formatted at the persistence boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ai_commodity_index.models.market import CommodityCategory, Prediction
from ai_commodity_index.utils.numeric import parse_decimal
from ai_commodity_index.utils.time_utils import ensure_utc

Sentiment = Literal["bullish", "bearish", "neutral"]

NEUTRAL_VALUE = 50.0


@dataclass(frozen=True)
class IndexComponents:
    """The four 0–100 components of the composite index."""

    directional: float
    confidence: float
    accuracy: float
    momentum: float

    @classmethod
    def neutral(cls) -> "IndexComponents":
        return cls(
            directional=NEUTRAL_VALUE,
            confidence=NEUTRAL_VALUE,
            accuracy=NEUTRAL_VALUE,
            momentum=NEUTRAL_VALUE,
        )


@dataclass(frozen=True)
class CommodityPredictionGroup:
    """The recent predictions of one commodity, tagged with its category."""

    commodity_id: str
    commodity_name: str
    category: CommodityCategory
    predictions: tuple[Prediction, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CompositeIndexResult:
    """Output of one composite index calculation.

    Attributes:
        overall:           Index over all commodity groups.
        hard:              Index over hard-category groups (50.0 if none).
        soft:              Index over soft-category groups (50.0 if none).
        components:        Overall components.
        sentiment:         Classification of ``overall``.
        total_predictions: Predictions across the groups used.
        commodities_used:  Number of groups used.
    """

    overall: float
    hard: float
    soft: float
    components: IndexComponents
    sentiment: Sentiment
    total_predictions: int
    commodities_used: int

    @property
    def is_fallback(self) -> bool:
        return self.commodities_used == 0

    @classmethod
    def neutral(cls) -> "CompositeIndexResult":
        return cls(
            overall=NEUTRAL_VALUE,
            hard=NEUTRAL_VALUE,
            soft=NEUTRAL_VALUE,
            components=IndexComponents.neutral(),
            sentiment="neutral",
            total_predictions=0,
            commodities_used=0,
        )


class CompositeIndexSnapshot(BaseModel):
    """Persisted composite index row.

    Attributes:
        snapshot_id: Auto-assigned DB PK; ``None`` before insertion.
        date: Calculation time (UTC); unique per row.
        overall_index: Decimal string, 0–100.
        hard_commodities_index: Decimal string, 0–100.
        soft_commodities_index: Decimal string, 0–100.
        directional_component: Decimal string, 0–100.
        confidence_component: Decimal string, 0–100.
        accuracy_component: Decimal string, 0–100.
        momentum_component: Decimal string, 0–100.
        total_predictions: Predictions that fed the calculation.
        market_sentiment: ``"bullish"``, ``"bearish"`` or ``"neutral"``.
        created_at: Row creation time, if loaded from the store.
    """

    model_config = ConfigDict(frozen=True)

    snapshot_id: Optional[int] = None
    date: datetime
    overall_index: str
    hard_commodities_index: str
    soft_commodities_index: str
    directional_component: str
    confidence_component: str
    accuracy_component: str
    momentum_component: str
    total_predictions: int
    market_sentiment: Sentiment
    created_at: Optional[datetime] = None

    @field_validator("date", "created_at")
    @classmethod
    def validate_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    @field_validator(
        "overall_index",
        "hard_commodities_index",
        "soft_commodities_index",
        "directional_component",
        "confidence_component",
        "accuracy_component",
        "momentum_component",
    )
    @classmethod
    def validate_index_range(cls, v: str) -> str:
        parsed = parse_decimal(v, "index value")
        if not 0.0 <= parsed <= 100.0:
            raise ValueError(f"Index values must be in [0, 100], got {v}.")
        return v

    @field_validator("total_predictions")
    @classmethod
    def validate_total(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"total_predictions must be >= 0, got {v}.")
        return v

    @property
    def overall_value(self) -> float:
        return parse_decimal(self.overall_index, "overall_index")


@dataclass(frozen=True)
class FearGreedReading:
    """Consumer-facing Fear/Greed view of the latest composite index."""

    value: int
    classification: str
    timestamp: datetime
    previous_close: int

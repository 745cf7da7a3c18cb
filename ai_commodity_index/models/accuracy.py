"""
Accuracy scoring results and league-table rows.

``PricePair``, ``AccuracyResult`` and ``ModelRanking`` are derived on demand
from predictions and actual prices and are never persisted as such, so
they are plain frozen dataclasses.

``AccuracyMetricRecord`` is the per-period summary row written to
``accuracy_metrics`` by the accuracy-metrics pipeline stage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ai_commodity_index.config import VALID_PERIODS
from ai_commodity_index.models.market import AiModel, Commodity


@dataclass(frozen=True)
class PricePair:
    """A prediction matched to an actual price observation.

    Attributes:
        predicted:   Predicted price.
        actual:      Matched actual price.
        target_date: The prediction's target date (ordering key).
    """

    predicted: float
    actual: float
    target_date: datetime

    @property
    def absolute_error(self) -> float:
        return abs(self.actual - self.predicted)

    @property
    def percentage_error(self) -> float:
        """``|actual - predicted| / actual * 100``.

        Raises:
            ValueError: If the actual price is zero.
        """
        if self.actual == 0:
            raise ValueError(
                f"Actual price is zero for target {self.target_date.isoformat()}; "
                "percentage error is undefined."
            )
        return abs((self.actual - self.predicted) / self.actual) * 100


@dataclass(frozen=True)
class AccuracyResult:
    """Blended accuracy for one (model, commodity) over a set of predictions.

    Attributes:
        ai_model_id:          Model the predictions belong to.
        commodity_id:         Commodity the predictions belong to.
        total_predictions:    Number of matched predictions.
        correct_predictions:  Matches within the 5% error threshold.
        avg_absolute_error:   Mean |actual - predicted|.
        avg_percentage_error: MAPE, in percent.
        accuracy:             Blended score 0–100, rounded to 2 places.
        last_updated:         Time the result was computed.
        directional_accuracy: Trend agreement, in percent.
        threshold_accuracy:   Share of matches within threshold, in percent.
    """

    ai_model_id: str
    commodity_id: str
    total_predictions: int
    correct_predictions: int
    avg_absolute_error: float
    avg_percentage_error: float
    accuracy: float
    last_updated: datetime
    directional_accuracy: float = 0.0
    threshold_accuracy: float = 0.0


@dataclass(frozen=True)
class CommodityPerformance:
    """One commodity's accuracy within a model's league-table row."""

    commodity: Commodity
    accuracy: float
    predictions: int


@dataclass(frozen=True)
class ModelRanking:
    """League-table row for one AI model.

    Attributes:
        ai_model:               The ranked model.
        overall_accuracy:       Prediction-count-weighted mean accuracy.
        total_predictions:      Matched predictions across all commodities.
        avg_absolute_error:     Weighted mean absolute error.
        avg_percentage_error:   Weighted mean percentage error.
        commodity_performance:  Per-commodity accuracy, best first.
        rank:                   1-based position (0 before ranking).
        trend:                  +1 moved up, -1 moved down, 0 unchanged/new.
    """

    ai_model: AiModel
    overall_accuracy: float
    total_predictions: int
    avg_absolute_error: float
    avg_percentage_error: float
    commodity_performance: tuple[CommodityPerformance, ...] = field(default_factory=tuple)
    rank: int = 0
    trend: int = 0


class AccuracyMetricRecord(BaseModel):
    """Persisted accuracy summary for (model, commodity, period).

    Attributes:
        metric_id: Auto-assigned DB PK; ``None`` before insertion.
        ai_model_id: FK to ``ai_models.id``.
        commodity_id: FK to ``commodities.id``.
        period: ``"7d"``, ``"30d"``, ``"90d"`` or ``"all"``.
        accuracy: Decimal string, 0–100.
        total_predictions: Matched prediction count.
        correct_predictions: Matches within threshold.
        avg_error: Decimal string mean absolute error.
        last_updated: UTC time the row was written.
    """

    model_config = ConfigDict(frozen=True)

    metric_id: Optional[int] = None
    ai_model_id: str
    commodity_id: str
    period: str
    accuracy: str
    total_predictions: int
    correct_predictions: int
    avg_error: Optional[str] = None
    last_updated: Optional[datetime] = None

    @field_validator("period")
    @classmethod
    def validate_period(cls, v: str) -> str:
        if v not in VALID_PERIODS:
            raise ValueError(f"Unknown period '{v}'. Must be one of {sorted(VALID_PERIODS)}.")
        return v

"""
Market domain models: AI models, commodities, predictions and actual prices.

All four are frozen. Predictions are written once by the generation
subsystem and never edited; actual prices are append-only.

Monetary and confidence fields stay decimal strings, exactly as the store
holds them. Use the ``*_value`` properties to get floats; they raise
``MalformedDecimalError`` for unparseable text. A prediction confidence is
checked on construction and must parse to a value in [0, 1].
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ai_commodity_index.utils.numeric import parse_decimal, parse_optional_decimal
from ai_commodity_index.utils.time_utils import ensure_utc

Timeframe = Literal["3mo", "6mo", "9mo", "12mo"]
VALID_TIMEFRAMES: frozenset[str] = frozenset({"3mo", "6mo", "9mo", "12mo"})

CommodityCategory = Literal["hard", "soft"]

DEFAULT_CONFIDENCE = 0.5


def _new_id() -> str:
    return str(uuid4())


class AiModel(BaseModel):
    """An LLM provider model whose predictions are tracked.

    Attributes:
        id: Primary key (UUID string).
        name: Display name, e.g. ``"Claude"``; unique.
        provider: Provider slug, e.g. ``"anthropic"``.
        color: Chart colour hex string.
        is_active: Whether new predictions are generated for this model.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    name: str
    provider: str
    color: str = "#888888"
    is_active: bool = True


class Commodity(BaseModel):
    """A tracked commodity or crypto asset.

    Attributes:
        id: Primary key (UUID string).
        name: Display name, e.g. ``"Gold"``.
        symbol: Short ticker, e.g. ``"XAU"``; unique.
        category: ``"hard"`` (metals/energy) or ``"soft"`` (agricultural).
        yahoo_symbol: Yahoo Finance chart symbol, e.g. ``"GC=F"``.
        unit: Price unit label.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    name: str
    symbol: str
    category: CommodityCategory
    yahoo_symbol: Optional[str] = None
    unit: str = "USD"


class Prediction(BaseModel):
    """One AI-generated price prediction for a commodity at a target date.

    Attributes:
        id: Primary key (UUID string).
        ai_model_id: FK to ``ai_models.id``.
        commodity_id: FK to ``commodities.id``.
        prediction_date: When the prediction was made (UTC).
        target_date: The date the predicted price refers to (UTC).
        predicted_price: Decimal string, e.g. ``"2410.5000"``.
        confidence: Decimal string in 0–1, or ``None`` if the model gave none.
        timeframe: Horizon bucket.
        metadata: Free-form provider payload (reasoning text etc.).
        created_at: Row creation time, if loaded from the store.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    ai_model_id: str
    commodity_id: str
    prediction_date: datetime
    target_date: datetime
    predicted_price: str
    confidence: Optional[str] = None
    timeframe: Timeframe = "3mo"
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    @field_validator("prediction_date", "target_date", "created_at")
    @classmethod
    def validate_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        value = parse_decimal(v, "confidence")
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {v}")
        return v

    @property
    def predicted_value(self) -> float:
        return parse_decimal(self.predicted_price, "predicted_price")

    @property
    def confidence_value(self) -> float:
        """Confidence as a float, defaulting to 0.5 when absent."""
        return parse_optional_decimal(self.confidence, DEFAULT_CONFIDENCE, "confidence")


class ActualPrice(BaseModel):
    """An observed market price for a commodity.

    Attributes:
        id: Primary key (UUID string).
        commodity_id: FK to ``commodities.id``.
        date: Observation timestamp (UTC).
        price: Decimal string close price.
        volume: Decimal string volume, if the source reports one.
        source: Data source slug.
        created_at: Row creation time, if loaded from the store.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    commodity_id: str
    date: datetime
    price: str
    volume: Optional[str] = None
    source: str = "yahoo_finance"
    created_at: Optional[datetime] = None

    @field_validator("date", "created_at")
    @classmethod
    def validate_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    @property
    def price_value(self) -> float:
        return parse_decimal(self.price, "price")

"""
CSV importers for predictions and actual prices.

Predictions CSV columns::

    ai_model, commodity_symbol, prediction_date, target_date,
    predicted_price, confidence, timeframe

``ai_model`` is the model's display name; ``confidence`` may be blank.

Actual prices CSV columns::

    commodity_symbol, date, price, volume, source

``volume`` and ``source`` may be blank (source defaults to ``manual``).

Every row is validated before anything is returned. All failures are
collected and raised as a single ``ValueError`` so a bad file is rejected
as a whole.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from ai_commodity_index.models.market import VALID_TIMEFRAMES, ActualPrice, Prediction
from ai_commodity_index.utils.numeric import parse_decimal
from ai_commodity_index.utils.time_utils import parse_datetime

logger = logging.getLogger(__name__)

PREDICTION_COLUMNS = (
    "ai_model", "commodity_symbol", "prediction_date", "target_date",
    "predicted_price", "confidence", "timeframe",
)
PRICE_COLUMNS = ("commodity_symbol", "date", "price")


@dataclass(frozen=True)
class PredictionRow:
    """A validated predictions-CSV row, keyed by names rather than ids."""

    ai_model: str
    commodity_symbol: str
    prediction_date: datetime
    target_date: datetime
    predicted_price: str
    confidence: Optional[str]
    timeframe: str

    def to_prediction(self, ai_model_id: str, commodity_id: str) -> Prediction:
        return Prediction(
            ai_model_id=ai_model_id,
            commodity_id=commodity_id,
            prediction_date=self.prediction_date,
            target_date=self.target_date,
            predicted_price=self.predicted_price,
            confidence=self.confidence,
            timeframe=self.timeframe,
            metadata={"source": "csv_import"},
        )


@dataclass(frozen=True)
class PriceRow:
    """A validated prices-CSV row, keyed by commodity symbol."""

    commodity_symbol: str
    date: datetime
    price: str
    volume: Optional[str]
    source: str

    def to_actual_price(self, commodity_id: str) -> ActualPrice:
        return ActualPrice(
            commodity_id=commodity_id,
            date=self.date,
            price=self.price,
            volume=self.volume,
            source=self.source,
        )


def _read_rows(path: Path, required: tuple[str, ...]) -> list[dict[str, str]]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        missing = [c for c in required if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{path.name}: missing required columns {missing}.")
        return [{k: (v or "").strip() for k, v in row.items() if k} for row in reader]


def _raise_if_errors(path: Path, errors: list[str]) -> None:
    if errors:
        raise ValueError(
            f"{Path(path).name}: {len(errors)} invalid row(s):\n  " + "\n  ".join(errors)
        )


def parse_predictions_csv(path: Path) -> list[PredictionRow]:
    """Read and validate a predictions CSV.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If columns are missing or any row is invalid.
    """
    rows = _read_rows(path, PREDICTION_COLUMNS)
    parsed: list[PredictionRow] = []
    errors: list[str] = []

    for line_no, row in enumerate(rows, start=2):
        try:
            parse_decimal(row["predicted_price"], "predicted_price")
            confidence = row["confidence"] or None
            if confidence is not None:
                value = parse_decimal(confidence, "confidence")
                if not 0.0 <= value <= 1.0:
                    raise ValueError(f"confidence must be in [0, 1], got {confidence}")
            timeframe = row["timeframe"] or "3mo"
            if timeframe not in VALID_TIMEFRAMES:
                raise ValueError(f"unknown timeframe '{timeframe}'")
            if not row["ai_model"] or not row["commodity_symbol"]:
                raise ValueError("ai_model and commodity_symbol are required")
            parsed.append(PredictionRow(
                ai_model=row["ai_model"],
                commodity_symbol=row["commodity_symbol"],
                prediction_date=parse_datetime(row["prediction_date"]),
                target_date=parse_datetime(row["target_date"]),
                predicted_price=row["predicted_price"],
                confidence=confidence,
                timeframe=timeframe,
            ))
        except ValueError as exc:
            errors.append(f"line {line_no}: {exc}")

    _raise_if_errors(path, errors)
    logger.info("Parsed %d prediction rows from %s", len(parsed), path)
    return parsed


def parse_actual_prices_csv(path: Path) -> list[PriceRow]:
    """Read and validate an actual-prices CSV.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If columns are missing or any row is invalid.
    """
    rows = _read_rows(path, PRICE_COLUMNS)
    parsed: list[PriceRow] = []
    errors: list[str] = []

    for line_no, row in enumerate(rows, start=2):
        try:
            if not row["commodity_symbol"]:
                raise ValueError("commodity_symbol is required")
            if parse_decimal(row["price"], "price") <= 0:
                raise ValueError(f"price must be > 0, got {row['price']}")
            volume = row.get("volume") or None
            if volume is not None:
                parse_decimal(volume, "volume")
            parsed.append(PriceRow(
                commodity_symbol=row["commodity_symbol"],
                date=parse_datetime(row["date"]),
                price=row["price"],
                volume=volume,
                source=row.get("source") or "manual",
            ))
        except ValueError as exc:
            errors.append(f"line {line_no}: {exc}")

    _raise_if_errors(path, errors)
    logger.info("Parsed %d price rows from %s", len(parsed), path)
    return parsed

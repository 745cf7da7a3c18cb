"""
Repository for AI models, commodities, predictions and actual prices.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Optional, Sequence

from ai_commodity_index.db.repositories.base import BaseRepository, from_iso, to_iso
from ai_commodity_index.models.market import ActualPrice, AiModel, Commodity, Prediction
from ai_commodity_index.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

_INSERT_PREDICTION = """
INSERT INTO predictions (
    id, ai_model_id, commodity_id, prediction_date, target_date,
    predicted_price, confidence, timeframe, metadata, created_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_INSERT_ACTUAL_PRICE = """
INSERT INTO actual_prices (
    id, commodity_id, date, price, volume, source, created_at
) VALUES (?, ?, ?, ?, ?, ?, ?);
"""


class MarketRepository(BaseRepository):
    """Read/write access to ``ai_models``, ``commodities``, ``predictions``
    and ``actual_prices``."""

    # ── AI models ─────────────────────────────────────────────────────────────

    def insert_ai_model(self, model: AiModel) -> str:
        self.execute(
            """
            INSERT INTO ai_models (id, name, provider, color, is_active)
            VALUES (?, ?, ?, ?, ?);
            """,
            (model.id, model.name, model.provider, model.color, int(model.is_active)),
        )
        return model.id

    def get_ai_models(self, active_only: bool = False) -> list[AiModel]:
        """Fetch AI models ordered by name."""
        sql = "SELECT * FROM ai_models"
        if active_only:
            sql += " WHERE is_active = 1"
        rows = self.fetchall(sql + " ORDER BY name;")
        return [_row_to_ai_model(r) for r in rows]

    def get_ai_model_by_name(self, name: str) -> Optional[AiModel]:
        row = self.fetchone("SELECT * FROM ai_models WHERE name = ?;", (name,))
        return _row_to_ai_model(row) if row else None

    # ── Commodities ───────────────────────────────────────────────────────────

    def insert_commodity(self, commodity: Commodity) -> str:
        self.execute(
            """
            INSERT INTO commodities (id, name, symbol, category, yahoo_symbol, unit)
            VALUES (?, ?, ?, ?, ?, ?);
            """,
            (
                commodity.id,
                commodity.name,
                commodity.symbol,
                commodity.category,
                commodity.yahoo_symbol,
                commodity.unit,
            ),
        )
        return commodity.id

    def get_commodities(self) -> list[Commodity]:
        """Fetch all commodities ordered by name."""
        rows = self.fetchall("SELECT * FROM commodities ORDER BY name;")
        return [_row_to_commodity(r) for r in rows]

    def get_commodity(self, commodity_id: str) -> Optional[Commodity]:
        row = self.fetchone("SELECT * FROM commodities WHERE id = ?;", (commodity_id,))
        return _row_to_commodity(row) if row else None

    def get_commodity_by_symbol(self, symbol: str) -> Optional[Commodity]:
        row = self.fetchone("SELECT * FROM commodities WHERE symbol = ?;", (symbol,))
        return _row_to_commodity(row) if row else None

    # ── Predictions ───────────────────────────────────────────────────────────

    def insert_prediction(self, prediction: Prediction) -> str:
        self.execute(_INSERT_PREDICTION, _prediction_params(prediction))
        return prediction.id

    def insert_predictions(self, predictions: Sequence[Prediction]) -> int:
        """Bulk-insert predictions. Returns the number of rows inserted."""
        if not predictions:
            return 0
        self.executemany(_INSERT_PREDICTION, [_prediction_params(p) for p in predictions])
        return len(predictions)

    def get_predictions(
        self,
        commodity_id: Optional[str] = None,
        ai_model_id: Optional[str] = None,
        timeframe: Optional[str] = None,
    ) -> list[Prediction]:
        """Fetch predictions, newest ``created_at`` first.

        Args:
            commodity_id: Restrict to one commodity.
            ai_model_id:  Restrict to one AI model.
            timeframe:    Restrict to one horizon bucket.
        """
        clauses: list[str] = []
        params: list[str] = []
        if commodity_id is not None:
            clauses.append("commodity_id = ?")
            params.append(commodity_id)
        if ai_model_id is not None:
            clauses.append("ai_model_id = ?")
            params.append(ai_model_id)
        if timeframe is not None:
            clauses.append("timeframe = ?")
            params.append(timeframe)

        sql = "SELECT * FROM predictions"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at DESC, rowid DESC;"
        return [_row_to_prediction(r) for r in self.fetchall(sql, tuple(params))]

    def count_predictions(self) -> int:
        row = self.fetchone("SELECT COUNT(*) AS n FROM predictions;")
        return int(row["n"]) if row else 0

    # ── Actual prices ─────────────────────────────────────────────────────────

    def insert_actual_price(self, price: ActualPrice) -> str:
        self.execute(_INSERT_ACTUAL_PRICE, _price_params(price))
        return price.id

    def insert_actual_prices(self, prices: Sequence[ActualPrice]) -> int:
        if not prices:
            return 0
        self.executemany(_INSERT_ACTUAL_PRICE, [_price_params(p) for p in prices])
        return len(prices)

    def get_actual_prices(
        self,
        commodity_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[ActualPrice]:
        """Fetch actual prices, most recent observation first.

        ``limit`` applies per query, so with no ``commodity_id`` it caps the
        combined result.
        """
        sql = "SELECT * FROM actual_prices"
        params: list[object] = []
        if commodity_id is not None:
            sql += " WHERE commodity_id = ?"
            params.append(commodity_id)
        sql += " ORDER BY date DESC, rowid DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        return [_row_to_price(r) for r in self.fetchall(sql + ";", tuple(params))]

    def get_latest_price(self, commodity_id: str) -> Optional[ActualPrice]:
        prices = self.get_actual_prices(commodity_id, limit=1)
        return prices[0] if prices else None

    def get_price_days(self, commodity_id: str) -> set[str]:
        """Return the ``YYYY-MM-DD`` days that already have a price stored."""
        rows = self.fetchall(
            "SELECT DISTINCT substr(date, 1, 10) AS day FROM actual_prices WHERE commodity_id = ?;",
            (commodity_id,),
        )
        return {r["day"] for r in rows}


# ── Private helpers ────────────────────────────────────────────────────────────

def _prediction_params(p: Prediction) -> tuple:
    return (
        p.id,
        p.ai_model_id,
        p.commodity_id,
        to_iso(p.prediction_date),
        to_iso(p.target_date),
        p.predicted_price,
        p.confidence,
        p.timeframe,
        json.dumps(p.metadata) if p.metadata else None,
        to_iso(p.created_at or utcnow()),
    )


def _price_params(p: ActualPrice) -> tuple:
    return (
        p.id,
        p.commodity_id,
        to_iso(p.date),
        p.price,
        p.volume,
        p.source,
        to_iso(p.created_at or utcnow()),
    )


def _row_to_ai_model(row: sqlite3.Row) -> AiModel:
    return AiModel(
        id=row["id"],
        name=row["name"],
        provider=row["provider"],
        color=row["color"],
        is_active=bool(row["is_active"]),
    )


def _row_to_commodity(row: sqlite3.Row) -> Commodity:
    return Commodity(
        id=row["id"],
        name=row["name"],
        symbol=row["symbol"],
        category=row["category"],
        yahoo_symbol=row["yahoo_symbol"],
        unit=row["unit"],
    )


def _row_to_prediction(row: sqlite3.Row) -> Prediction:
    return Prediction(
        id=row["id"],
        ai_model_id=row["ai_model_id"],
        commodity_id=row["commodity_id"],
        prediction_date=from_iso(row["prediction_date"]),
        target_date=from_iso(row["target_date"]),
        predicted_price=row["predicted_price"],
        confidence=row["confidence"],
        timeframe=row["timeframe"],
        metadata=json.loads(row["metadata"]) if row["metadata"] else {},
        created_at=from_iso(row["created_at"]),
    )


def _row_to_price(row: sqlite3.Row) -> ActualPrice:
    return ActualPrice(
        id=row["id"],
        commodity_id=row["commodity_id"],
        date=from_iso(row["date"]),
        price=row["price"],
        volume=row["volume"],
        source=row["source"],
        created_at=from_iso(row["created_at"]),
    )

"""
Shared pytest fixtures for the AI Commodity Composite Index test suite.

Provides:
  - ``NOW``: fixed reference time used by every time-dependent test.
  - ``in_memory_db``: a fresh in-memory SQLite connection with the schema.
  - ``make_prediction`` / ``make_price``: factories with sensible defaults.
  - ``seeded_db``: ``in_memory_db`` with two models and two commodities.
  - ``file_config``: an ``AppConfig`` pointing at a schema-initialised
    SQLite file under ``tmp_path`` (pipeline stages open their own
    connections, so they need a file).
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Callable, Generator, Optional

import pytest

from ai_commodity_index.config import AppConfig, DatabaseConfig
from ai_commodity_index.db.repositories.market_repo import MarketRepository
from ai_commodity_index.db.schema import apply_schema
from ai_commodity_index.models.market import ActualPrice, AiModel, Commodity, Prediction

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

MODEL_A = AiModel(id="model-a", name="Claude", provider="Anthropic")
MODEL_B = AiModel(id="model-b", name="ChatGPT", provider="OpenAI")
GOLD = Commodity(id="gold", name="Gold", symbol="XAU", category="hard", yahoo_symbol="GC=F")
COFFEE = Commodity(id="coffee", name="Coffee", symbol="KC", category="soft", yahoo_symbol="KC=F")


# ── Database fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Fresh in-memory SQLite connection with the full schema and FKs ON."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    apply_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def seeded_db(in_memory_db: sqlite3.Connection) -> sqlite3.Connection:
    """``in_memory_db`` with MODEL_A, MODEL_B, GOLD (hard) and COFFEE (soft)."""
    repo = MarketRepository(in_memory_db)
    for model in (MODEL_A, MODEL_B):
        repo.insert_ai_model(model)
    for commodity in (GOLD, COFFEE):
        repo.insert_commodity(commodity)
    in_memory_db.commit()
    return in_memory_db


@pytest.fixture
def file_config(tmp_path) -> AppConfig:
    """AppConfig whose database is a schema-initialised file in ``tmp_path``,
    seeded like ``seeded_db``."""
    db_file = str(tmp_path / "acci.db")
    conn = sqlite3.connect(db_file)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    apply_schema(conn)
    repo = MarketRepository(conn)
    for model in (MODEL_A, MODEL_B):
        repo.insert_ai_model(model)
    for commodity in (GOLD, COFFEE):
        repo.insert_commodity(commodity)
    conn.commit()
    conn.close()
    return AppConfig(database=DatabaseConfig(db_path=db_file, wal_mode=False))


# ── Domain object factories ───────────────────────────────────────────────────

@pytest.fixture
def make_prediction() -> Callable[..., Prediction]:
    """Factory: ``make_prediction(price, target_days=-10, ...)``.

    ``target_days`` and ``made_days`` are offsets from ``NOW`` in days.
    """

    def _make(
        price: str | float,
        target_days: float = -10,
        made_days: Optional[float] = None,
        confidence: Optional[str] = "0.7",
        ai_model_id: str = MODEL_A.id,
        commodity_id: str = GOLD.id,
        timeframe: str = "3mo",
    ) -> Prediction:
        target = NOW + timedelta(days=target_days)
        made = NOW + timedelta(days=made_days) if made_days is not None else target - timedelta(days=90)
        return Prediction(
            ai_model_id=ai_model_id,
            commodity_id=commodity_id,
            prediction_date=made,
            target_date=target,
            predicted_price=str(price),
            confidence=confidence,
            timeframe=timeframe,
        )

    return _make


@pytest.fixture
def make_price() -> Callable[..., ActualPrice]:
    """Factory: ``make_price(price, days=-10, commodity_id="gold")``; ``days`` offsets ``NOW``."""

    def _make(
        price: str | float,
        days: float = -10,
        commodity_id: str = GOLD.id,
    ) -> ActualPrice:
        return ActualPrice(
            commodity_id=commodity_id,
            date=NOW + timedelta(days=days),
            price=str(price),
        )

    return _make

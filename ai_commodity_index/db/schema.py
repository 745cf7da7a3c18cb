"""
SQLite schema DDL.

Every statement uses ``IF NOT EXISTS`` so ``apply_schema()`` is idempotent.

Creation order follows foreign keys:
  1. ai_models
  2. commodities
  3. predictions          (→ ai_models, commodities)
  4. actual_prices        (→ commodities)
  5. accuracy_metrics     (→ ai_models, commodities)
  6. composite_index      (no FKs)
  7. model_rank_history   (→ ai_models)
  8. run_metadata         (no FKs)

Prices, confidences, index values and accuracies are TEXT decimal strings.
Timestamps are ISO-8601 UTC strings.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

_NOW_DEFAULT = "(strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))"

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_AI_MODELS = f"""
CREATE TABLE IF NOT EXISTS ai_models (
    id          TEXT    PRIMARY KEY,
    name        TEXT    NOT NULL UNIQUE,
    provider    TEXT    NOT NULL,
    color       TEXT    NOT NULL DEFAULT '#888888',
    is_active   INTEGER NOT NULL DEFAULT 1,
    created_at  TEXT    NOT NULL DEFAULT {_NOW_DEFAULT}
);
"""

_DDL_COMMODITIES = f"""
CREATE TABLE IF NOT EXISTS commodities (
    id            TEXT    PRIMARY KEY,
    name          TEXT    NOT NULL,
    symbol        TEXT    NOT NULL UNIQUE,
    category      TEXT    NOT NULL CHECK (category IN ('hard', 'soft')),
    yahoo_symbol  TEXT,
    unit          TEXT    NOT NULL DEFAULT 'USD',
    created_at    TEXT    NOT NULL DEFAULT {_NOW_DEFAULT}
);
"""

_DDL_PREDICTIONS = f"""
CREATE TABLE IF NOT EXISTS predictions (
    id               TEXT    PRIMARY KEY,
    ai_model_id      TEXT    NOT NULL REFERENCES ai_models(id),
    commodity_id     TEXT    NOT NULL REFERENCES commodities(id),
    prediction_date  TEXT    NOT NULL,
    target_date      TEXT    NOT NULL,
    predicted_price  TEXT    NOT NULL,
    confidence       TEXT,
    timeframe        TEXT    NOT NULL DEFAULT '3mo',
    metadata         TEXT,
    created_at       TEXT    NOT NULL DEFAULT {_NOW_DEFAULT}
);
"""

_DDL_PREDICTIONS_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_predictions_commodity
    ON predictions(commodity_id, prediction_date);
CREATE INDEX IF NOT EXISTS idx_predictions_model_commodity
    ON predictions(ai_model_id, commodity_id);
"""

_DDL_ACTUAL_PRICES = f"""
CREATE TABLE IF NOT EXISTS actual_prices (
    id            TEXT    PRIMARY KEY,
    commodity_id  TEXT    NOT NULL REFERENCES commodities(id),
    date          TEXT    NOT NULL,
    price         TEXT    NOT NULL,
    volume        TEXT,
    source        TEXT    NOT NULL DEFAULT 'yahoo_finance',
    created_at    TEXT    NOT NULL DEFAULT {_NOW_DEFAULT}
);
"""

_DDL_ACTUAL_PRICES_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_actual_prices_commodity_date
    ON actual_prices(commodity_id, date);
"""

_DDL_ACCURACY_METRICS = f"""
CREATE TABLE IF NOT EXISTS accuracy_metrics (
    metric_id            INTEGER PRIMARY KEY AUTOINCREMENT,
    ai_model_id          TEXT    NOT NULL REFERENCES ai_models(id),
    commodity_id         TEXT    NOT NULL REFERENCES commodities(id),
    period               TEXT    NOT NULL,
    accuracy             TEXT    NOT NULL,
    total_predictions    INTEGER NOT NULL DEFAULT 0,
    correct_predictions  INTEGER NOT NULL DEFAULT 0,
    avg_error            TEXT,
    last_updated         TEXT    NOT NULL DEFAULT {_NOW_DEFAULT},
    UNIQUE(ai_model_id, commodity_id, period)
);
"""

_DDL_COMPOSITE_INDEX = f"""
CREATE TABLE IF NOT EXISTS composite_index (
    snapshot_id             INTEGER PRIMARY KEY AUTOINCREMENT,
    date                    TEXT    NOT NULL UNIQUE,
    overall_index           TEXT    NOT NULL,
    hard_commodities_index  TEXT    NOT NULL,
    soft_commodities_index  TEXT    NOT NULL,
    directional_component   TEXT    NOT NULL,
    confidence_component    TEXT    NOT NULL,
    accuracy_component      TEXT    NOT NULL,
    momentum_component      TEXT    NOT NULL,
    total_predictions       INTEGER NOT NULL DEFAULT 0,
    market_sentiment        TEXT    NOT NULL,
    created_at              TEXT    NOT NULL DEFAULT {_NOW_DEFAULT}
);
"""

_DDL_MODEL_RANK_HISTORY = """
CREATE TABLE IF NOT EXISTS model_rank_history (
    history_id         INTEGER PRIMARY KEY AUTOINCREMENT,
    ai_model_id        TEXT    NOT NULL REFERENCES ai_models(id),
    period             TEXT    NOT NULL,
    rank               INTEGER NOT NULL,
    overall_accuracy   TEXT    NOT NULL,
    total_predictions  INTEGER NOT NULL DEFAULT 0,
    ranked_at          TEXT    NOT NULL
);
"""

_DDL_MODEL_RANK_HISTORY_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_rank_history_period_time
    ON model_rank_history(period, ranked_at);
"""

_DDL_RUN_METADATA = f"""
CREATE TABLE IF NOT EXISTS run_metadata (
    run_id          INTEGER PRIMARY KEY AUTOINCREMENT,
    run_slug        TEXT    NOT NULL UNIQUE,
    pipeline_stage  TEXT    NOT NULL,
    status          TEXT    NOT NULL DEFAULT 'started',
    config_snapshot TEXT    NOT NULL,
    rows_processed  INTEGER NOT NULL DEFAULT 0,
    error_message   TEXT,
    started_at      TEXT    NOT NULL DEFAULT {_NOW_DEFAULT},
    finished_at     TEXT
);
"""

# ── Ordered list of all DDL to apply ──────────────────────────────────────────

_ALL_DDL: list[str] = [
    _DDL_AI_MODELS,
    _DDL_COMMODITIES,
    _DDL_PREDICTIONS,
    _DDL_PREDICTIONS_INDEXES,
    _DDL_ACTUAL_PRICES,
    _DDL_ACTUAL_PRICES_INDEXES,
    _DDL_ACCURACY_METRICS,
    _DDL_COMPOSITE_INDEX,
    _DDL_MODEL_RANK_HISTORY,
    _DDL_MODEL_RANK_HISTORY_INDEXES,
    _DDL_RUN_METADATA,
]

ALL_TABLE_NAMES = [
    "ai_models",
    "commodities",
    "predictions",
    "actual_prices",
    "accuracy_metrics",
    "composite_index",
    "model_rank_history",
    "run_metadata",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn``. Safe to call repeatedly."""
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables, indexes created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return table names present in the database, sorted."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]

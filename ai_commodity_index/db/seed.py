"""
Reference data loader: default AI models and tracked commodities.

Rows whose name (models) or symbol (commodities) already exists are left
alone, so seeding is idempotent and never clobbers edited rows.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

from ai_commodity_index.db.repositories.market_repo import MarketRepository
from ai_commodity_index.models.market import AiModel, Commodity

logger = logging.getLogger(__name__)


def load_reference_data(path: Path) -> tuple[list[AiModel], list[Commodity]]:
    """Parse and validate a reference data JSON file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        pydantic.ValidationError: If an entry is invalid.
    """
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    models = [AiModel(**m) for m in raw.get("ai_models", [])]
    commodities = [Commodity(**c) for c in raw.get("commodities", [])]
    return models, commodities


def seed_reference_data(conn: sqlite3.Connection, path: Path) -> tuple[int, int]:
    """Insert missing models and commodities. Returns ``(models, commodities)`` added."""
    models, commodities = load_reference_data(path)
    repo = MarketRepository(conn)

    added_models = 0
    for model in models:
        if repo.get_ai_model_by_name(model.name) is None:
            repo.insert_ai_model(model)
            added_models += 1

    added_commodities = 0
    for commodity in commodities:
        if repo.get_commodity_by_symbol(commodity.symbol) is None:
            repo.insert_commodity(commodity)
            added_commodities += 1

    logger.info(
        "Seeded reference data | models=%d/%d commodities=%d/%d",
        added_models, len(models), added_commodities, len(commodities),
    )
    return added_models, added_commodities

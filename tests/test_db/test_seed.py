"""Tests for db/seed.py — reference data loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from ai_commodity_index.db.repositories.market_repo import MarketRepository
from ai_commodity_index.db.seed import load_reference_data, seed_reference_data

SEED_FILE = Path(__file__).parents[2] / "config" / "seed" / "reference_data.json"


def test_committed_seed_file_is_valid():
    models, commodities = load_reference_data(SEED_FILE)
    assert {m.name for m in models} == {"Claude", "ChatGPT", "Deepseek"}
    assert len(commodities) == 14
    assert sum(1 for c in commodities if c.category == "hard") == 8
    assert sum(1 for c in commodities if c.category == "soft") == 6
    assert all(c.yahoo_symbol for c in commodities)


def test_seed_inserts_everything(in_memory_db):
    assert seed_reference_data(in_memory_db, SEED_FILE) == (3, 14)
    repo = MarketRepository(in_memory_db)
    assert len(repo.get_ai_models()) == 3
    assert repo.get_commodity_by_symbol("XAU").yahoo_symbol == "GC=F"


def test_seed_is_idempotent(in_memory_db):
    seed_reference_data(in_memory_db, SEED_FILE)
    assert seed_reference_data(in_memory_db, SEED_FILE) == (0, 0)
    assert len(MarketRepository(in_memory_db).get_commodities()) == 14


def test_existing_rows_are_kept(seeded_db):
    """seeded_db already has Claude, ChatGPT, Gold (XAU) and Coffee (KC)."""
    assert seed_reference_data(seeded_db, SEED_FILE) == (1, 12)
    assert MarketRepository(seeded_db).get_commodity_by_symbol("XAU").id == "gold"


def test_missing_file_raises(in_memory_db, tmp_path):
    with pytest.raises(FileNotFoundError):
        seed_reference_data(in_memory_db, tmp_path / "nope.json")


def test_invalid_entry_raises(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({
        "commodities": [{"name": "Bitcoin", "symbol": "BTC", "category": "crypto"}],
    }), encoding="utf-8")
    with pytest.raises(ValidationError):
        load_reference_data(path)

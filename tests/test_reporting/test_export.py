"""Tests for reporting/export.py."""

from __future__ import annotations

import csv
import json
from pathlib import Path

from ai_commodity_index.index.composite import build_snapshot
from ai_commodity_index.models.accuracy import CommodityPerformance, ModelRanking
from ai_commodity_index.models.index import CompositeIndexResult
from ai_commodity_index.reporting.export import (
    RANKING_COLUMNS,
    export_to_csv,
    export_to_json,
    rankings_to_rows,
    snapshots_to_rows,
)
from conftest import COFFEE, GOLD, MODEL_A, MODEL_B, NOW


def _rankings() -> list[ModelRanking]:
    return [
        ModelRanking(
            ai_model=MODEL_A,
            overall_accuracy=87.4166,
            total_predictions=12,
            avg_absolute_error=3.14159,
            avg_percentage_error=1.23456,
            commodity_performance=(
                CommodityPerformance(commodity=GOLD, accuracy=92.1, predictions=8),
                CommodityPerformance(commodity=COFFEE, accuracy=78.0, predictions=4),
            ),
            rank=1,
            trend=1,
        ),
        ModelRanking(
            ai_model=MODEL_B,
            overall_accuracy=0.0,
            total_predictions=0,
            avg_absolute_error=0.0,
            avg_percentage_error=0.0,
            rank=2,
        ),
    ]


# ── export_to_csv ─────────────────────────────────────────────────────────────


def test_export_to_csv_basic(tmp_path: Path) -> None:
    out = tmp_path / "rankings.csv"
    result = export_to_csv(rankings_to_rows(_rankings()), out, fieldnames=RANKING_COLUMNS)

    assert result == out
    with out.open(encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert [r["ai_model"] for r in rows] == ["Claude", "ChatGPT"]
    assert rows[0]["overall_accuracy"] == "87.42"
    assert rows[0]["best_commodity"] == "Gold"
    assert rows[1]["best_commodity"] == ""


def test_export_to_csv_columns_from_first_record(tmp_path: Path) -> None:
    out = tmp_path / "cols.csv"
    export_to_csv([{"b": 1, "a": 2}], out)
    assert out.read_text(encoding="utf-8").splitlines()[0] == "b,a"


def test_export_to_csv_extra_keys_ignored(tmp_path: Path) -> None:
    out = tmp_path / "e.csv"
    export_to_csv([{"name": "foo", "extra": "bar"}], out, fieldnames=["name"])
    with out.open(encoding="utf-8") as f:
        row = next(csv.DictReader(f))
    assert row == {"name": "foo"}


def test_export_to_csv_empty_records(tmp_path: Path) -> None:
    out = tmp_path / "empty.csv"
    export_to_csv([], out)
    assert out.read_text(encoding="utf-8") == ""


def test_export_to_csv_header_only(tmp_path: Path) -> None:
    out = tmp_path / "header.csv"
    export_to_csv([], out, fieldnames=RANKING_COLUMNS)
    assert out.read_text(encoding="utf-8").strip() == ",".join(RANKING_COLUMNS)


def test_export_creates_parent_dirs(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "dir" / "output.json"
    export_to_json({"x": 1}, out)
    assert out.exists()


# ── export_to_json ────────────────────────────────────────────────────────────


def test_export_to_json_snapshots(tmp_path: Path) -> None:
    snapshot = build_snapshot(CompositeIndexResult.neutral(), NOW)
    out = export_to_json(snapshots_to_rows([snapshot]), tmp_path / "history.json")

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data[0]["overall_index"] == "50.0"
    assert data[0]["market_sentiment"] == "neutral"
    assert data[0]["date"].startswith("2025-06-01T12:00:00")


# ── rankings_to_rows ──────────────────────────────────────────────────────────


def test_rankings_to_rows_formatting() -> None:
    row = rankings_to_rows(_rankings())[0]
    assert list(row) == RANKING_COLUMNS
    assert row["rank"] == 1
    assert row["trend"] == 1
    assert row["provider"] == "Anthropic"
    assert row["avg_absolute_error"] == "3.1416"
    assert row["avg_percentage_error"] == "1.2346"
    assert row["best_commodity_accuracy"] == "92.1"


def test_rankings_to_rows_empty() -> None:
    assert rankings_to_rows([]) == []

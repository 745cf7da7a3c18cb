"""Tests for reporting/formatters.py."""

from __future__ import annotations

from ai_commodity_index.index.composite import build_snapshot
from ai_commodity_index.models.accuracy import CommodityPerformance, ModelRanking
from ai_commodity_index.models.index import CompositeIndexResult, FearGreedReading
from ai_commodity_index.reporting.formatters import (
    format_fear_greed,
    format_index_history,
    format_index_summary,
    format_rankings_table,
)
from conftest import GOLD, MODEL_A, MODEL_B, NOW


def _ranking(model, rank: int, trend: int, accuracy: float, best: bool) -> ModelRanking:
    perf = (CommodityPerformance(commodity=GOLD, accuracy=accuracy, predictions=3),) if best else ()
    return ModelRanking(
        ai_model=model,
        overall_accuracy=accuracy,
        total_predictions=3 if best else 0,
        avg_absolute_error=1.0,
        avg_percentage_error=1.0,
        commodity_performance=perf,
        rank=rank,
        trend=trend,
    )


class TestFormatRankingsTable:
    def test_rows(self):
        text = format_rankings_table(
            [_ranking(MODEL_A, 1, 1, 87.4166, True), _ranking(MODEL_B, 2, -1, 0.0, False)],
            "30d",
        )
        lines = text.splitlines()
        assert "=== Model League Table (30d) ===" in lines
        claude = next(line for line in lines if "Claude" in line)
        chatgpt = next(line for line in lines if "ChatGPT" in line)
        assert "87.42" in claude
        assert "^" in claude
        assert "Gold (87.42)" in claude
        assert "v" in chatgpt
        assert chatgpt.rstrip().endswith("-")

    def test_empty(self):
        assert "(no AI models registered)" in format_rankings_table([], "all")


class TestIndexFormatting:
    def test_summary(self):
        text = format_index_summary(build_snapshot(CompositeIndexResult.neutral(), NOW))
        assert "ACCI:        50.0  (neutral)" in text
        assert "momentum=50.0" in text
        assert "Predictions: 0" in text

    def test_history(self):
        snapshots = [build_snapshot(CompositeIndexResult.neutral(), NOW)]
        text = format_index_history(snapshots)
        assert NOW.isoformat() in text
        assert "neutral" in text

    def test_history_empty(self):
        assert "(no snapshots in range)" in format_index_history([])


def test_format_fear_greed():
    reading = FearGreedReading(value=68, classification="Greed", timestamp=NOW, previous_close=66)
    assert format_fear_greed(reading) == "  Fear/Greed: 68 (Greed) | previous close 66"

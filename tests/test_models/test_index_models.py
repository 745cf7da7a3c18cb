"""Tests for models/index.py."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ai_commodity_index.models.index import (
    CompositeIndexResult,
    CompositeIndexSnapshot,
    IndexComponents,
)
from conftest import NOW


def _snapshot(**overrides) -> CompositeIndexSnapshot:
    fields = dict(
        date=NOW,
        overall_index="57.13",
        hard_commodities_index="60.0",
        soft_commodities_index="50.0",
        directional_component="70.0",
        confidence_component="65.0",
        accuracy_component="60.0",
        momentum_component="50.0",
        total_predictions=12,
        market_sentiment="bullish",
    )
    fields.update(overrides)
    return CompositeIndexSnapshot(**fields)


def test_neutral_components():
    neutral = IndexComponents.neutral()
    assert (neutral.directional, neutral.confidence, neutral.accuracy, neutral.momentum) == (
        50.0, 50.0, 50.0, 50.0,
    )


def test_neutral_result_is_fallback():
    result = CompositeIndexResult.neutral()
    assert result.is_fallback
    assert result.sentiment == "neutral"
    assert result.total_predictions == 0


class TestCompositeIndexSnapshot:
    def test_valid(self):
        snapshot = _snapshot()
        assert snapshot.overall_value == pytest.approx(57.13)
        assert snapshot.snapshot_id is None

    @pytest.mark.parametrize("value", ["100.01", "-0.5"])
    def test_out_of_range_raises(self, value):
        with pytest.raises(ValidationError):
            _snapshot(momentum_component=value)

    def test_boundaries_accepted(self):
        _snapshot(overall_index="0", hard_commodities_index="100")

    def test_malformed_value_raises(self):
        with pytest.raises(ValidationError):
            _snapshot(overall_index="n/a")

    def test_negative_total_raises(self):
        with pytest.raises(ValidationError):
            _snapshot(total_predictions=-1)

    def test_unknown_sentiment_raises(self):
        with pytest.raises(ValidationError):
            _snapshot(market_sentiment="euphoric")

"""Tests for scoring/accuracy.py — blended accuracy scoring and period filters."""

from __future__ import annotations

import pytest

from ai_commodity_index.models.accuracy import PricePair
from ai_commodity_index.scoring.accuracy import (
    blend_accuracy,
    compute_accuracy,
    directional_accuracy,
    filter_by_period,
)
from ai_commodity_index.utils.numeric import MalformedDecimalError
from conftest import NOW


def _pairs(predicted: list[float], actual: list[float]) -> list[PricePair]:
    return [
        PricePair(predicted=p, actual=a, target_date=NOW)
        for p, a in zip(predicted, actual)
    ]


class TestComputeAccuracy:
    def test_reference_example(self, make_prediction, make_price):
        """Predicted [100, 110, 105] vs actual [102, 108, 107]."""
        preds = [
            make_prediction(100, target_days=-30),
            make_prediction(110, target_days=-20),
            make_prediction(105, target_days=-10),
        ]
        prices = [
            make_price(102, days=-30),
            make_price(108, days=-20),
            make_price(107, days=-10),
        ]
        result = compute_accuracy(preds, prices, NOW)

        assert result is not None
        assert result.total_predictions == 3
        assert result.correct_predictions == 3
        assert result.directional_accuracy == pytest.approx(100.0)
        assert result.threshold_accuracy == pytest.approx(100.0)
        assert result.avg_absolute_error == pytest.approx(2.0)
        assert result.avg_percentage_error == pytest.approx(1.89393, abs=1e-4)
        assert result.accuracy == 99.24

    def test_ids_and_timestamp_come_from_inputs(self, make_prediction, make_price):
        pred = make_prediction(100, ai_model_id="model-b", commodity_id="coffee")
        result = compute_accuracy([pred], [make_price(100, commodity_id="coffee")], NOW)
        assert result is not None
        assert (result.ai_model_id, result.commodity_id) == ("model-b", "coffee")
        assert result.last_updated == NOW

    def test_single_exact_prediction(self, make_prediction, make_price):
        """MAPE 0 and threshold 100, but no directional transitions."""
        result = compute_accuracy([make_prediction(10)], [make_price(10)], NOW)
        assert result is not None
        assert result.accuracy == 65.0

    def test_mape_above_100_is_capped(self, make_prediction, make_price):
        result = compute_accuracy([make_prediction(300)], [make_price(100)], NOW)
        assert result is not None
        assert result.avg_percentage_error == pytest.approx(200.0)
        assert result.accuracy == 0.0

    def test_threshold_counts_errors_up_to_five_percent(self, make_prediction, make_price):
        preds = [make_prediction(105, target_days=-20), make_prediction(94, target_days=-10)]
        prices = [make_price(100, days=-20), make_price(100, days=-10)]
        result = compute_accuracy(preds, prices, NOW)
        assert result is not None
        assert result.correct_predictions == 1
        assert result.threshold_accuracy == pytest.approx(50.0)

    def test_no_predictions_returns_none(self, make_price):
        assert compute_accuracy([], [make_price(100)], NOW) is None

    def test_no_prices_returns_none(self, make_prediction):
        assert compute_accuracy([make_prediction(100)], [], NOW) is None

    def test_only_future_predictions_returns_none(self, make_prediction, make_price):
        pred = make_prediction(100, target_days=5)
        assert compute_accuracy([pred], [make_price(100, days=5)], NOW) is None

    def test_no_matches_returns_none(self, make_prediction, make_price):
        pred = make_prediction(100, target_days=-60)
        assert compute_accuracy([pred], [make_price(100, days=-10)], NOW) is None

    def test_zero_actual_price_raises(self, make_prediction, make_price):
        with pytest.raises(ValueError, match="zero"):
            compute_accuracy([make_prediction(100)], [make_price(0)], NOW)

    def test_malformed_predicted_price_raises(self, make_prediction, make_price):
        with pytest.raises(MalformedDecimalError):
            compute_accuracy([make_prediction("abc")], [make_price(100)], NOW)


class TestDirectionalAccuracy:
    def test_fewer_than_two_pairs_is_zero(self):
        assert directional_accuracy(_pairs([100], [100])) == 0.0

    def test_opposite_moves_disagree(self):
        assert directional_accuracy(_pairs([100, 110], [100, 90])) == 0.0

    def test_flat_on_both_sides_agrees(self):
        assert directional_accuracy(_pairs([100, 100], [50, 50])) == 100.0

    def test_partial_agreement(self):
        pairs = _pairs([100, 110, 120], [100, 105, 101])
        assert directional_accuracy(pairs) == pytest.approx(50.0)


class TestBlendAccuracy:
    def test_weights(self):
        assert blend_accuracy(10.0, 50.0, 80.0) == pytest.approx(36.0 + 17.5 + 20.0)

    def test_mape_term_never_negative(self):
        assert blend_accuracy(250.0, 0.0, 0.0) == 0.0


class TestFilterByPeriod:
    @pytest.fixture
    def predictions(self, make_prediction):
        return [
            make_prediction(1, target_days=-3),
            make_prediction(2, target_days=-20),
            make_prediction(3, target_days=-60),
            make_prediction(4, target_days=10),
        ]

    def test_seven_days(self, predictions):
        assert [p.predicted_price for p in filter_by_period(predictions, "7d", NOW)] == ["1"]

    def test_thirty_days(self, predictions):
        assert [p.predicted_price for p in filter_by_period(predictions, "30d", NOW)] == ["1", "2"]

    def test_ninety_days_excludes_future_targets(self, predictions):
        kept = filter_by_period(predictions, "90d", NOW)
        assert [p.predicted_price for p in kept] == ["1", "2", "3"]

    def test_all_keeps_everything(self, predictions):
        assert filter_by_period(predictions, "all", NOW) == predictions

    def test_unknown_period_raises(self, predictions):
        with pytest.raises(ValueError, match="Unknown period"):
            filter_by_period(predictions, "1y", NOW)

"""Tests for models/market.py, models/accuracy.py and models/meta.py."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from ai_commodity_index.models.accuracy import AccuracyMetricRecord, PricePair
from ai_commodity_index.models.market import ActualPrice, Commodity, Prediction
from ai_commodity_index.models.meta import RunMetadata
from ai_commodity_index.utils.numeric import MalformedDecimalError
from conftest import NOW


class TestPrediction:
    def test_defaults(self, make_prediction):
        pred = make_prediction("2410.5000", confidence=None)
        assert pred.timeframe == "3mo"
        assert pred.metadata == {}
        assert pred.predicted_value == 2410.5
        assert pred.confidence_value == 0.5
        assert len(pred.id) == 36

    def test_naive_dates_become_utc(self):
        pred = Prediction(
            ai_model_id="m",
            commodity_id="c",
            prediction_date=datetime(2025, 1, 1),
            target_date=datetime(2025, 4, 1),
            predicted_price="10",
        )
        assert pred.prediction_date.tzinfo == timezone.utc
        assert pred.target_date == datetime(2025, 4, 1, tzinfo=timezone.utc)

    def test_invalid_timeframe_raises(self, make_prediction):
        with pytest.raises(ValidationError, match="timeframe"):
            make_prediction(10, timeframe="2y")

    def test_malformed_price_raises_on_access(self, make_prediction):
        pred = make_prediction("ten")
        with pytest.raises(MalformedDecimalError):
            _ = pred.predicted_value

    @pytest.mark.parametrize("confidence", ["1.5", "-0.2", "high"])
    def test_invalid_confidence_raises(self, make_prediction, confidence):
        with pytest.raises(ValidationError, match="confidence"):
            make_prediction(10, confidence=confidence)

    @pytest.mark.parametrize("confidence", ["0", "1", "0.55"])
    def test_confidence_bounds_accepted(self, make_prediction, confidence):
        assert make_prediction(10, confidence=confidence).confidence == confidence

    def test_blank_confidence_becomes_none(self, make_prediction):
        assert make_prediction(10, confidence="  ").confidence is None

    def test_frozen(self, make_prediction):
        pred = make_prediction(10)
        with pytest.raises(ValidationError):
            pred.predicted_price = "11"


class TestCommodity:
    def test_invalid_category_raises(self):
        with pytest.raises(ValidationError, match="category"):
            Commodity(name="Bitcoin", symbol="BTC", category="crypto")

    def test_unit_defaults_to_usd(self):
        assert Commodity(name="Gold", symbol="XAU", category="hard").unit == "USD"


class TestActualPrice:
    def test_default_source(self):
        price = ActualPrice(commodity_id="gold", date=NOW, price="2400")
        assert price.source == "yahoo_finance"
        assert price.volume is None
        assert price.price_value == 2400.0

    def test_aware_date_converted_to_utc(self):
        est = timezone(timedelta(hours=-5))
        price = ActualPrice(commodity_id="gold", date=datetime(2025, 6, 1, 7, tzinfo=est), price="1")
        assert price.date == NOW


class TestPricePair:
    def test_errors(self):
        pair = PricePair(predicted=110.0, actual=100.0, target_date=NOW)
        assert pair.absolute_error == 10.0
        assert pair.percentage_error == pytest.approx(10.0)

    def test_zero_actual_raises(self):
        pair = PricePair(predicted=1.0, actual=0.0, target_date=NOW)
        with pytest.raises(ValueError, match="zero"):
            _ = pair.percentage_error


class TestAccuracyMetricRecord:
    def test_valid(self):
        record = AccuracyMetricRecord(
            ai_model_id="m", commodity_id="c", period="30d",
            accuracy="72.5", total_predictions=4, correct_predictions=2,
        )
        assert record.metric_id is None
        assert record.avg_error is None

    def test_unknown_period_raises(self):
        with pytest.raises(ValidationError, match="period"):
            AccuracyMetricRecord(
                ai_model_id="m", commodity_id="c", period="1y",
                accuracy="72.5", total_predictions=4, correct_predictions=2,
            )


class TestRunMetadata:
    def _make(self, **overrides) -> RunMetadata:
        fields = dict(
            run_slug="slug",
            pipeline_stage="composite_index",
            config_snapshot={},
            started_at=NOW,
        )
        fields.update(overrides)
        return RunMetadata(**fields)

    def test_mutable_status(self):
        run = self._make()
        assert run.status == "started"
        run.status = "success"
        assert run.status == "success"

    def test_unknown_stage_raises(self):
        with pytest.raises(ValidationError, match="pipeline_stage"):
            self._make(pipeline_stage="train_model")

    def test_unknown_status_raises(self):
        with pytest.raises(ValidationError, match="status"):
            self._make(status="running")

    def test_begin_assigns_slug_and_start(self):
        run = RunMetadata.begin("model_ranking", {"debug": False})
        assert run.status == "started"
        assert len(run.run_slug) == 36
        assert run.started_at.tzinfo is not None
        assert run.duration_seconds is None

    def test_succeed_records_rows(self):
        run = self._make()
        run.succeed(4)
        assert run.status == "success"
        assert run.rows_processed == 4
        assert run.duration_seconds is not None

    def test_fail_records_error(self):
        run = self._make()
        run.fail(RuntimeError("no prices"))
        assert run.status == "failed"
        assert run.error_message == "no prices"
        assert run.finished_at is not None

    def test_invalid_status_assignment_rejected(self):
        run = self._make()
        with pytest.raises(ValidationError):
            run.status = "running"

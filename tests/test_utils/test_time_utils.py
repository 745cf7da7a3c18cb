"""Tests for utils/time_utils.py."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from ai_commodity_index.utils.time_utils import (
    ensure_utc,
    parse_datetime,
    period_cutoff,
    utcnow,
)
from conftest import NOW


def test_utcnow_is_aware():
    assert utcnow().tzinfo is not None


class TestEnsureUtc:
    def test_naive_is_treated_as_utc(self):
        naive = datetime(2025, 1, 1, 9, 30)
        assert ensure_utc(naive) == datetime(2025, 1, 1, 9, 30, tzinfo=timezone.utc)

    def test_aware_is_converted(self):
        plus_two = timezone(timedelta(hours=2))
        value = ensure_utc(datetime(2025, 1, 1, 9, 30, tzinfo=plus_two))
        assert value == datetime(2025, 1, 1, 7, 30, tzinfo=timezone.utc)
        assert value.utcoffset() == timedelta(0)


class TestParseDatetime:
    def test_z_suffix(self):
        assert parse_datetime("2025-06-01T12:00:00Z") == NOW

    def test_offset(self):
        assert parse_datetime("2025-06-01T14:00:00+02:00") == NOW

    def test_date_only_is_midnight(self):
        assert parse_datetime("2025-06-01") == datetime(2025, 6, 1, tzinfo=timezone.utc)

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            parse_datetime("yesterday")


class TestPeriodCutoff:
    @pytest.mark.parametrize("period, days", [("7d", 7), ("30d", 30), ("90d", 90)])
    def test_trailing_windows(self, period, days):
        assert period_cutoff(period, NOW) == NOW - timedelta(days=days)

    def test_all_has_no_cutoff(self):
        assert period_cutoff("all", NOW) is None

    def test_unknown_period_raises(self):
        with pytest.raises(ValueError, match="Unknown period"):
            period_cutoff("1y", NOW)

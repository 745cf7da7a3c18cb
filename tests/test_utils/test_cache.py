"""Tests for utils/cache.py — TTL expiry with an injected clock."""

from __future__ import annotations

import pytest

from ai_commodity_index.utils.cache import TTLCache


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> _FakeClock:
    return _FakeClock()


@pytest.fixture
def cache(clock) -> TTLCache:
    return TTLCache(ttl_seconds=300, clock=clock)


def test_rejects_non_positive_ttl():
    with pytest.raises(ValueError):
        TTLCache(ttl_seconds=0)


def test_get_missing_returns_default(cache):
    assert cache.get("nope") is None
    assert cache.get("nope", 42) == 42


def test_entry_expires_after_ttl(cache, clock):
    cache.set("k", "v")
    clock.advance(299)
    assert cache.get("k") == "v"
    clock.advance(1)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_per_entry_ttl_override(cache, clock):
    cache.set("short", 1, ttl_seconds=10)
    cache.set("long", 2)
    clock.advance(11)
    assert cache.keys() == ["long"]


def test_get_or_set_computes_once(cache):
    calls = []

    def factory():
        calls.append(1)
        return "computed"

    assert cache.get_or_set(("rankings", "30d"), factory) == "computed"
    assert cache.get_or_set(("rankings", "30d"), factory) == "computed"
    assert len(calls) == 1


def test_get_or_set_recomputes_after_expiry(cache, clock):
    values = iter(["first", "second"])
    cache.get_or_set("k", lambda: next(values))
    clock.advance(301)
    assert cache.get_or_set("k", lambda: next(values)) == "second"


def test_cached_none_is_a_hit(cache):
    calls = []

    def factory():
        calls.append(1)
        return None

    cache.get_or_set("k", factory)
    cache.get_or_set("k", factory)
    assert len(calls) == 1


def test_factory_error_is_not_cached(cache):
    def boom():
        raise RuntimeError("db down")

    with pytest.raises(RuntimeError):
        cache.get_or_set("k", boom)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_invalidate_and_clear(cache):
    cache.set("a", 1)
    cache.set("b", 2)
    cache.invalidate("a")
    cache.invalidate("missing")
    assert cache.keys() == ["b"]
    cache.clear()
    assert len(cache) == 0

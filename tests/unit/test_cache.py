"""Tests for the TTL/LRU cache."""

import pytest

from okr_coach.services.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def test_get_and_set(clock):
    cache = TTLCache(max_size=10, ttl_seconds=60, clock=clock)
    cache.set("a", 1)

    assert cache.get("a") == 1
    assert "a" in cache
    assert cache.get("missing", default="x") == "x"


def test_entries_expire(clock):
    cache = TTLCache(max_size=10, ttl_seconds=60, clock=clock)
    cache.set("a", 1)
    clock.advance(61)

    assert cache.get("a") is None
    assert "a" not in cache
    assert cache.stats().expirations == 1


def test_lru_eviction(clock):
    cache = TTLCache(max_size=2, ttl_seconds=60, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")  # b becomes least recently used
    cache.set("c", 3)

    assert "a" in cache
    assert "b" not in cache
    assert "c" in cache
    assert cache.stats().evictions == 1


def test_get_or_compute_only_computes_on_miss(clock):
    cache = TTLCache(max_size=10, ttl_seconds=60, clock=clock)
    calls = []

    def compute():
        calls.append(1)
        return "value"

    assert cache.get_or_compute("k", compute) == "value"
    assert cache.get_or_compute("k", compute) == "value"
    assert len(calls) == 1

    stats = cache.stats()
    assert stats.hits == 1
    assert stats.misses == 1
    assert stats.hit_rate == 0.5


def test_purge_expired(clock):
    cache = TTLCache(max_size=10, ttl_seconds=60, clock=clock)
    cache.set("short", 1, ttl_seconds=5)
    cache.set("long", 2)
    clock.advance(10)

    assert cache.purge_expired() == 1
    assert len(cache) == 1


def test_delete_and_clear(clock):
    cache = TTLCache(clock=clock)
    cache.set("a", 1)

    assert cache.delete("a")
    assert not cache.delete("a")
    cache.set("b", 2)
    cache.clear()
    assert len(cache) == 0


@pytest.mark.parametrize("kwargs", [{"max_size": 0}, {"ttl_seconds": 0}])
def test_invalid_construction(kwargs):
    with pytest.raises(ValueError):
        TTLCache(**kwargs)

"""Tests for the lookup cache."""

from catalog_mcp.services.cache import LookupCache


def test_set_get_and_expiry(clock) -> None:
    cache = LookupCache(ttl_seconds=10, clock=clock)
    cache.set("k", {"v": 1})

    assert cache.get("k") == {"v": 1}
    clock.advance(10)
    assert cache.get("k") is None
    assert cache.stats()["memory_keys"] == 0


def test_stats_track_hits_and_misses(clock) -> None:
    cache = LookupCache(ttl_seconds=10, clock=clock)
    cache.get("missing")
    cache.set("k", 1)
    cache.get("k")

    assert cache.stats() == {"memory_keys": 1, "ttl": 10.0, "hits": 1, "misses": 1}


def test_get_or_compute_memoizes(clock) -> None:
    cache = LookupCache(ttl_seconds=10, clock=clock)
    calls = []

    def compute():
        calls.append(1)
        return "value"

    assert cache.get_or_compute("k", compute) == "value"
    assert cache.get_or_compute("k", compute) == "value"
    assert len(calls) == 1


def test_delete_and_clear(clock) -> None:
    cache = LookupCache(ttl_seconds=10, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.delete("a")
    assert cache.get("a") is None

    cache.clear()
    assert cache.stats() == {"memory_keys": 0, "ttl": 10.0, "hits": 0, "misses": 0}


def test_default_ttl_from_settings() -> None:
    assert LookupCache().ttl == 3600.0

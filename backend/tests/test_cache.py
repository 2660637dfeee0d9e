"""Tests for the TTL response cache."""
from mood_discovery.services.yelp.cache import ResponseCache, make_cache_key


class _Clock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_key_is_independent_of_param_order() -> None:
    assert make_cache_key("search", {"a": 1, "b": 2}) == make_cache_key("search", {"b": 2, "a": 1})
    assert make_cache_key("search", {"a": 1}) != make_cache_key("place", {"a": 1})


def test_hit_within_ttl() -> None:
    clock = _Clock()
    cache = ResponseCache(300, clock=clock)
    cache.set("k", "v")
    clock.now += 300
    assert cache.get("k") == "v"


def test_expired_entry_is_dropped_on_read() -> None:
    clock = _Clock()
    cache = ResponseCache(300, clock=clock)
    cache.set("k", "v")
    clock.now += 300.5
    assert cache.get("k") is None
    assert "k" not in cache


def test_max_entries_evicts_least_recently_used() -> None:
    cache = ResponseCache(300, max_entries=2, clock=_Clock())
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.get("a") == 1  # b is now least recently used
    cache.set("c", 3)
    assert len(cache) == 2
    assert "b" not in cache
    assert cache.get("a") == 1
    assert cache.get("c") == 3


def test_unbounded_by_default() -> None:
    cache = ResponseCache(clock=_Clock())
    for i in range(500):
        cache.set(str(i), i)
    assert len(cache) == 500


def test_clear() -> None:
    cache = ResponseCache(clock=_Clock())
    cache.set("k", "v")
    cache.clear()
    assert len(cache) == 0

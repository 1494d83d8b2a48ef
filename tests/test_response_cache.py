"""
Tests for the exact-match response cache.
"""

from conftest import FailingStore, FakeClock

from coach_ai.repositories import MemoryKeyValueStore
from coach_ai.services.response_cache import (
    STORAGE_KEY,
    TTL_BY_FEATURE,
    CacheConfig,
    ResponseCache,
    generate_key,
    ttl_for,
)


def make_cache(max_entries=3, store=None, clock=None):
    return ResponseCache(store=store, config=CacheConfig(max_entries=max_entries), clock=clock or FakeClock())


def test_key_ignores_param_order():
    """Equal params give equal keys regardless of ordering, including nested dicts."""
    a = generate_key("motivation", {"streak": 3, "goal": "Strength", "extra": {"x": 1, "y": 2}})
    b = generate_key("motivation", {"extra": {"y": 2, "x": 1}, "goal": "Strength", "streak": 3})
    assert a == b
    assert a.startswith("motivation:")


def test_key_differs_by_feature_and_params():
    assert generate_key("motivation", {"streak": 3}) != generate_key("coaching", {"streak": 3})
    assert generate_key("motivation", {"streak": 3}) != generate_key("motivation", {"streak": 4})


def test_ttl_for_known_and_unknown_features():
    assert ttl_for("motivation") == TTL_BY_FEATURE["motivation"] == 3600
    assert ttl_for("workout_summary") == 30 * 24 * 3600
    assert ttl_for("something_else", default=42) == 42


def test_set_and_get():
    cache = make_cache()
    cache.set("k", {"answer": 1})
    assert cache.get("k") == {"answer": 1}
    assert cache.has("k")
    assert len(cache) == 1


def test_capacity_evicts_least_recently_used():
    """A read refreshes recency, so the untouched entry is evicted."""
    cache = make_cache(max_entries=3)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    cache.get("a")
    cache.set("d", 4)

    assert len(cache) == 3
    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("d") == 4


def test_replacing_key_does_not_evict():
    cache = make_cache(max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    assert len(cache) == 2
    assert cache.get("a") == 10
    assert cache.get("b") == 2


def test_capacity_drops_expired_before_live_entries():
    clock = FakeClock()
    cache = make_cache(max_entries=2, clock=clock)
    cache.set("short", 1, ttl=10)
    cache.set("long", 2, ttl=1000)
    clock.advance(11)
    cache.set("new", 3)
    assert cache.get("long") == 2
    assert cache.get("new") == 3
    assert cache.get("short") is None


def test_ttl_boundary():
    """An entry is live at exactly its TTL and expired just after."""
    clock = FakeClock()
    cache = make_cache(clock=clock)
    cache.set("k", "v", ttl=60)

    clock.advance(60)
    assert cache.has("k")
    clock.advance(0.001)
    assert not cache.has("k")
    assert cache.get("k") is None
    assert len(cache) == 0


def test_has_does_not_count_hits():
    cache = make_cache()
    cache.set("k", "v")
    cache.has("k")
    assert cache.get_stats()["total_hits"] == 0
    cache.get("k")
    cache.get("k")
    stats = cache.get_stats()
    assert stats["total_hits"] == 2
    assert stats["hit_rate"] == 2 / 3


def test_delete_and_clear():
    cache = make_cache()
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.delete("a") is True
    assert cache.delete("a") is False
    cache.clear()
    assert len(cache) == 0


def test_prune_expired():
    clock = FakeClock()
    cache = make_cache(clock=clock)
    cache.set("a", 1, ttl=5)
    cache.set("b", 2, ttl=50)
    clock.advance(10)
    assert cache.prune_expired() == 1
    assert cache.get_stats()["size"] == 1


def test_persists_and_reloads_without_expired_entries():
    store = MemoryKeyValueStore()
    clock = FakeClock()
    cache = make_cache(store=store, clock=clock)
    cache.set("a", {"x": 1}, ttl=10)
    cache.set("b", {"x": 2}, ttl=1000)
    assert len(store.get(STORAGE_KEY)) == 2

    clock.advance(20)
    reloaded = make_cache(store=store, clock=clock)
    assert len(reloaded) == 1
    assert reloaded.get("b") == {"x": 2}


def test_write_failure_evicts_and_retries_once():
    """On a failed write, 30% of entries are evicted oldest first and the write is retried."""
    store = FailingStore(failures=0)
    cache = make_cache(max_entries=20, store=store)
    for i in range(10):
        cache.set(f"k{i}", i)

    store.failures = 1
    store.attempts = 0
    cache.set("k10", 10)

    assert store.attempts == 2
    assert len(cache) == 11 - 4  # ceil(11 * 0.3) evicted
    assert cache.get("k0") is None
    assert cache.get("k10") == 10
    assert len(store.get(STORAGE_KEY)) == 7


def test_write_failure_twice_gives_up_without_raising():
    store = FailingStore(failures=2)
    cache = make_cache(max_entries=20, store=store)
    cache.set("a", 1)
    assert store.attempts == 2
    assert store.get(STORAGE_KEY) is None


def test_persist_disabled_never_writes():
    store = MemoryKeyValueStore()
    cache = ResponseCache(store=store, config=CacheConfig(persist=False), clock=FakeClock())
    cache.set("a", 1)
    assert store.get(STORAGE_KEY) is None

"""Tests for the TTL cache."""

from __future__ import annotations

import threading

import pytest

from pkgsense.engines.registry.cache import TTLCache

# ── TestTTLCache ──────────────────────────────────────────────────────────


class TestTTLCache:
    def test_set_and_get(self, clock):
        cache = TTLCache(ttl=10, max_entries=5, clock=clock)
        cache.set("a", 1)
        assert cache.get("a") == 1
        assert cache.has("a")
        assert "a" in cache
        assert len(cache) == 1

    def test_missing_key(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        assert cache.get("nope") is None
        assert not cache.has("nope")

    def test_entry_expires_after_ttl(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("a", 1)
        clock.advance(9.999)
        assert cache.get("a") == 1
        clock.advance(0.001)
        assert cache.get("a") is None

    def test_expired_entry_removed_on_access(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("a", 1)
        clock.advance(11)
        assert cache.size() == 1  # lazy
        assert not cache.has("a")
        assert cache.size() == 0

    def test_evicts_oldest_at_capacity(self, clock):
        cache = TTLCache(ttl=100, max_entries=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)
        assert cache.get("a") is None
        assert cache.get("b") == 2
        assert cache.get("c") == 3
        assert cache.size() == 2

    def test_expired_entries_dropped_before_live_ones(self, clock):
        cache = TTLCache(ttl=10, max_entries=2, clock=clock)
        cache.set("old", 1)
        clock.advance(5)
        cache.set("young", 2)
        clock.advance(6)  # "old" expired, "young" alive
        cache.set("new", 3)
        assert cache.get("young") == 2
        assert cache.get("new") == 3

    def test_overwrite_refreshes_expiry_not_position(self, clock):
        cache = TTLCache(ttl=10, max_entries=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        clock.advance(8)
        cache.set("a", 10)
        clock.advance(5)
        assert cache.get("a") == 10  # refreshed at t=8
        cache.set("c", 3)
        # "b" expired and was dropped, so "a" survives
        assert cache.get("a") == 10

    def test_overwrite_at_capacity_does_not_evict(self, clock):
        cache = TTLCache(ttl=100, max_entries=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 3)
        assert cache.size() == 2
        assert cache.get("b") == 2

    def test_delete_and_clear(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.delete("a")
        cache.delete("missing")
        assert cache.get("a") is None
        cache.clear()
        assert cache.size() == 0

    def test_size_never_exceeds_capacity(self, clock):
        cache = TTLCache(ttl=100, max_entries=3, clock=clock)
        for i in range(20):
            cache.set(f"k{i}", i)
            assert cache.size() <= 3

    @pytest.mark.parametrize("kwargs", [{"ttl": 0}, {"ttl": -1}, {"max_entries": 0}])
    def test_rejects_bad_configuration(self, kwargs):
        with pytest.raises(ValueError):
            TTLCache(**kwargs)

    def test_concurrent_writers(self):
        cache = TTLCache(ttl=100, max_entries=50)

        def writer(offset: int) -> None:
            for i in range(200):
                cache.set(f"{offset}-{i}", i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert cache.size() == 50

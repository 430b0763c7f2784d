"""
Unit tests for the proxy volatile cache.
"""

import threading

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_proxy.app.caching.volatile_cache import VolatileCache
from shared.test_helpers import FakeClock, ProxyTestData


class TestVolatileCache:
    """Test cases for VolatileCache."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        """Create a cache with a 60 second TTL."""
        return VolatileCache(60, clock=clock)

    def test_empty_cache_misses(self, cache):
        assert cache.has("todos") is False
        assert cache.get("todos") is None
        assert cache.get_entry("todos") is None

    def test_set_then_get(self, cache):
        todos = ProxyTestData.create_todos()
        cache.set("todos", todos)

        assert cache.has("todos") is True
        assert cache.get("todos") == todos

    def test_entry_expires_after_ttl(self, cache, clock):
        """Entries are never served at or past their expiry."""
        cache.set("todos", ["a"])

        clock.advance(59)
        assert cache.has("todos") is True

        clock.advance(1)
        assert cache.has("todos") is False
        assert cache.get("todos") is None

    def test_set_refreshes_ttl(self, cache, clock):
        cache.set("todos", ["old"])
        clock.advance(50)
        expires_at = cache.set("todos", ["new"])

        assert expires_at == clock() + 60
        clock.advance(50)
        assert cache.get("todos") == ["new"]

    def test_cached_none_is_a_hit(self, cache):
        cache.set("todos", None)

        entry = cache.get_entry("todos")
        assert entry is not None
        assert entry.value is None
        assert cache.has("todos") is True

    def test_capacity_is_one_entry(self, cache):
        cache.set("todos", ["a"])
        cache.set("other", ["b"])

        assert cache.has("todos") is False
        assert cache.get("other") == ["b"]

    def test_delete(self, cache):
        cache.set("todos", ["a"])

        assert cache.delete("todos") is True
        assert cache.delete("todos") is False
        assert cache.has("todos") is False

    def test_expires_at(self, cache, clock):
        assert cache.expires_at("todos") is None
        cache.set("todos", [])
        assert cache.expires_at("todos") == clock() + 60

    def test_stats(self, cache, clock):
        cache.get("todos")
        cache.set("todos", [1])
        cache.get("todos")
        cache.get("todos")

        stats = cache.stats()
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["sets"] == 1
        assert stats["entries"] == 1

        clock.advance(61)
        assert cache.stats()["entries"] == 0

    def test_invalid_ttl(self):
        with pytest.raises(ValueError):
            VolatileCache(0)

    def test_concurrent_writers_leave_one_coherent_entry(self):
        """Concurrent sets never mix the value of one writer with the expiry of another."""
        cache = VolatileCache(60)
        payloads = [ProxyTestData.create_todos(count=5, offset=i * 5) for i in range(8)]
        barrier = threading.Barrier(len(payloads))

        def writer(payload):
            barrier.wait()
            for _ in range(200):
                cache.set("todos", payload)
                cache.get("todos")

        threads = [threading.Thread(target=writer, args=(payload,)) for payload in payloads]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        entry = cache.get_entry("todos")
        assert entry is not None
        assert entry.value in payloads
        assert cache.stats()["sets"] == len(payloads) * 200

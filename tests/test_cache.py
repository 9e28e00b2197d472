"""Tests for the match cache."""

import time

import pytest

from docspan.cache.match_cache import (
    CacheEntry,
    MatchCache,
    document_cache_key,
    query_cache_key,
)


class TestCacheKeys:
    """Tests for cache key generation."""

    def test_deterministic(self):
        """Test that equal inputs give equal keys."""
        assert query_cache_key("doc", "q", value_type=None) == query_cache_key("doc", "q", value_type=None)

    def test_sha256_hex(self):
        """Test the key format."""
        key = document_cache_key("doc")
        assert len(key) == 64
        int(key, 16)

    def test_any_edit_changes_key(self):
        """Test that a one-character edit produces a new key."""
        assert document_cache_key("Jan Novák") != document_cache_key("Jan Novak")
        assert query_cache_key("doc", "q") != query_cache_key("doc.", "q")

    def test_params_change_key(self):
        """Test that search parameters are part of the key."""
        assert query_cache_key("doc", "q", max_results=1) != query_cache_key("doc", "q", max_results=2)

    def test_kinds_do_not_collide(self):
        """Test that document and query keys differ for the same text."""
        assert document_cache_key("doc") != query_cache_key("doc", "")


class TestMatchCache:
    """Tests for MatchCache."""

    @pytest.fixture
    def cache(self):
        """Create a cache instance."""
        return MatchCache(default_ttl=300, max_size=3)

    def test_set_and_get(self, cache):
        """Test storing and reading a value."""
        cache.set("key", {"results": []})
        assert cache.get("key") == {"results": []}
        assert len(cache) == 1

    def test_missing_key(self, cache):
        """Test reading a key that was never stored."""
        assert cache.get("missing") is None

    def test_expired_entry(self, cache):
        """Test that expired entries are dropped on access."""
        cache.set("key", "value")
        cache._store["key"].expires_at = time.time() - 1
        assert cache.get("key") is None
        assert len(cache) == 0

    def test_no_expiry(self):
        """Test a cache without TTL."""
        cache = MatchCache(default_ttl=None)
        cache.set("key", "value")
        assert cache._store["key"].expires_at is None
        assert cache.get("key") == "value"

    def test_evicts_oldest(self, cache):
        """Test that the oldest entry is evicted when full."""
        for key in ("a", "b", "c"):
            cache.set(key, key)
        cache.set("d", "d")
        assert len(cache) == 3
        assert cache.get("a") is None
        assert cache.get("d") == "d"

    def test_overwrite_does_not_evict(self, cache):
        """Test that replacing an existing key keeps the others."""
        for key in ("a", "b", "c"):
            cache.set(key, key)
        cache.set("a", "new")
        assert len(cache) == 3
        assert cache.get("a") == "new"
        assert cache.get("b") == "b"

    def test_delete(self, cache):
        """Test deleting entries."""
        cache.set("key", "value")
        assert cache.delete("key") is True
        assert cache.delete("key") is False

    def test_cleanup_expired(self, cache):
        """Test bulk removal of expired entries."""
        cache.set("old", 1)
        cache.set("new", 2)
        cache._store["old"].expires_at = time.time() - 1
        assert cache.cleanup_expired() == 1
        assert cache.get("new") == 2

    def test_stats(self, cache):
        """Test cache statistics."""
        cache.set("key", "value")
        cache.get("key")
        cache.get("key")
        stats = cache.get_stats()
        assert stats["entry_count"] == 1
        assert stats["total_hits"] == 2
        assert stats["avg_age_seconds"] >= 0

    def test_stats_empty(self, cache):
        """Test statistics of an empty cache."""
        assert cache.get_stats() == {"entry_count": 0, "total_hits": 0, "avg_age_seconds": 0}

    def test_clear(self, cache):
        """Test clearing the cache."""
        cache.set("key", "value")
        cache.clear()
        assert len(cache) == 0

    def test_invalid_size(self):
        """Test that a non-positive size is rejected."""
        with pytest.raises(ValueError):
            MatchCache(max_size=0)


class TestCacheEntry:
    """Tests for CacheEntry."""

    def test_expiry(self):
        """Test the expiry flag."""
        assert not CacheEntry(key="k", value=1).is_expired
        assert CacheEntry(key="k", value=1, expires_at=time.time() - 1).is_expired

    def test_age(self):
        """Test the entry age."""
        entry = CacheEntry(key="k", value=1, created_at=time.time() - 10)
        assert entry.age_seconds >= 10

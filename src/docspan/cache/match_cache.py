"""Caching of normalized documents and per-query match sets.

Cache Key:
    SHA256 hash of a canonical JSON payload containing:
    - The full document text (so any edit produces a new key)
    - The query and the parameters that influence matching

Cache Strategy:
    - Normalized documents are cached per document text
    - Search outcomes are cached per (document, query, parameters)
    - A changed document never reads a stale entry because its key differs
"""

import hashlib
import json
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from docspan.logging.setup import get_logger
from docspan.metrics.collectors import CACHE_SIZE

logger = get_logger(__name__)


class Cache(ABC):
    """Cache collaborator consumed by the engine.

    Implementations may live anywhere (memory, Redis, ...). A missing or
    expired key returns None.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the cached value or None."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value for ttl seconds (None means the cache default)."""


@dataclass
class CacheEntry:
    """A cached value.

    Attributes:
        key: Cache key.
        value: Cached object.
        created_at: Creation timestamp.
        expires_at: Expiration timestamp.
        hit_count: Number of times this entry was accessed.
    """

    key: str
    value: Any
    created_at: float = field(default_factory=time.time)
    expires_at: Optional[float] = None
    hit_count: int = 0

    @property
    def is_expired(self) -> bool:
        """Check if entry has expired."""
        if self.expires_at is None:
            return False
        return time.time() > self.expires_at

    @property
    def age_seconds(self) -> float:
        """Get age of entry in seconds."""
        return time.time() - self.created_at


def _hash_payload(payload: dict[str, Any]) -> str:
    key_json = json.dumps(payload, sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.sha256(key_json.encode()).hexdigest()


def document_cache_key(document: str, **params: Any) -> str:
    """Generate the cache key of a normalized document.

    Args:
        document: Original document text.
        **params: Normalization parameters that change the output.

    Returns:
        SHA256 hash string for cache key.
    """
    return _hash_payload({"kind": "document", "document": document, "params": params})


def query_cache_key(document: str, query: str, **params: Any) -> str:
    """Generate the cache key of a search over a document.

    Args:
        document: Original document text.
        query: Query string.
        **params: Search parameters (value type, options, candidates).

    Returns:
        SHA256 hash string for cache key.
    """
    return _hash_payload(
        {"kind": "query", "document": document, "query": query, "params": params}
    )


class MatchCache(Cache):
    """Thread-safe in-memory cache with TTL support.

    Expired entries are dropped lazily on access or by cleanup_expired().

    Example:
        >>> cache = MatchCache(default_ttl=300)
        >>> cache.set("key123", {"results": []})
        >>> cache.get("key123")
        {'results': []}
    """

    def __init__(
        self,
        default_ttl: Optional[int] = 300,
        max_size: int = 1000,
    ) -> None:
        """Initialize the cache.

        Args:
            default_ttl: Default TTL in seconds (None disables expiry).
            max_size: Maximum number of cached entries.
        """
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[Any]:
        """Get a cached value by key.

        Args:
            key: Cache key.

        Returns:
            The cached value if found and valid, None otherwise.
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None

            if entry.is_expired:
                del self._store[key]
                CACHE_SIZE.set(len(self._store))
                return None

            entry.hit_count += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value in the cache.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl: TTL in seconds (uses default if not specified).
        """
        now = time.time()
        effective_ttl = ttl if ttl is not None else self.default_ttl
        expires_at = now + effective_ttl if effective_ttl is not None else None

        entry = CacheEntry(key=key, value=value, created_at=now, expires_at=expires_at)

        with self._lock:
            # Enforce max size by evicting oldest entries
            while len(self._store) >= self.max_size and key not in self._store:
                oldest_key = min(
                    self._store.keys(),
                    key=lambda k: self._store[k].created_at,
                )
                del self._store[oldest_key]

            self._store[key] = entry
            CACHE_SIZE.set(len(self._store))

        logger.debug(
            "Cache entry stored",
            extra={
                "event": "cache_stored",
                "key": key[:16] + "...",
                "ttl": effective_ttl,
            },
        )

    def delete(self, key: str) -> bool:
        """Delete an entry; returns True if it existed."""
        with self._lock:
            removed = self._store.pop(key, None) is not None
            CACHE_SIZE.set(len(self._store))
            return removed

    def cleanup_expired(self) -> int:
        """Remove all expired entries.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            expired_keys = [key for key, entry in self._store.items() if entry.is_expired]
            for key in expired_keys:
                del self._store[key]
            if expired_keys:
                CACHE_SIZE.set(len(self._store))
        return len(expired_keys)

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            entries = list(self._store.values())
            return {
                "entry_count": len(entries),
                "total_hits": sum(e.hit_count for e in entries),
                "avg_age_seconds": (
                    sum(e.age_seconds for e in entries) / len(entries) if entries else 0
                ),
            }

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._store.clear()
            CACHE_SIZE.set(0)

        logger.info(
            "Cache cleared",
            extra={"event": "cache_cleared"},
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

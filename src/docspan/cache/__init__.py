"""Cache module for docspan.

This module caches normalized documents and search outcomes per document version.
"""

from docspan.cache.match_cache import (
    Cache,
    CacheEntry,
    MatchCache,
    document_cache_key,
    query_cache_key,
)

__all__ = [
    "Cache",
    "CacheEntry",
    "MatchCache",
    "document_cache_key",
    "query_cache_key",
]

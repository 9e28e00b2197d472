"""Prometheus metrics module for docspan."""

from docspan.metrics.collectors import (
    CACHE_HITS,
    CACHE_MISSES,
    CACHE_SIZE,
    ENTITIES_EXTRACTED,
    MATCHES_FOUND,
    NORMALIZE_LATENCY,
    ORACLE_CANDIDATES,
    SEARCH_COUNT,
    SEARCH_DEGRADED,
    SEARCH_LATENCY,
    VALIDATION_REJECTIONS,
)

__all__ = [
    "SEARCH_LATENCY",
    "SEARCH_COUNT",
    "SEARCH_DEGRADED",
    "MATCHES_FOUND",
    "ENTITIES_EXTRACTED",
    "VALIDATION_REJECTIONS",
    "ORACLE_CANDIDATES",
    "NORMALIZE_LATENCY",
    "CACHE_HITS",
    "CACHE_MISSES",
    "CACHE_SIZE",
]

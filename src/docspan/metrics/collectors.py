"""Prometheus metrics collectors for docspan.

Defines all library metrics for monitoring search quality and cost.
"""

from prometheus_client import Counter, Gauge, Histogram

# Search metrics
SEARCH_LATENCY = Histogram(
    "docspan_search_duration_seconds",
    "End-to-end search latency in seconds",
    ["outcome"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

SEARCH_COUNT = Counter(
    "docspan_searches_total",
    "Total searches by outcome",
    ["outcome"],
)

SEARCH_DEGRADED = Counter(
    "docspan_searches_degraded_total",
    "Searches that exceeded the time budget and fell back to exact matching",
)

# Matching metrics
MATCHES_FOUND = Counter(
    "docspan_matches_total",
    "Total matches produced per algorithm",
    ["algorithm"],
)

ENTITIES_EXTRACTED = Counter(
    "docspan_entities_extracted_total",
    "Total validated entities extracted by pattern recognizers",
    ["value_type"],
)

VALIDATION_REJECTIONS = Counter(
    "docspan_validation_rejections_total",
    "Candidates dropped because they failed type or position validation",
    ["source", "reason"],
)

ORACLE_CANDIDATES = Counter(
    "docspan_oracle_candidates_total",
    "Externally supplied candidates by verification status",
    ["status"],
)

# Normalization metrics
NORMALIZE_LATENCY = Histogram(
    "docspan_normalize_duration_seconds",
    "Document normalization latency",
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

# Cache metrics
CACHE_HITS = Counter(
    "docspan_cache_hits_total",
    "Total cache hits",
    ["kind"],
)

CACHE_MISSES = Counter(
    "docspan_cache_misses_total",
    "Total cache misses",
    ["kind"],
)

CACHE_SIZE = Gauge(
    "docspan_cache_size",
    "Number of cached entries",
)

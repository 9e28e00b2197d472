"""Core modules for normalized search, ranking and highlighting."""

from docspan.core.errors import ConfigurationError, DocspanError, SearchInputError
from docspan.core.exact import canonicalize_query, find_exact
from docspan.core.extractor import EntityExtractor, extract_clauses, extract_entities
from docspan.core.fuzzy import (
    FuzzyMatcher,
    FuzzyOptions,
    MultiAlgorithmOptions,
    find_fuzzy,
    find_fuzzy_multi,
    fuzzy_score,
)
from docspan.core.highlighter import HighlightRenderer, merge_ranges, ranges_from_results, render
from docspan.core.intent_detector import QueryIntent, detect_query_intents
from docspan.core.normalizer import Normalizer, map_range_to_original, normalize
from docspan.core.oracle import (
    CandidateOracle,
    OracleCandidate,
    split_answer_values,
    verify_candidates,
)
from docspan.core.ranking import FeedbackProvider, Ranker, RankingOptions, RankingWeights, rank
from docspan.core.types import (
    HighlightRange,
    MatchAlgorithm,
    NormalizedDocument,
    SearchMatch,
    SearchResult,
    Segment,
    ValueType,
)
from docspan.core.value_types import detect_value_type, normalize_value, validate_value
from docspan.core.engine import SearchEngine, SearchOutcome, SearchRequest

__all__ = [
    # Data model
    "HighlightRange",
    "MatchAlgorithm",
    "NormalizedDocument",
    "SearchMatch",
    "SearchResult",
    "Segment",
    "ValueType",
    "detect_value_type",
    "normalize_value",
    "validate_value",
    # Matching
    "Normalizer",
    "normalize",
    "map_range_to_original",
    "canonicalize_query",
    "find_exact",
    "FuzzyMatcher",
    "FuzzyOptions",
    "MultiAlgorithmOptions",
    "find_fuzzy",
    "find_fuzzy_multi",
    "fuzzy_score",
    "EntityExtractor",
    "extract_entities",
    "extract_clauses",
    "QueryIntent",
    "detect_query_intents",
    # Oracle
    "CandidateOracle",
    "OracleCandidate",
    "split_answer_values",
    "verify_candidates",
    # Ranking and rendering
    "FeedbackProvider",
    "Ranker",
    "RankingOptions",
    "RankingWeights",
    "rank",
    "HighlightRenderer",
    "merge_ranges",
    "ranges_from_results",
    "render",
    # Facade
    "SearchEngine",
    "SearchOutcome",
    "SearchRequest",
    "DocspanError",
    "ConfigurationError",
    "SearchInputError",
]

"""
Fuzzy matching module

Edit-distance and Jaro-family similarity plus approximate search over
normalized documents.
"""

from docspan.core.fuzzy.algorithms import (
    fuzzy_score,
    hybrid_similarity,
    jaro_similarity,
    jaro_winkler_similarity,
    levenshtein_distance,
    levenshtein_similarity,
)
from docspan.core.fuzzy.matcher import (
    FuzzyMatcher,
    FuzzyOptions,
    FuzzyRun,
    MultiAlgorithmOptions,
    find_fuzzy,
    find_fuzzy_multi,
)

__all__ = [
    "FuzzyMatcher",
    "FuzzyOptions",
    "FuzzyRun",
    "MultiAlgorithmOptions",
    "find_fuzzy",
    "find_fuzzy_multi",
    "fuzzy_score",
    "hybrid_similarity",
    "jaro_similarity",
    "jaro_winkler_similarity",
    "levenshtein_distance",
    "levenshtein_similarity",
]

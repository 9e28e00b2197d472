"""
String similarity algorithms

All scores are in [0, 1] with 1 meaning identical. Edit distance and Jaro
come from rapidfuzz; the Winkler prefix bonus and the hybrid blend are
applied on top so that scores stay comparable across releases; callers
tune thresholds against these numbers.
"""

from typing import Callable, Optional

from rapidfuzz import process
from rapidfuzz.distance import Jaro, Levenshtein

from docspan.core.types import MatchAlgorithm
from docspan.utils.text import fold_text

WINKLER_PREFIX_SCALE = 0.1
WINKLER_MAX_PREFIX = 4
WINKLER_THRESHOLD = 0.7          # prefix bonus only from this Jaro score up
HYBRID_SHORT_QUERY_LENGTH = 10
HYBRID_SHORT_WEIGHT = 0.7        # Jaro-Winkler weight for short queries
HYBRID_LONG_WEIGHT = 0.5
CUTOFF_SLACK = 1e-9


def levenshtein_distance(s1: str, s2: str) -> int:
    """Edit distance (insertions, deletions and substitutions cost 1).

    Examples:
        >>> levenshtein_distance("kitten", "sitting")
        3
    """
    return Levenshtein.distance(s1, s2)


def levenshtein_similarity(s1: str, s2: str) -> float:
    """1 - distance / max(len1, len2); two empty strings are identical."""
    if not s1 and not s2:
        return 1.0
    return Levenshtein.normalized_similarity(s1, s2)


def jaro_similarity(s1: str, s2: str) -> float:
    """Jaro similarity.

    Characters match when equal and no further apart than
    max(len1, len2) // 2 - 1. With m matches and t half-transpositions the
    score is (m/len1 + m/len2 + (m - t/2)/m) / 3.

    Examples:
        >>> round(jaro_similarity("martha", "marhta"), 4)
        0.9444
    """
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0
    return Jaro.similarity(s1, s2)


def _with_prefix_bonus(s1: str, s2: str, jaro: float, prefix_scale: float) -> float:
    if jaro < WINKLER_THRESHOLD:
        return jaro

    prefix = 0
    for char1, char2 in zip(s1[:WINKLER_MAX_PREFIX], s2[:WINKLER_MAX_PREFIX]):
        if char1 != char2:
            break
        prefix += 1

    return jaro + prefix * prefix_scale * (1 - jaro)


def jaro_winkler_similarity(
    s1: str,
    s2: str,
    prefix_scale: float = WINKLER_PREFIX_SCALE,
) -> float:
    """Jaro score plus a shared-prefix bonus of up to 4 characters.

    The bonus applies only when the Jaro score is at least 0.7.

    Examples:
        >>> round(jaro_winkler_similarity("martha", "marhta"), 4)
        0.9611
    """
    return _with_prefix_bonus(s1, s2, jaro_similarity(s1, s2), prefix_scale)


def _hybrid_weight(query: str) -> float:
    if len(query) <= HYBRID_SHORT_QUERY_LENGTH:
        return HYBRID_SHORT_WEIGHT
    return HYBRID_LONG_WEIGHT


def hybrid_similarity(query: str, candidate: str) -> float:
    """Blend of Jaro-Winkler and Levenshtein similarity.

    Short queries (up to 10 chars) weight Jaro-Winkler 0.7, longer ones 0.5.
    """
    weight = _hybrid_weight(query)
    return (
        weight * jaro_winkler_similarity(query, candidate)
        + (1 - weight) * levenshtein_similarity(query, candidate)
    )


SCORERS: dict[MatchAlgorithm, Callable[[str, str], float]] = {
    MatchAlgorithm.LEVENSHTEIN: levenshtein_similarity,
    MatchAlgorithm.JARO: jaro_similarity,
    MatchAlgorithm.JARO_WINKLER: jaro_winkler_similarity,
    MatchAlgorithm.HYBRID: hybrid_similarity,
}


def get_scorer(algorithm: MatchAlgorithm) -> Callable[[str, str], float]:
    """Scorer function of a fuzzy algorithm.

    Raises:
        ValueError: If the algorithm is not a fuzzy algorithm.
    """
    algorithm = MatchAlgorithm(algorithm)
    if algorithm not in SCORERS:
        raise ValueError(f"Not a fuzzy algorithm: {algorithm.value}")
    return SCORERS[algorithm]


def _jaro_floor(min_score: float, weight: float = 1.0) -> float:
    """Lowest Jaro score that can still reach min_score after the bonus and blend."""
    bonus = WINKLER_MAX_PREFIX * WINKLER_PREFIX_SCALE
    needed = (min_score - (1 - weight)) / weight
    return max(0.0, (needed - bonus) / (1 - bonus) - CUTOFF_SLACK)


def _extract(query: str, windows: list[str], scorer, cutoff: float) -> list[tuple[int, float]]:
    results = process.extract(
        query,
        windows,
        scorer=scorer,
        processor=None,
        limit=None,
        score_cutoff=cutoff,
    )
    return [(index, score) for _, score, index in results]


def score_windows(
    query: str,
    windows: list[str],
    algorithm: MatchAlgorithm,
    min_score: float = 0.0,
) -> list[tuple[int, float]]:
    """Score a batch of folded candidate windows against a folded query.

    Jaro and edit distance run inside rapidfuzz over the whole batch;
    windows whose Jaro score cannot reach min_score are dropped before the
    prefix bonus and blend are applied.

    Returns:
        (index, score) pairs with score >= min_score, ordered by index.
    """
    algorithm = MatchAlgorithm(algorithm)
    get_scorer(algorithm)
    if not query or not windows:
        return []

    if algorithm is MatchAlgorithm.LEVENSHTEIN:
        scored = _extract(
            query, windows, Levenshtein.normalized_similarity, max(0.0, min_score - CUTOFF_SLACK)
        )
    elif algorithm is MatchAlgorithm.JARO:
        scored = _extract(query, windows, Jaro.similarity, max(0.0, min_score - CUTOFF_SLACK))
    else:
        weight = _hybrid_weight(query) if algorithm is MatchAlgorithm.HYBRID else 1.0
        scored = []
        for index, jaro in _extract(query, windows, Jaro.similarity, _jaro_floor(min_score, weight)):
            window = windows[index]
            score = _with_prefix_bonus(query, window, jaro, WINKLER_PREFIX_SCALE)
            if algorithm is MatchAlgorithm.HYBRID:
                score = weight * score + (1 - weight) * Levenshtein.normalized_similarity(
                    query, window
                )
            scored.append((index, score))

    return sorted((index, score) for index, score in scored if score >= min_score)


def fuzzy_score(
    query: Optional[str],
    text: Optional[str],
    algorithm: MatchAlgorithm = MatchAlgorithm.HYBRID,
    threshold: float = 0.0,
) -> float:
    """Case- and diacritic-insensitive similarity of two strings.

    Args:
        query: Query string.
        text: Candidate string.
        algorithm: Fuzzy algorithm to use.
        threshold: Scores below this are reported as 0.

    Returns:
        Score in [0, 1]; 1.0 for equal non-empty inputs, 0.0 if either is empty.

    Examples:
        >>> fuzzy_score("Novák", "novak")
        1.0
    """
    if not query or not text:
        return 0.0

    folded_query = fold_text(query)
    folded_text = fold_text(text)
    if not folded_query or not folded_text:
        return 0.0
    if folded_query == folded_text:
        return 1.0

    score = min(1.0, max(0.0, get_scorer(algorithm)(folded_query, folded_text)))
    return score if score >= threshold else 0.0

"""
Fuzzy matcher

Approximate search of a query inside a document. The document is
normalized first, candidate windows are scored in normalized coordinates
and every accepted window is mapped back onto the original text.

Candidate windows:
- every substring with the query's length
- every substring whose length differs by up to min(3, ceil(0.3 * len(query)))

Selection:
- drop candidates below min_score
- sort by score (stable: exact-length windows win ties)
- greedily reject any window overlapping an accepted one
- keep at most max_results
"""

import math
import time
from dataclasses import dataclass, field
from functools import cmp_to_key
from logging import Logger
from typing import Optional

from docspan.core.fuzzy.algorithms import score_windows
from docspan.core.normalizer import map_range_to_original, normalize
from docspan.core.types import (
    FUZZY_ALGORITHMS,
    MatchAlgorithm,
    NormalizedDocument,
    SearchMatch,
)
from docspan.logging.setup import get_logger
from docspan.metrics.collectors import MATCHES_FOUND
from docspan.utils.text import extract_context, fold_text

LARGE_TEXT_LENGTH = 10000        # above this, very short queries are skipped
MIN_QUERY_LENGTH_LARGE_TEXT = 3
MAX_LENGTH_TOLERANCE = 3
LENGTH_TOLERANCE_RATIO = 0.3
MULTI_THRESHOLD_FACTOR = 0.8     # per-algorithm threshold in multi-algorithm search
MULTI_RESULTS_FACTOR = 2
MULTI_BASE_CONFIDENCE = 0.5
MULTI_AGREEMENT_BONUS = 0.2
MULTI_TIE_WINDOW = 0.05
WINDOW_BATCH_SIZE = 2048         # windows scored per rapidfuzz call; deadline checked between batches


@dataclass
class FuzzyOptions:
    """Options of a single-algorithm fuzzy search."""
    algorithm: MatchAlgorithm = MatchAlgorithm.HYBRID
    min_score: float = 0.6
    max_results: int = 10
    context_length: int = 50
    time_budget_ms: Optional[float] = None    # stop generating candidates after this

    def __post_init__(self) -> None:
        self.algorithm = MatchAlgorithm(self.algorithm)
        if self.algorithm not in FUZZY_ALGORITHMS:
            raise ValueError(f"Not a fuzzy algorithm: {self.algorithm.value}")
        if not 0.0 <= self.min_score <= 1.0:
            raise ValueError(f"min_score must be between 0.0 and 1.0, got {self.min_score}")
        if self.max_results < 1:
            raise ValueError(f"max_results must be positive, got {self.max_results}")


@dataclass
class MultiAlgorithmOptions:
    """Options of the multi-algorithm fuzzy search."""
    algorithms: list[MatchAlgorithm] = field(
        default_factory=lambda: [
            MatchAlgorithm.HYBRID,
            MatchAlgorithm.JARO_WINKLER,
            MatchAlgorithm.LEVENSHTEIN,
        ]
    )
    weights: list[float] = field(default_factory=lambda: [0.5, 0.3, 0.2])
    min_score: float = 0.6
    max_results: int = 5
    context_length: int = 50
    time_budget_ms: Optional[float] = None

    def __post_init__(self) -> None:
        self.algorithms = [MatchAlgorithm(a) for a in self.algorithms]
        if not self.algorithms:
            raise ValueError("At least one algorithm is required")
        for algorithm in self.algorithms:
            if algorithm not in FUZZY_ALGORITHMS:
                raise ValueError(f"Not a fuzzy algorithm: {algorithm.value}")

    def weight_of(self, index: int) -> float:
        """Configured weight, or an even share when none is given."""
        if index < len(self.weights):
            return self.weights[index]
        return 1.0 / len(self.algorithms)


@dataclass
class FuzzyRun:
    """Outcome of one fuzzy search."""
    matches: list[SearchMatch]
    candidates_scored: int = 0
    timed_out: bool = False
    skipped: bool = False            # short-circuited by the size guard


def length_tolerance(query_length: int) -> int:
    """Window length tolerance either side of the query length."""
    return min(MAX_LENGTH_TOLERANCE, math.ceil(query_length * LENGTH_TOLERANCE_RATIO))


def candidate_lengths(query_length: int) -> list[int]:
    """Window lengths in scoring order: the query length first, then the rest ascending."""
    tolerance = length_tolerance(query_length)
    lengths = [query_length]
    for length in range(query_length - tolerance, query_length + tolerance + 1):
        if length == query_length or length <= 0:
            continue
        lengths.append(length)
    return lengths


def _remove_overlaps(
    candidates: list[tuple[float, int, int]],
    max_results: int,
) -> list[tuple[float, int, int]]:
    accepted: list[tuple[float, int, int]] = []
    for candidate in candidates:
        _, start, end = candidate
        if any(start < kept_end and end > kept_start for _, kept_start, kept_end in accepted):
            continue
        accepted.append(candidate)
        if len(accepted) >= max_results:
            break
    return accepted


class FuzzyMatcher:
    """Fuzzy search service.

    Example:
        >>> matcher = FuzzyMatcher()
        >>> run = matcher.search("Novak", "Smlouvu podepsal Jan Novák.")
        >>> run.matches[0].text
        'Novák'
    """

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self._logger = logger if logger is not None else get_logger(__name__)

    def search(
        self,
        query: Optional[str],
        text: Optional[str],
        options: Optional[FuzzyOptions] = None,
        doc: Optional[NormalizedDocument] = None,
        deadline: Optional[float] = None,
    ) -> FuzzyRun:
        """Run a single-algorithm fuzzy search.

        Args:
            query: Query string.
            text: Original document text.
            options: Search options.
            doc: Pre-computed normalized form of text.
            deadline: time.monotonic() value after which candidate
                generation stops (overrides options.time_budget_ms).

        Returns:
            FuzzyRun with matches in original coordinates.
        """
        options = options or FuzzyOptions()
        if not query or not text:
            return FuzzyRun(matches=[])

        if len(text) > LARGE_TEXT_LENGTH and len(query) < MIN_QUERY_LENGTH_LARGE_TEXT:
            self._logger.warning(
                "Skipping fuzzy search for large text with short query",
                extra={
                    "event": "fuzzy_skipped",
                    "text_length": len(text),
                    "query_length": len(query),
                },
            )
            return FuzzyRun(matches=[], skipped=True)

        folded_query = fold_text(query)
        if doc is None:
            doc = normalize(text)
        haystack = doc.normalized
        if not folded_query or not haystack:
            return FuzzyRun(matches=[])

        if deadline is None and options.time_budget_ms is not None:
            deadline = time.monotonic() + options.time_budget_ms / 1000.0

        scored: list[tuple[float, int, int]] = []
        candidates_scored = 0
        timed_out = False

        for length in candidate_lengths(len(folded_query)):
            window_count = len(haystack) - length + 1
            for batch_start in range(0, window_count, WINDOW_BATCH_SIZE):
                if deadline is not None and time.monotonic() > deadline:
                    timed_out = True
                    break
                batch_end = min(batch_start + WINDOW_BATCH_SIZE, window_count)
                windows = [haystack[start:start + length] for start in range(batch_start, batch_end)]
                candidates_scored += len(windows)
                for index, score in score_windows(
                    folded_query, windows, options.algorithm, options.min_score
                ):
                    if score > 0:
                        start = batch_start + index
                        scored.append((min(score, 1.0), start, start + length))
            if timed_out:
                break

        scored.sort(key=lambda c: -c[0])
        accepted = _remove_overlaps(scored, options.max_results)

        matches = []
        for score, start, end in accepted:
            original_start, original_end = map_range_to_original(doc, start, end, text)
            if original_start >= original_end:
                continue
            matches.append(
                SearchMatch(
                    start=original_start,
                    end=original_end,
                    text=text[original_start:original_end],
                    score=score,
                    confidence=score,
                    algorithm=options.algorithm,
                    context=extract_context(
                        text, original_start, original_end, options.context_length
                    ),
                )
            )

        if matches:
            MATCHES_FOUND.labels(algorithm=options.algorithm.value).inc(len(matches))

        self._logger.debug(
            "Found fuzzy matches",
            extra={
                "event": "fuzzy_search",
                "algorithm": options.algorithm.value,
                "candidate_count": candidates_scored,
                "scored_count": len(scored),
                "final_count": len(matches),
                "timed_out": timed_out,
            },
        )

        return FuzzyRun(matches=matches, candidates_scored=candidates_scored, timed_out=timed_out)

    def search_multi(
        self,
        query: Optional[str],
        text: Optional[str],
        options: Optional[MultiAlgorithmOptions] = None,
        doc: Optional[NormalizedDocument] = None,
    ) -> FuzzyRun:
        """Run several algorithms and merge their matches by span.

        Each algorithm runs with min_score * 0.8 and max_results * 2. A span
        found by several algorithms sums its weighted scores; its confidence
        starts at 0.5 and gains 0.2 per additional agreeing algorithm, capped
        at 1.0. Spans whose combined score reaches min_score are kept,
        ordered by combined score, falling back to confidence when two
        scores are within 0.05 of each other.
        """
        options = options or MultiAlgorithmOptions()
        if not query or not text:
            return FuzzyRun(matches=[])

        if doc is None:
            doc = normalize(text)
        deadline = None
        if options.time_budget_ms is not None:
            deadline = time.monotonic() + options.time_budget_ms / 1000.0

        merged: dict[tuple[int, int], SearchMatch] = {}
        agreeing: dict[tuple[int, int], list[MatchAlgorithm]] = {}
        candidates_scored = 0
        timed_out = False
        skipped = False

        for index, algorithm in enumerate(options.algorithms):
            weight = options.weight_of(index)
            run = self.search(
                query,
                text,
                FuzzyOptions(
                    algorithm=algorithm,
                    min_score=options.min_score * MULTI_THRESHOLD_FACTOR,
                    max_results=options.max_results * MULTI_RESULTS_FACTOR,
                    context_length=options.context_length,
                ),
                doc=doc,
                deadline=deadline,
            )
            candidates_scored += run.candidates_scored
            timed_out = timed_out or run.timed_out
            skipped = skipped or run.skipped

            for match in run.matches:
                key = (match.start, match.end)
                existing = merged.get(key)
                if existing is not None:
                    existing.score += match.score * weight
                    existing.confidence = min(existing.confidence + MULTI_AGREEMENT_BONUS, 1.0)
                    agreeing[key].append(algorithm)
                else:
                    merged[key] = SearchMatch(
                        start=match.start,
                        end=match.end,
                        text=match.text,
                        score=match.score * weight,
                        confidence=MULTI_BASE_CONFIDENCE,
                        algorithm=MatchAlgorithm.MULTI,
                        context=match.context,
                    )
                    agreeing[key] = [algorithm]

        def compare(a: SearchMatch, b: SearchMatch) -> int:
            if abs(a.score - b.score) < MULTI_TIE_WINDOW:
                return (b.confidence > a.confidence) - (b.confidence < a.confidence)
            return (b.score > a.score) - (b.score < a.score)

        combined = [m for m in merged.values() if m.score >= options.min_score]
        combined.sort(key=cmp_to_key(compare))
        combined = combined[: options.max_results]
        for match in combined:
            match.score = min(match.score, 1.0)

        self._logger.debug(
            "Merged multi-algorithm fuzzy matches",
            extra={
                "event": "fuzzy_multi_search",
                "algorithms": [a.value for a in options.algorithms],
                "merged_count": len(merged),
                "final_count": len(combined),
                "agreement": {
                    f"{start}-{end}": [a.value for a in algorithms]
                    for (start, end), algorithms in agreeing.items()
                    if len(algorithms) > 1
                },
            },
        )

        return FuzzyRun(
            matches=combined,
            candidates_scored=candidates_scored,
            timed_out=timed_out,
            skipped=skipped,
        )

    def search_realtime(
        self,
        query: Optional[str],
        text: Optional[str],
        time_budget_ms: float = 100.0,
        quick: bool = True,
        min_score: float = 0.6,
    ) -> FuzzyRun:
        """Interactive search: Jaro-Winkler (or hybrid), 3 results, short context, hard budget."""
        start_time = time.monotonic()
        run = self.search(
            query,
            text,
            FuzzyOptions(
                algorithm=MatchAlgorithm.JARO_WINKLER if quick else MatchAlgorithm.HYBRID,
                min_score=min_score,
                max_results=3,
                context_length=30,
                time_budget_ms=time_budget_ms,
            ),
        )
        duration_ms = (time.monotonic() - start_time) * 1000
        if duration_ms > time_budget_ms:
            self._logger.warning(
                "Real-time fuzzy search exceeded its budget",
                extra={
                    "event": "fuzzy_realtime_slow",
                    "duration_ms": round(duration_ms, 2),
                    "budget_ms": time_budget_ms,
                    "query_length": len(query or ""),
                    "text_length": len(text or ""),
                },
            )
        return run


def find_fuzzy(
    query: Optional[str],
    text: Optional[str],
    options: Optional[FuzzyOptions] = None,
) -> list[SearchMatch]:
    """Fuzzy matches of query in text, in original coordinates.

    Example:
        >>> [m.text for m in find_fuzzy("Novak", "Jan Novák a Pavel Novák")]
        ['Novák', 'Novák']
    """
    return FuzzyMatcher().search(query, text, options).matches


def find_fuzzy_multi(
    query: Optional[str],
    text: Optional[str],
    options: Optional[MultiAlgorithmOptions] = None,
) -> list[SearchMatch]:
    """Multi-algorithm fuzzy matches of query in text."""
    return FuzzyMatcher().search_multi(query, text, options).matches


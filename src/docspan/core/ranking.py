"""
Result fusion and ranking

Every candidate result gets a weighted sum of five component scores:

    relevance   lexical overlap, substring containment, type-in-query bonus
    confidence  the producing matcher's confidence
    context     context length, query terms in context, sentence count
    freshness   1.0 unless the producer supplied metadata["freshness"]
    feedback    external feedback score, 0.5 when none is available

Results sharing a signature (label or type, folded value prefix) are
collapsed: the first one seen is kept and a later one replaces it only if
it scores more than REPLACEMENT_MARGIN higher.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from logging import Logger
from typing import Any, Optional

from docspan.core.errors import ConfigurationError
from docspan.core.types import SearchResult, ValueType
from docspan.logging.setup import get_logger
from docspan.utils.text import count_sentences, fold_text

# A duplicate replaces the kept result only above kept * (1 + margin).
REPLACEMENT_MARGIN = 0.2
DEFAULT_MAX_RESULTS = 10
SIGNATURE_VALUE_LENGTH = 50
WEIGHT_TOLERANCE = 1e-6

CONTAINMENT_BONUS = 0.8
WORD_OVERLAP_WEIGHT = 0.6
ENTITY_BONUS = 0.3
CONTEXT_LENGTH_SCALE = 200
CONTEXT_LENGTH_WEIGHT = 0.4
CONTEXT_TERM_BONUS = 0.3
CONTEXT_SENTENCE_SCALE = 3
CONTEXT_SENTENCE_WEIGHT = 0.3
NEUTRAL_FEEDBACK = 0.5
MIN_TERM_LENGTH = 3


@dataclass
class RankingWeights:
    """Component weights of the total score; they must sum to 1."""

    relevance: float = 0.4
    confidence: float = 0.3
    context: float = 0.15
    freshness: float = 0.1
    feedback: float = 0.05

    def __post_init__(self) -> None:
        for name, weight in self.as_dict().items():
            if weight < 0:
                raise ConfigurationError(f"Ranking weight {name} must not be negative, got {weight}")
        total = sum(self.as_dict().values())
        if not math.isclose(total, 1.0, abs_tol=WEIGHT_TOLERANCE):
            raise ConfigurationError(f"Ranking weights must sum to 1.0, got {total:.6f}")

    def as_dict(self) -> dict[str, float]:
        return {
            "relevance": self.relevance,
            "confidence": self.confidence,
            "context": self.context,
            "freshness": self.freshness,
            "feedback": self.feedback,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RankingWeights":
        """Build weights from a mapping, keeping defaults for missing keys.

        Raises:
            ConfigurationError: On unknown keys, non-numeric values or a bad sum.
        """
        known = set(cls().as_dict())
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown ranking weights: {', '.join(sorted(unknown))}")
        try:
            values = {key: float(value) for key, value in data.items()}
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Ranking weights must be numbers: {exc}") from exc
        return cls(**values)


class FeedbackProvider(ABC):
    """Source of external feedback scores (e.g. user ratings of past answers)."""

    @abstractmethod
    def score(self, result: SearchResult) -> Optional[float]:
        """Feedback in [0, 1] for a result, or None when nothing is known."""


@dataclass
class RankingOptions:
    """Options of a single rank() call.

    Attributes:
        weights: Component weights.
        max_results: Results kept after ranking.
        replacement_margin: Relative score gain a duplicate needs to replace the kept one.
        target_types: Value types the query asks for; results of these
            types get the entity bonus.
        feedback: Optional feedback provider.
    """

    weights: RankingWeights = field(default_factory=RankingWeights)
    max_results: int = DEFAULT_MAX_RESULTS
    replacement_margin: float = REPLACEMENT_MARGIN
    target_types: frozenset[ValueType] = frozenset()
    feedback: Optional[FeedbackProvider] = None

    def __post_init__(self) -> None:
        if self.max_results < 1:
            raise ConfigurationError(f"max_results must be positive, got {self.max_results}")
        if self.replacement_margin < 0:
            raise ConfigurationError(
                f"replacement_margin must not be negative, got {self.replacement_margin}"
            )
        self.target_types = frozenset(self.target_types)


def query_terms(query: str) -> list[str]:
    """Folded query words long enough to be meaningful."""
    return [term for term in fold_text(query).split() if len(term) >= MIN_TERM_LENGTH]


def result_signature(result: SearchResult) -> tuple[str, str]:
    """Deduplication signature: (label or type, folded value prefix)."""
    kind = result.label or result.type.value
    value = fold_text(result.value or "")[:SIGNATURE_VALUE_LENGTH]
    return fold_text(kind), value


def _result_text(result: SearchResult) -> str:
    if result.value:
        return result.value
    if result.matches:
        return result.matches[0].text
    return ""


def _result_context(result: SearchResult) -> str:
    for match in result.matches:
        if match.context:
            return match.context
    return ""


class Ranker:
    """Scores, deduplicates and orders candidate results.

    Example:
        >>> ranker = Ranker()
        >>> ranked = ranker.rank(results, "kupní cena", document)
        >>> [r.rank for r in ranked]
        [1, 2]
    """

    def __init__(
        self,
        logger: Optional[Logger] = None,
        weights: Optional[RankingWeights] = None,
    ) -> None:
        self._logger = logger if logger is not None else get_logger(__name__)
        self.weights = weights or RankingWeights()

    def relevance_score(
        self,
        result: SearchResult,
        query: str,
        target_types: frozenset[ValueType] = frozenset(),
    ) -> float:
        text = fold_text(_result_text(result))
        folded_query = fold_text(query)
        score = 0.0

        if folded_query and folded_query in text:
            score += CONTAINMENT_BONUS

        query_words = folded_query.split()
        if query_words:
            result_words = set(text.split())
            overlap = sum(1 for word in query_words if word in result_words)
            score += overlap / len(query_words) * WORD_OVERLAP_WEIGHT

        if result.type in target_types:
            score += ENTITY_BONUS

        return min(score, 1.0)

    def context_score(self, result: SearchResult, query: str) -> float:
        context = _result_context(result)
        if not context:
            return 0.0

        score = min(len(context) / CONTEXT_LENGTH_SCALE, 1.0) * CONTEXT_LENGTH_WEIGHT

        folded_context = fold_text(context)
        for term in query_terms(query):
            if term in folded_context:
                score += CONTEXT_TERM_BONUS

        sentences = count_sentences(context)
        score += min(sentences / CONTEXT_SENTENCE_SCALE, 1.0) * CONTEXT_SENTENCE_WEIGHT
        return min(score, 1.0)

    @staticmethod
    def freshness_score(result: SearchResult) -> float:
        freshness = result.metadata.get("freshness")
        if freshness is None:
            return 1.0
        return min(max(float(freshness), 0.0), 1.0)

    @staticmethod
    def feedback_score(result: SearchResult, provider: Optional[FeedbackProvider]) -> float:
        feedback = provider.score(result) if provider is not None else None
        if feedback is None:
            feedback = result.metadata.get("feedback")
        if feedback is None:
            return NEUTRAL_FEEDBACK
        return min(max(float(feedback), 0.0), 1.0)

    def score_result(
        self,
        result: SearchResult,
        query: str,
        options: RankingOptions,
    ) -> float:
        """Compute and store the component scores and total of one result."""
        components = {
            "relevance": self.relevance_score(result, query, options.target_types),
            "confidence": min(max(result.confidence, 0.0), 1.0),
            "context": self.context_score(result, query),
            "freshness": self.freshness_score(result),
            "feedback": self.feedback_score(result, options.feedback),
        }
        weights = options.weights.as_dict()
        result.components = components
        result.score = sum(components[name] * weights[name] for name in components)
        return result.score

    def deduplicate(
        self,
        results: list[SearchResult],
        replacement_margin: float = REPLACEMENT_MARGIN,
    ) -> list[SearchResult]:
        """Collapse results sharing a signature, in arrival order.

        Args:
            results: Scored results.
            replacement_margin: Relative gain a later duplicate needs to
                replace the kept result.

        Returns:
            One result per signature.
        """
        kept: dict[tuple[str, str], int] = {}
        unique: list[SearchResult] = []

        for result in results:
            signature = result_signature(result)
            index = kept.get(signature)
            if index is None:
                kept[signature] = len(unique)
                unique.append(result)
                continue

            existing = unique[index]
            if result.score > existing.score * (1 + replacement_margin):
                result.metadata["replaced"] = existing.id
                unique[index] = result
                self._logger.debug(
                    "Duplicate result replaced",
                    extra={
                        "event": "result_replaced",
                        "kept_id": result.id,
                        "dropped_id": existing.id,
                    },
                )

        return unique

    def rank(
        self,
        results: list[SearchResult],
        query: str,
        document: Optional[str] = None,
        options: Optional[RankingOptions] = None,
    ) -> list[SearchResult]:
        """Score, deduplicate, order and truncate results.

        Args:
            results: Candidate results from any producer.
            query: The user's query.
            document: Original document (accepted for interface parity; the
                components read context from the matches).
            options: Ranking options; defaults use this ranker's weights.

        Returns:
            Ranked results with 1-based rank, at most options.max_results.
        """
        if options is None:
            options = RankingOptions(weights=self.weights)
        if not results:
            return []

        for result in results:
            self.score_result(result, query or "", options)

        unique = self.deduplicate(results, options.replacement_margin)
        unique.sort(
            key=lambda r: (
                -r.score,
                -r.confidence,
                r.start if r.start is not None else math.inf,
            )
        )

        ranked = unique[: options.max_results]
        for position, result in enumerate(ranked, start=1):
            result.rank = position

        self._logger.debug(
            "Results ranked",
            extra={
                "event": "results_ranked",
                "candidate_count": len(results),
                "unique_count": len(unique),
                "final_count": len(ranked),
            },
        )
        return ranked


def rank(
    results: list[SearchResult],
    query: str,
    document: Optional[str] = None,
    options: Optional[RankingOptions] = None,
) -> list[SearchResult]:
    """Rank results with default weights unless options say otherwise."""
    return Ranker().rank(results, query, document, options)

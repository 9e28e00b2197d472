"""
Oracle candidate verification

An external extraction oracle (for example a language model prompted with
the document) proposes (label, value) pairs, optionally with an
approximate position. Nothing it proposes is trusted: every value is
re-localized in the original text with the exact matcher, validated
against its type, and dropped with a warning when that fails. A claimed
position is only trusted when the original text at that span reads as the
value.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from docspan.core.exact import find_exact
from docspan.core.extractor import EntityExtractor
from docspan.core.types import MatchAlgorithm, NormalizedDocument, SearchMatch, SearchResult, ValueType
from docspan.core.value_types import (
    FREE_FORM_TYPES,
    coerce_value_type,
    detect_value_type,
    normalize_value,
    validate_value,
)
from docspan.metrics.collectors import ORACLE_CANDIDATES, VALIDATION_REJECTIONS
from docspan.utils.text import fold_text, truncate_text

# Largest distance between the claimed and the verified start still accepted.
POSITION_TOLERANCE = 50

_ANSWER_SEPARATORS = re.compile(r"[;\n]+")

CandidateInput = Union["OracleCandidate", tuple, dict]


@dataclass
class OracleCandidate:
    """A value proposed by an external oracle.

    Attributes:
        label: What the value is ("Rodné číslo", "Kupní cena", ...).
        value: The proposed value as it should appear in the document.
        approximate_start: Claimed start offset in the original text.
        approximate_end: Claimed end offset in the original text.
        value_type: Claimed type; detected from the value when missing.
    """

    label: str
    value: str
    approximate_start: Optional[int] = None
    approximate_end: Optional[int] = None
    value_type: Optional[ValueType] = None

    @property
    def has_position(self) -> bool:
        return self.approximate_start is not None and self.approximate_end is not None

    @classmethod
    def coerce(cls, candidate: CandidateInput) -> "OracleCandidate":
        """Accept an OracleCandidate, a (label, value[, start, end]) tuple or a dict.

        Raises:
            ValueError: If the input has no recognizable shape.
        """
        if isinstance(candidate, cls):
            return candidate
        if isinstance(candidate, dict):
            return cls(
                label=str(candidate.get("label", "")),
                value=str(candidate.get("value", "")),
                approximate_start=candidate.get("approximate_start", candidate.get("start")),
                approximate_end=candidate.get("approximate_end", candidate.get("end")),
                value_type=coerce_value_type(candidate.get("value_type", candidate.get("type"))),
            )
        if isinstance(candidate, (tuple, list)) and len(candidate) in (2, 4):
            label, value = candidate[0], candidate[1]
            start, end = (candidate[2], candidate[3]) if len(candidate) == 4 else (None, None)
            return cls(label=str(label), value=str(value), approximate_start=start, approximate_end=end)
        raise ValueError(f"Unsupported oracle candidate: {candidate!r}")

    def as_key(self) -> tuple[Any, ...]:
        """Hashable form used in cache keys."""
        return (
            self.label,
            self.value,
            self.approximate_start,
            self.approximate_end,
            self.value_type.value if self.value_type else None,
        )


class CandidateOracle(ABC):
    """External source of candidate values for a query."""

    @abstractmethod
    def propose(self, query: str, document: str) -> list[OracleCandidate]:
        """Propose candidate values answering query within document."""


def split_answer_values(
    answer: Optional[str],
    extractor: Optional[EntityExtractor] = None,
) -> list[str]:
    """Break a composite oracle answer into individual values.

    Typed values found by the extractor (birth numbers, names, amounts,
    percentages, accounts) are returned in order of appearance. An answer
    without typed values is split on semicolons and line breaks.

    Example:
        >>> split_answer_values("Jan Novák, RČ 940115/1234")
        ['Jan Novák', '940115/1234']
    """
    if not answer or not answer.strip():
        return []

    extractor = extractor or EntityExtractor()
    values: list[str] = []
    for match in extractor.extract_entities(answer):
        if match.text not in values:
            values.append(match.text)
    if values:
        return values

    return [part.strip() for part in _ANSWER_SEPARATORS.split(answer) if part.strip()]


def _reject(warnings: list[str], candidate: OracleCandidate, reason: str, detail: str) -> None:
    ORACLE_CANDIDATES.labels(status=reason).inc()
    VALIDATION_REJECTIONS.labels(source="oracle", reason=reason).inc()
    warnings.append(
        f"oracle candidate rejected: {detail} "
        f"({candidate.label}: {truncate_text(candidate.value, 40)})"
    )


def _claimed_slice_holds(
    candidate: OracleCandidate,
    original_text: str,
    value: str,
    value_type: Optional[ValueType],
) -> bool:
    """True if the claimed span of the original text reads as the value."""
    start = max(candidate.approximate_start, 0)
    end = min(candidate.approximate_end, len(original_text))
    if start >= end:
        return False
    claimed = original_text[start:end]
    if fold_text(claimed) == fold_text(value):
        return True
    if value_type is None or not validate_value(claimed, value_type):
        return False
    return normalize_value(claimed, value_type) == normalize_value(value, value_type)


def verify_candidate(
    candidate: OracleCandidate,
    doc: NormalizedDocument,
    original_text: str,
    warnings: list[str],
    context_length: int = 50,
) -> list[SearchMatch]:
    """Verified matches of one candidate; rejections are appended to warnings."""
    value = (candidate.value or "").strip()
    if not value:
        _reject(warnings, candidate, "empty_value", "empty value")
        return []

    value_type = candidate.value_type or detect_value_type(value)
    if value_type is ValueType.UNKNOWN:
        value_type = ValueType.TEXT
    typed = value_type not in FREE_FORM_TYPES

    if typed and not validate_value(value, value_type):
        _reject(warnings, candidate, "type_mismatch", f"not a valid {value_type.value}")
        return []

    matches = find_exact(
        value,
        doc,
        original_text,
        value_type if typed else None,
        context_length=context_length,
    )
    if not matches:
        _reject(warnings, candidate, "not_found", "not found in document")
        return []

    if candidate.has_position:
        if not _claimed_slice_holds(candidate, original_text, value, value_type if typed else None):
            _reject(warnings, candidate, "position_mismatch", "position mismatch")
            return []
        nearest = min(matches, key=lambda m: abs(m.start - candidate.approximate_start))
        if abs(nearest.start - candidate.approximate_start) > POSITION_TOLERANCE:
            _reject(warnings, candidate, "position_mismatch", "position mismatch")
            return []
        matches = [nearest]

    for match in matches:
        match.algorithm = MatchAlgorithm.ORACLE
        match.type = value_type
        match.value = normalize_value(match.text, value_type)
    ORACLE_CANDIDATES.labels(status="verified").inc()
    return matches


def verify_candidates(
    candidates: Iterable[CandidateInput],
    doc: NormalizedDocument,
    original_text: str,
    context_length: int = 50,
    split_composite: bool = False,
    extractor: Optional[EntityExtractor] = None,
) -> tuple[list[SearchResult], list[str]]:
    """Re-localize and validate oracle candidates in the original text.

    Args:
        candidates: Candidates as OracleCandidate, tuples or dicts.
        doc: Normalized form of original_text.
        original_text: The document.
        context_length: Context characters of verified matches.
        split_composite: Split composite values with split_answer_values() first.
        extractor: Extractor used for splitting.

    Returns:
        Tuple of (verified results, warnings). Each verified candidate
        yields one result labeled with the candidate's label.
    """
    results: list[SearchResult] = []
    warnings: list[str] = []

    for index, raw in enumerate(candidates):
        try:
            candidate = OracleCandidate.coerce(raw)
        except ValueError as exc:
            ORACLE_CANDIDATES.labels(status="malformed").inc()
            warnings.append(f"oracle candidate rejected: {exc}")
            continue

        parts = [candidate]
        if split_composite and not candidate.has_position and candidate.value_type is None:
            values = split_answer_values(candidate.value, extractor)
            if len(values) > 1:
                parts = [OracleCandidate(label=candidate.label, value=v) for v in values]

        for part_index, part in enumerate(parts):
            matches = verify_candidate(part, doc, original_text, warnings, context_length)
            if not matches:
                continue
            result = SearchResult(
                id=f"oracle-{index}-{part_index}",
                label=part.label,
                value=matches[0].value or matches[0].text,
                type=matches[0].type or ValueType.TEXT,
                source="oracle",
            )
            for match in matches:
                result.add_match(match)
            results.append(result)

    return results, warnings

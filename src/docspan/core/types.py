"""Data model shared by every matcher, the ranker and the highlighter.

All offsets carried by SearchMatch, SearchResult and Segment point into the
original, unmodified document text. Normalized offsets only ever live
inside a NormalizedDocument.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ValueType(str, Enum):
    """Closed set of value kinds the engine can validate and canonicalize."""

    BIRTH_NUMBER = "birthNumber"
    IBAN = "iban"
    BANK_ACCOUNT = "bankAccount"
    AMOUNT = "amount"
    RPSN = "rpsn"
    DATE = "date"
    PHONE = "phone"
    NAME = "name"
    ADDRESS = "address"
    TEXT = "text"
    UNKNOWN = "unknown"


class MatchAlgorithm(str, Enum):
    """Strategy that produced a match."""

    EXACT = "exact"
    LEVENSHTEIN = "levenshtein"
    JARO = "jaro"
    JARO_WINKLER = "jaroWinkler"
    HYBRID = "hybrid"
    MULTI = "multi"
    PATTERN = "pattern"
    CLAUSE = "clause"
    ORACLE = "oracle"


FUZZY_ALGORITHMS = (
    MatchAlgorithm.LEVENSHTEIN,
    MatchAlgorithm.JARO,
    MatchAlgorithm.JARO_WINKLER,
    MatchAlgorithm.HYBRID,
)


@dataclass
class SearchMatch:
    """A verified span of the original document.

    Attributes:
        start: Start offset in the original text (inclusive).
        end: End offset in the original text (exclusive).
        text: original_text[start:end].
        score: Similarity score in [0, 1].
        confidence: Producer confidence in [0, 1].
        type: Value type the span was validated against, if any.
        algorithm: Strategy that produced the span.
        context: Surrounding text of the original document.
        entity: Recognizer entity name for pattern hits (e.g. CZ_BIRTH_NUMBER).
        category: Pattern family for pattern hits (e.g. identifiers).
        value: Canonical form of text when the type is known.
    """

    start: int
    end: int
    text: str
    score: float = 1.0
    confidence: float = 1.0
    type: Optional[ValueType] = None
    algorithm: Optional[MatchAlgorithm] = None
    context: str = ""
    entity: Optional[str] = None
    category: Optional[str] = None
    value: Optional[str] = None

    def __post_init__(self) -> None:
        if self.start < 0 or self.end <= self.start:
            raise ValueError(f"Invalid match span: [{self.start}, {self.end})")

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "SearchMatch") -> bool:
        """Return True if the two half-open spans intersect."""
        return self.start < other.end and other.start < self.end

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "text": self.text,
            "score": self.score,
            "confidence": self.confidence,
            "type": self.type.value if self.type else None,
            "algorithm": self.algorithm.value if self.algorithm else None,
            "context": self.context,
            "entity": self.entity,
            "category": self.category,
            "value": self.value,
        }


@dataclass
class SearchResult:
    """One extracted value supported by one or more matches.

    Attributes:
        id: Stable identifier of the result within a search.
        label: Human label (the query or an oracle label).
        value: Canonical value.
        type: Value type of the result.
        matches: Supporting matches, ordered by position.
        rank: 1-based rank assigned by the ranker (0 until ranked).
        score: Total ranking score (0 until ranked).
        source: Producer name (exact, fuzzy, pattern, clause, oracle).
        metadata: Free-form producer metadata (freshness, feedback, ...).
        components: Per-component ranking scores, filled by the ranker.
    """

    id: str
    label: str
    value: str
    type: ValueType = ValueType.TEXT
    matches: list[SearchMatch] = field(default_factory=list)
    rank: int = 0
    score: float = 0.0
    source: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    components: dict[str, float] = field(default_factory=dict)

    @property
    def confidence(self) -> float:
        """Highest confidence among supporting matches."""
        if not self.matches:
            return 0.0
        return max(m.confidence for m in self.matches)

    @property
    def start(self) -> Optional[int]:
        """Earliest document position, or None for a result without matches."""
        if not self.matches:
            return None
        return min(m.start for m in self.matches)

    def add_match(self, match: SearchMatch) -> bool:
        """Attach a match unless the same span is already present.

        Returns:
            True if the match was added.
        """
        for existing in self.matches:
            if existing.start == match.start and existing.end == match.end:
                if match.confidence > existing.confidence:
                    existing.confidence = match.confidence
                return False
        self.matches.append(match)
        self.matches.sort(key=lambda m: (m.start, m.end))
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "value": self.value,
            "type": self.type.value,
            "matches": [m.to_dict() for m in self.matches],
            "rank": self.rank,
            "score": self.score,
            "confidence": self.confidence,
            "source": self.source,
        }


@dataclass
class HighlightRange:
    """Renderer input span; may overlap other ranges or exceed the text."""

    start: int
    end: int
    id: Optional[str] = None
    type: Optional[ValueType] = None
    score: Optional[float] = None
    priority: Optional[int] = None


@dataclass
class Segment:
    """A piece of the rendered document.

    text is already escaped when the renderer was given an escape function.
    start/end always refer to the original, unescaped text.
    """

    text: str
    is_highlighted: bool
    start: int
    end: int
    range: Optional[HighlightRange] = None


@dataclass(frozen=True)
class NormalizedDocument:
    """Search-friendly form of a document plus its coordinate maps.

    Attributes:
        normalized: Markdown-stripped, diacritic-folded, lowercased text.
        index_map: index_map[i] is the original offset of normalized[i].
            Non-decreasing, same length as normalized.
        reverse_map: Original offset -> normalized offsets. Sparse: a
            missing key means the original character did not survive
            normalization.
        original_length: Length of the original text.
    """

    normalized: str = ""
    index_map: list[int] = field(default_factory=list)
    reverse_map: dict[int, list[int]] = field(default_factory=dict)
    original_length: int = 0

    def __len__(self) -> int:
        return len(self.normalized)

    @property
    def is_empty(self) -> bool:
        return not self.normalized

    def to_original(self, offset: int) -> int:
        """Map a normalized offset to an original offset, clamping to bounds."""
        if not self.index_map:
            return 0
        if offset < 0:
            offset = 0
        elif offset >= len(self.index_map):
            return self.original_length
        return self.index_map[offset]

    def to_normalized(self, offset: int) -> list[int]:
        """Normalized offsets produced by an original offset (possibly none)."""
        return self.reverse_map.get(offset, [])

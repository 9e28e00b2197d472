"""
Typed entity extraction

Runs the registered value recognizers over a document and turns their
validated hits into SearchMatch objects:

- a regex hit failing its type's validator is dropped by the recognizer
- each hit carries the recognizer's fixed prior confidence
- when several types claim the same span, the highest prior wins
- repeated values within a category (case and whitespace insensitive)
  keep only the highest-confidence instance

Clause rules complement the recognizers with label-anchored values such as
"kupní cena činí 7 850 000 Kč".
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from logging import Logger
from typing import Optional

from docspan.core.types import MatchAlgorithm, SearchMatch, ValueType
from docspan.core.value_types import FREE_FORM_TYPES, normalize_value, validate_value
from docspan.logging.setup import get_logger
from docspan.metrics.collectors import ENTITIES_EXTRACTED, VALIDATION_REJECTIONS
from docspan.recognizers.base import ValueTypeRecognizer
from docspan.recognizers.registry import create_default_recognizers
from docspan.utils.text import extract_context

CLAUSE_CATEGORY = "clauses"

_UPPER = "A-ZÁČĎÉĚÍŇÓŘŠŤÚŮÝŽ"
_LOWER = "a-záčďéěíňóřšťúůýž"
_NAME = rf"[{_UPPER}][{_LOWER}]+(?:[ \t]+[{_UPPER}][{_LOWER}]+){{1,3}}"


@dataclass(frozen=True)
class ClauseRule:
    """A labeled clause whose first capture group is the value.

    Attributes:
        name: Rule name; the entity is CLAUSE_<NAME>.
        pattern: Compiled pattern with one capture group.
        value_type: Type the captured value is validated against.
        confidence: Prior confidence of hits.
    """

    name: str
    pattern: re.Pattern
    value_type: ValueType
    confidence: float

    @property
    def entity(self) -> str:
        return f"CLAUSE_{self.name.upper()}"


CLAUSE_RULES: tuple[ClauseRule, ...] = (
    ClauseRule(
        "purchase_price",
        re.compile(
            r"kupn[íi]\s+cen[ayuě]\s*(?:(?:činí|cini|je|ve\s+výši|ve\s+vysi)\s*)?:?\s*"
            r"((?:\d{1,3}(?:[ \u00a0.]\d{3})+|\d+)(?:,\d{1,2})?(?:,-)?\s?(?:Kč|CZK|korun(?:\s+českých)?))",
            re.IGNORECASE,
        ),
        ValueType.AMOUNT,
        0.85,
    ),
    ClauseRule(
        "payment_terms",
        re.compile(
            r"(?:splatn\w*|uhra\w*|zaplat\w*)\s+(?:nejpozději\s+|nejpozdeji\s+)?(?:do|ke\s+dni)\s+"
            r"(\d{1,2}\.\s?\d{1,2}\.\s?\d{4})",
            re.IGNORECASE,
        ),
        ValueType.DATE,
        0.8,
    ),
    ClauseRule(
        "property_description",
        re.compile(
            r"(?:pozem\w*|parcel\w*|nemovitost\w*)\s+(?:parc\.\s*č\.|p\.\s*č\.|parcelní\s+číslo)\s*"
            r"(\d+(?:/\d+)?)",
            re.IGNORECASE,
        ),
        ValueType.TEXT,
        0.7,
    ),
    ClauseRule(
        "contracting_parties",
        re.compile(
            r"(?i:prodávající|kupující|pronajímatel|nájemce|dlužník|věřitel)\s*:\s*(" + _NAME + ")"
        ),
        ValueType.NAME,
        0.75,
    ),
    ClauseRule(
        "birth_number",
        re.compile(
            r"(?:rodné\s+číslo|rodne\s+cislo|r\.\s?č\.|RČ)\s*:?\s*(\d{6}\s?/\s?\d{3,4})(?![\d/])",
            re.IGNORECASE,
        ),
        ValueType.BIRTH_NUMBER,
        0.95,
    ),
)


def _dedup_key(match: SearchMatch) -> tuple[str, str]:
    return match.category or "", re.sub(r"\s+", "", match.text).lower()


def resolve_span_conflicts(matches: list[SearchMatch]) -> list[SearchMatch]:
    """Keep one match per identical span: the highest confidence, first seen on ties."""
    best: dict[tuple[int, int], SearchMatch] = {}
    for match in matches:
        key = (match.start, match.end)
        current = best.get(key)
        if current is None or match.confidence > current.confidence:
            best[key] = match
    return list(best.values())


def deduplicate_values(matches: list[SearchMatch]) -> list[SearchMatch]:
    """Keep the highest-confidence instance of each value within a category.

    Values compare case- and whitespace-insensitively; on equal confidence
    the earliest instance is kept.
    """
    best: dict[tuple[str, str], SearchMatch] = {}
    for match in sorted(matches, key=lambda m: (m.start, m.end)):
        key = _dedup_key(match)
        current = best.get(key)
        if current is None or match.confidence > current.confidence:
            best[key] = match
    return sorted(best.values(), key=lambda m: (m.start, m.end))


def extract_clauses(
    text: Optional[str],
    rules: Iterable[ClauseRule] = CLAUSE_RULES,
    context_length: int = 50,
) -> list[SearchMatch]:
    """Find values introduced by clause labels.

    Args:
        text: Original document text.
        rules: Clause rules to apply.
        context_length: Characters of context on each side.

    Returns:
        Matches spanning the captured values, in document order.

    Example:
        >>> [m.text for m in extract_clauses("Kupní cena činí 7 850 000 Kč.")]
        ['7 850 000 Kč']
    """
    if not text or not isinstance(text, str):
        return []

    matches = []
    for rule in rules:
        for hit in rule.pattern.finditer(text):
            start, end = hit.span(1)
            if start < 0 or start >= end:
                continue
            value = text[start:end]
            if rule.value_type not in FREE_FORM_TYPES and not validate_value(value, rule.value_type):
                VALIDATION_REJECTIONS.labels(source="clause", reason="type_mismatch").inc()
                continue
            matches.append(
                SearchMatch(
                    start=start,
                    end=end,
                    text=value,
                    score=1.0,
                    confidence=rule.confidence,
                    type=rule.value_type,
                    algorithm=MatchAlgorithm.CLAUSE,
                    context=extract_context(text, start, end, context_length),
                    entity=rule.entity,
                    category=CLAUSE_CATEGORY,
                    value=normalize_value(value, rule.value_type),
                )
            )

    matches.sort(key=lambda m: (m.start, m.end))
    return matches


class EntityExtractor:
    """Typed value extraction over a recognizer registry.

    Example:
        >>> extractor = EntityExtractor()
        >>> [(m.text, m.type.value) for m in extractor.extract_entities("RČ 940115/1234")]
        [('940115/1234', 'birthNumber')]
    """

    def __init__(
        self,
        recognizers: Optional[list[ValueTypeRecognizer]] = None,
        logger: Optional[Logger] = None,
        clause_rules: Iterable[ClauseRule] = CLAUSE_RULES,
    ) -> None:
        self.recognizers = recognizers if recognizers is not None else create_default_recognizers()
        self.clause_rules = tuple(clause_rules)
        self._logger = logger if logger is not None else get_logger(__name__)

    @property
    def supported_entities(self) -> list[str]:
        return [r.entity for r in self.recognizers]

    def _select(
        self,
        entities: Optional[Iterable[str]],
        value_types: Optional[Iterable[ValueType]],
    ) -> list[ValueTypeRecognizer]:
        selected = self.recognizers
        if entities is not None:
            wanted = set(entities)
            selected = [r for r in selected if r.entity in wanted]
        if value_types is not None:
            wanted_types = set(value_types)
            selected = [r for r in selected if r.value_type in wanted_types]
        return selected

    def extract_entities(
        self,
        text: Optional[str],
        entities: Optional[Iterable[str]] = None,
        value_types: Optional[Iterable[ValueType]] = None,
        context_length: Optional[int] = None,
    ) -> list[SearchMatch]:
        """Extract validated typed values.

        Args:
            text: Original document text.
            entities: Restrict to recognizers of these entity names.
            value_types: Restrict to recognizers of these value types.
            context_length: Context characters (defaults to each recognizer's window).

        Returns:
            Deduplicated matches in document order.
        """
        if not text or not isinstance(text, str):
            return []

        candidates: list[SearchMatch] = []
        for recognizer in self._select(entities, value_types):
            window = recognizer.context_window if context_length is None else context_length
            for hit in recognizer.analyze(text, entities=[recognizer.entity], nlp_artifacts=None):
                if hit.score <= 0 or hit.start >= hit.end:
                    continue
                value = text[hit.start:hit.end]
                candidates.append(
                    SearchMatch(
                        start=hit.start,
                        end=hit.end,
                        text=value,
                        score=1.0,
                        confidence=recognizer.confidence,
                        type=recognizer.value_type,
                        algorithm=MatchAlgorithm.PATTERN,
                        context=extract_context(text, hit.start, hit.end, window),
                        entity=recognizer.entity,
                        category=recognizer.category,
                        value=normalize_value(value, recognizer.value_type),
                    )
                )

        matches = deduplicate_values(resolve_span_conflicts(candidates))
        for match in matches:
            ENTITIES_EXTRACTED.labels(value_type=match.type.value).inc()

        self._logger.debug(
            "Entities extracted",
            extra={
                "event": "entities_extracted",
                "candidate_count": len(candidates),
                "entity_count": len(matches),
            },
        )
        return matches

    def extract_clauses(
        self,
        text: Optional[str],
        entities: Optional[Iterable[str]] = None,
        value_types: Optional[Iterable[ValueType]] = None,
        context_length: int = 50,
    ) -> list[SearchMatch]:
        """Clause matches, optionally restricted like extract_entities()."""
        rules = self.clause_rules
        if entities is not None:
            wanted = set(entities)
            rules = tuple(r for r in rules if r.entity in wanted)
        if value_types is not None:
            wanted_types = set(value_types)
            rules = tuple(r for r in rules if r.value_type in wanted_types)
        return extract_clauses(text, rules, context_length)


def extract_entities(
    text: Optional[str],
    entities: Optional[Iterable[str]] = None,
    value_types: Optional[Iterable[ValueType]] = None,
) -> list[SearchMatch]:
    """Extract typed values with the default recognizers.

    Example:
        >>> [m.text for m in extract_entities("Kupní cena 7 850 000 Kč")]
        ['7 850 000 Kč']
    """
    return EntityExtractor().extract_entities(text, entities, value_types)

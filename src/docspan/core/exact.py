"""Exact substring search in normalized coordinates."""

import re
from typing import Callable, Iterator, Optional

from docspan.core.normalizer import map_range_to_original
from docspan.core.types import MatchAlgorithm, NormalizedDocument, SearchMatch, ValueType
from docspan.core.value_types import FREE_FORM_TYPES, normalize_value, validate_value
from docspan.metrics.collectors import MATCHES_FOUND, VALIDATION_REJECTIONS
from docspan.utils.text import extract_context, fold_text

DEFAULT_CONTEXT_LENGTH = 50

RejectCallback = Callable[[int, int, str], None]


def canonicalize_query(query: Optional[str], value_type: Optional[ValueType] = None) -> str:
    """Bring a query into the normalized document's form.

    Type-specific canonicalization runs first (a birth number becomes
    NNNNNN/NNN(N)), then diacritics and case are folded and whitespace runs
    collapse to single spaces.

    Examples:
        >>> canonicalize_query("Novák")
        'novak'
        >>> canonicalize_query("940115 / 1234", ValueType.BIRTH_NUMBER)
        '940115/1234'
    """
    if not query or not isinstance(query, str):
        return ""
    if value_type is not None and value_type not in FREE_FORM_TYPES:
        query = normalize_value(query, value_type)
    return fold_text(query)


def query_forms(query: Optional[str], value_type: Optional[ValueType] = None) -> list[str]:
    """Folded forms of a query in the order find_exact tries them.

    The query as written comes first; a typed query adds its canonical
    form when that differs.

    Examples:
        >>> query_forms("940115 / 1234", ValueType.BIRTH_NUMBER)
        ['940115 / 1234', '940115/1234']
        >>> query_forms("Novák")
        ['novak']
    """
    if not query or not isinstance(query, str):
        return []
    forms = []
    folded = fold_text(query)
    if folded:
        forms.append(folded)
    canonical = canonicalize_query(query, value_type)
    if canonical and canonical not in forms:
        forms.append(canonical)
    return forms


def _occurrences(haystack: str, form: str) -> Iterator[tuple[int, int]]:
    position = haystack.find(form)
    while position != -1:
        yield position, position + len(form)
        position = haystack.find(form, position + 1)


def _spaced_occurrences(haystack: str, form: str) -> Iterator[tuple[int, int]]:
    """Occurrences of a space-free form with an optional space between any two characters."""
    pattern = re.compile(" ?".join(re.escape(char) for char in form))
    match = pattern.search(haystack)
    while match is not None:
        yield match.start(), match.end()
        match = pattern.search(haystack, match.start() + 1)


def find_exact(
    normalized_query: Optional[str],
    doc: NormalizedDocument,
    original_text: str,
    value_type: Optional[ValueType] = None,
    context_length: int = DEFAULT_CONTEXT_LENGTH,
    on_reject: Optional[RejectCallback] = None,
) -> list[SearchMatch]:
    """Find every occurrence of a query in a normalized document.

    The folded query is searched as written; a typed query falls back to
    its canonical form and then to the canonical form with optional spaces
    between characters, so "940115/1234" finds "940115 / 1234" and the
    reverse. The scan advances by one character after each hit, so
    overlapping occurrences of short queries are all reported. Each hit is
    mapped back to the original text; with a value type, the original
    slice must pass the type's validator or the hit is dropped.

    Args:
        normalized_query: Query text; folded and canonicalized here.
        doc: Normalized form of original_text.
        original_text: The document as supplied by the caller.
        value_type: Optional type used to canonicalize and validate.
        context_length: Characters of original context on each side.
        on_reject: Called with (start, end, text) for every hit that fails validation.

    Returns:
        Matches in document order with score and confidence 1.0.
    """
    haystack = doc.normalized
    if not haystack or not original_text:
        return []

    spans: list[tuple[int, int]] = []
    for form in query_forms(normalized_query, value_type):
        if len(form) <= len(haystack):
            spans = list(_occurrences(haystack, form))
        if spans:
            break

    typed = value_type is not None and value_type not in FREE_FORM_TYPES
    if not spans and typed:
        canonical = canonicalize_query(normalized_query, value_type)
        if canonical and " " not in canonical:
            spans = list(_spaced_occurrences(haystack, canonical))

    matches: list[SearchMatch] = []
    for position, position_end in spans:
        start, end = map_range_to_original(doc, position, position_end, original_text)
        text = original_text[start:end]
        if start >= end:
            continue

        if value_type is not None and not validate_value(text, value_type):
            VALIDATION_REJECTIONS.labels(source="exact", reason="type_mismatch").inc()
            if on_reject is not None:
                on_reject(start, end, text)
            continue

        matches.append(
            SearchMatch(
                start=start,
                end=end,
                text=text,
                score=1.0,
                confidence=1.0,
                type=value_type,
                algorithm=MatchAlgorithm.EXACT,
                context=extract_context(original_text, start, end, context_length),
                value=normalize_value(text, value_type) if value_type else None,
            )
        )

    if matches:
        MATCHES_FOUND.labels(algorithm=MatchAlgorithm.EXACT.value).inc(len(matches))
    return matches

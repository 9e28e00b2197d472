"""Reversible document normalization.

A document is normalized in two passes that both carry, for every
surviving character, its offset in the original text:

1. Markdown stripping: delimiters of bold, italic, strikethrough, inline
   code, headers, list markers and links are removed, their content kept.
2. Folding: NFD decomposition, combining marks and format characters
   dropped, lowercasing, optional whitespace-run collapsing.

The composed offsets become NormalizedDocument.index_map. Each pass is a
single sweep over its input, so normalization stays linear in document
length.

Example:
    >>> doc = normalize("**Jan Novák**")
    >>> doc.normalized
    'jan novak'
    >>> doc.index_map[:3]
    [2, 3, 4]
"""

import re
import time
import unicodedata
from logging import Logger
from typing import Iterable, Iterator, Optional

from docspan.cache.match_cache import Cache, document_cache_key
from docspan.core.types import NormalizedDocument
from docspan.logging.setup import get_logger
from docspan.metrics.collectors import CACHE_HITS, CACHE_MISSES, NORMALIZE_LATENCY

# (pattern, group kept, or 0 to drop the whole match). Line-level markup
# runs first so that a "* item" list marker is not read as italics.
# Inline patterns never cross a line break.
MARKDOWN_PATTERNS: list[tuple[re.Pattern, int]] = [
    (re.compile(r"^#{1,6}[ \t]+", re.MULTILINE), 0),
    (re.compile(r"^[ \t]*[-*+][ \t]+", re.MULTILINE), 0),
    (re.compile(r"^[ \t]*\d+\.[ \t]+(?!\d)", re.MULTILINE), 0),
    (re.compile(r"\[([^\]\n]+)\]\([^)\n]*\)"), 1),
    (re.compile(r"\*\*([^*\n]+)\*\*"), 1),
    (re.compile(r"__([^_\n]+)__"), 1),
    (re.compile(r"\*([^*\n]+)\*"), 1),
    (re.compile(r"(?<!\w)_([^_\n]+)_(?!\w)"), 1),
    (re.compile(r"~~([^~\n]+)~~"), 1),
    (re.compile(r"`([^`\n]+)`"), 1),
]

DEFAULT_CHUNK_SIZE = 5000


def _apply_pattern(
    text: str,
    offsets: list[int],
    pattern: re.Pattern,
    keep_group: int,
) -> tuple[str, list[int]]:
    pieces: list[str] = []
    kept_offsets: list[int] = []
    position = 0

    for match in pattern.finditer(text):
        start, end = match.span()
        pieces.append(text[position:start])
        kept_offsets.extend(offsets[position:start])
        if keep_group:
            group_start, group_end = match.span(keep_group)
            pieces.append(text[group_start:group_end])
            kept_offsets.extend(offsets[group_start:group_end])
        position = end

    if position == 0 and not pieces:
        return text, offsets

    pieces.append(text[position:])
    kept_offsets.extend(offsets[position:])
    return "".join(pieces), kept_offsets


def strip_markdown(text: str, base_offset: int = 0) -> tuple[str, list[int]]:
    """Remove markdown syntax, keeping the original offset of every surviving character.

    Args:
        text: Markdown text.
        base_offset: Added to every offset (used for chunked processing).

    Returns:
        Tuple of (stripped text, offsets) with len(offsets) == len(stripped).

    Example:
        >>> strip_markdown("# Title")
        ('Title', [2, 3, 4, 5, 6])
    """
    if not text:
        return "", []

    stripped = text
    offsets = list(range(base_offset, base_offset + len(text)))
    for pattern, keep_group in MARKDOWN_PATTERNS:
        stripped, offsets = _apply_pattern(stripped, offsets, pattern, keep_group)
    return stripped, offsets


def _fold_character(char: str) -> str:
    if char < "\x80":
        return char.lower()
    if unicodedata.category(char) == "Cf":
        return ""
    folded = []
    for decomposed in unicodedata.normalize("NFD", char):
        if unicodedata.combining(decomposed):
            continue
        for lowered in decomposed.lower():
            if not unicodedata.combining(lowered):
                folded.append(lowered)
    return "".join(folded)


def fold_diacritics(
    text: str,
    offsets: Iterable[int],
    collapse_whitespace: bool = True,
) -> tuple[str, list[int], dict[int, list[int]]]:
    """Fold diacritics and case, carrying offsets through.

    Args:
        text: Text to fold.
        offsets: Original offset of each character of text.
        collapse_whitespace: Map every whitespace run to a single space.

    Returns:
        Tuple of (folded text, index_map, reverse_map).
    """
    normalized: list[str] = []
    index_map: list[int] = []
    reverse_map: dict[int, list[int]] = {}
    in_whitespace = False

    for char, offset in zip(text, offsets):
        if collapse_whitespace and char.isspace():
            if in_whitespace:
                continue
            in_whitespace = True
            folded = " "
        else:
            folded = _fold_character(char)
            if not folded:
                continue
            in_whitespace = False

        for out_char in folded:
            reverse_map.setdefault(offset, []).append(len(normalized))
            normalized.append(out_char)
            index_map.append(offset)

    return "".join(normalized), index_map, reverse_map


def normalize(
    text: Optional[str],
    collapse_whitespace: bool = True,
    base_offset: int = 0,
    original_length: Optional[int] = None,
) -> NormalizedDocument:
    """Build the NormalizedDocument of a text.

    Never raises; a missing or non-string input yields an empty document.

    Args:
        text: Original document text.
        collapse_whitespace: Collapse whitespace runs to a single space.
        base_offset: Offset of text within a larger document.
        original_length: Length of the larger document (defaults to len(text)).

    Returns:
        The normalized document.
    """
    if not text or not isinstance(text, str):
        return NormalizedDocument(original_length=original_length or 0)

    stripped, offsets = strip_markdown(text, base_offset)
    normalized, index_map, reverse_map = fold_diacritics(
        stripped, offsets, collapse_whitespace
    )
    return NormalizedDocument(
        normalized=normalized,
        index_map=index_map,
        reverse_map=reverse_map,
        original_length=original_length if original_length is not None else len(text),
    )


def iter_normalize_chunks(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    collapse_whitespace: bool = True,
) -> Iterator[NormalizedDocument]:
    """Normalize a document piecewise, one line-aligned chunk at a time.

    Chunks end right after a line break, so no markdown construct spans a
    boundary. Each yielded part carries absolute offsets; pass all parts to
    concat_documents() to obtain the single-pass result. Callers can yield
    to their scheduler between chunks.
    """
    if not text:
        return

    total = len(text)
    position = 0
    while position < total:
        boundary = text.find("\n", position + max(1, chunk_size))
        end = total if boundary == -1 else boundary + 1
        yield normalize(
            text[position:end],
            collapse_whitespace=collapse_whitespace,
            base_offset=position,
            original_length=total,
        )
        position = end


def concat_documents(
    parts: Iterable[NormalizedDocument],
    collapse_whitespace: bool = True,
) -> NormalizedDocument:
    """Join consecutive chunk documents produced by iter_normalize_chunks."""
    pieces: list[str] = []
    index_map: list[int] = []
    reverse_map: dict[int, list[int]] = {}
    original_length = 0
    last_char = ""

    for part in parts:
        original_length = max(original_length, part.original_length)
        skip = 0
        if collapse_whitespace and last_char == " " and part.normalized.startswith(" "):
            skip = 1
        base = len(index_map)
        for i in range(skip, len(part.normalized)):
            offset = part.index_map[i]
            reverse_map.setdefault(offset, []).append(base + i - skip)
            index_map.append(offset)
        pieces.append(part.normalized[skip:])
        if len(part.normalized) > skip:
            last_char = part.normalized[-1]

    return NormalizedDocument(
        normalized="".join(pieces),
        index_map=index_map,
        reverse_map=reverse_map,
        original_length=original_length,
    )


def map_range_to_original(
    doc: NormalizedDocument,
    start: int,
    end: int,
    original_text: Optional[str] = None,
) -> tuple[int, int]:
    """Convert a normalized [start, end) span to original coordinates.

    Out-of-range offsets are clamped. When original_text is given, the end
    is extended over combining marks that follow the last mapped
    character, so a decomposed accent is not cut off.
    """
    size = len(doc.index_map)
    if size == 0:
        return 0, 0

    start = min(max(start, 0), size - 1)
    end = min(max(end, start + 1), size)

    original_start = doc.index_map[start]
    original_end = doc.index_map[end - 1] + 1

    if original_text is not None:
        limit = len(original_text)
        while original_end < limit and unicodedata.combining(original_text[original_end]):
            original_end += 1
        original_end = min(original_end, limit)
        original_start = min(original_start, original_end)

    return original_start, original_end


def map_offset_to_normalized(doc: NormalizedDocument, offset: int) -> Optional[int]:
    """First normalized offset at or after an original offset, or None past the end."""
    if not doc.index_map:
        return None
    offset = max(offset, 0)
    for candidate in range(offset, doc.original_length):
        positions = doc.reverse_map.get(candidate)
        if positions:
            return positions[0]
    return None


class Normalizer:
    """Normalization service with an optional injected cache.

    Example:
        >>> normalizer = Normalizer(cache=MatchCache())
        >>> doc = normalizer.normalize("Kupní cena")
        >>> doc.normalized
        'kupni cena'
    """

    def __init__(
        self,
        cache: Optional[Cache] = None,
        logger: Optional[Logger] = None,
        collapse_whitespace: bool = True,
        cache_ttl: Optional[int] = None,
    ) -> None:
        self._cache = cache
        self._logger = logger if logger is not None else get_logger(__name__)
        self.collapse_whitespace = collapse_whitespace
        self.cache_ttl = cache_ttl

    def normalize(self, text: Optional[str]) -> NormalizedDocument:
        """Normalize a document, reusing a cached result for identical text."""
        if not text or not isinstance(text, str):
            return NormalizedDocument()

        key = None
        if self._cache is not None:
            key = document_cache_key(text, collapse_whitespace=self.collapse_whitespace)
            try:
                cached = self._cache.get(key)
            except Exception as e:
                self._log_cache_failure("get", e)
                cached = None
            if cached is not None:
                CACHE_HITS.labels(kind="document").inc()
                return cached
            CACHE_MISSES.labels(kind="document").inc()

        start_time = time.perf_counter()
        doc = normalize(text, collapse_whitespace=self.collapse_whitespace)
        duration = time.perf_counter() - start_time
        NORMALIZE_LATENCY.observe(duration)

        self._logger.debug(
            "Document normalized",
            extra={
                "event": "document_normalized",
                "original_length": len(text),
                "normalized_length": len(doc.normalized),
                "duration_ms": round(duration * 1000, 3),
            },
        )

        if self._cache is not None and key is not None:
            try:
                self._cache.set(key, doc, self.cache_ttl)
            except Exception as e:
                self._log_cache_failure("set", e)
        return doc

    def _log_cache_failure(self, operation: str, error: Exception) -> None:
        self._logger.warning(
            "Document cache unavailable",
            extra={
                "event": "cache_failed",
                "operation": operation,
                "error": f"{type(error).__name__}: {error}",
            },
        )

    def normalize_chunked(
        self,
        text: Optional[str],
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> Iterator[NormalizedDocument]:
        """Yield chunk documents; see iter_normalize_chunks()."""
        if not text or not isinstance(text, str):
            return iter(())
        return iter_normalize_chunks(text, chunk_size, self.collapse_whitespace)

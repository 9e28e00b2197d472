"""Text processing utility functions."""

import html
import re
import unicodedata

_WHITESPACE_RUN = re.compile(r"\s+")
_SENTENCE_END = re.compile(r"[.!?]+(?:\s|$)")


def remove_diacritics(text: str) -> str:
    """Strip combining marks after canonical decomposition.

    Args:
        text: Input text.

    Returns:
        Text without diacritics. Case is preserved.

    Examples:
        >>> remove_diacritics("Příliš žluťoučký kůň")
        'Prilis zlutoucky kun'
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def fold_text(text: str) -> str:
    """Diacritic-insensitive, case-insensitive, whitespace-collapsed form.

    Examples:
        >>> fold_text("  Rodné   ČÍSLO ")
        'rodne cislo'
    """
    if not text:
        return ""
    return collapse_whitespace(remove_diacritics(text).lower())


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs (including non-breaking spaces) to one space and strip.

    Examples:
        >>> collapse_whitespace("7\\u00a0850   000 Kč ")
        '7 850 000 Kč'
    """
    if not text:
        return ""
    return _WHITESPACE_RUN.sub(" ", text).strip()


def compact(text: str) -> str:
    """Remove all whitespace.

    Examples:
        >>> compact("940115 / 1234")
        '940115/1234'
    """
    if not text:
        return ""
    return _WHITESPACE_RUN.sub("", text)


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate text to a maximum length, adding suffix if truncated.

    Args:
        text: Input text to truncate.
        max_length: Maximum length of the output text including suffix.
        suffix: Suffix to add if text is truncated (default: "...").

    Returns:
        Truncated text with suffix if needed, or original text if short enough.

    Raises:
        ValueError: If max_length is less than suffix length.
    """
    if not text:
        return ""

    if max_length < len(suffix):
        raise ValueError(f"max_length ({max_length}) must be >= suffix length ({len(suffix)})")

    if len(text) <= max_length:
        return text

    return text[: max_length - len(suffix)] + suffix


def extract_context(text: str, start: int, end: int, padding: int) -> str:
    """Return text[start:end] padded by up to `padding` characters each side.

    Bounds are clamped to the text, so a context never raises.
    """
    if not text:
        return ""
    if padding <= 0:
        return text[max(0, start):max(0, end)]
    context_start = max(0, start - padding)
    context_end = min(len(text), end + padding)
    return text[context_start:context_end]


def count_sentences(text: str) -> int:
    """Count sentence terminators; a non-empty text has at least one sentence."""
    if not text or not text.strip():
        return 0
    return max(1, len(_SENTENCE_END.findall(text)))


def escape_html(text: str) -> str:
    """Escape &, <, > and both quote characters.

    Examples:
        >>> escape_html('<b>"A & B"</b>')
        '&lt;b&gt;&quot;A &amp; B&quot;&lt;/b&gt;'
    """
    if not text:
        return ""
    return html.escape(text, quote=True)


def unescape_html(text: str) -> str:
    """Invert escape_html."""
    if not text:
        return ""
    return html.unescape(text)


def sanitize_for_logging(text: str, max_length: int = 100) -> str:
    """Sanitize text for safe logging (truncate and mask identifier-like values).

    Args:
        text: Input text to sanitize.
        max_length: Maximum length after sanitization.

    Returns:
        Sanitized text safe for logging.

    Examples:
        >>> sanitize_for_logging("RČ 940115/1234")
        'RČ [BIRTH_NUMBER]'
    """
    if not text:
        return ""

    result = truncate_text(text, max_length, suffix="...")

    result = re.sub(r"\b\d{6}\s?/\s?\d{3,4}\b", "[BIRTH_NUMBER]", result)
    result = re.sub(r"\b[A-Z]{2}\d{2}(?:\s?[A-Z0-9]{4}){3,7}\b", "[IBAN]", result)
    result = re.sub(r"(?:\+420\s?)?\b\d{3}\s?\d{3}\s?\d{3}\b", "[PHONE]", result)

    return result

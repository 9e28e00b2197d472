"""
Date Recognizer

Czech dotted dates (15. 1. 1994), slashed dates (15/1/1994) and ISO dates,
each checked against the calendar.
"""

from presidio_analyzer import Pattern

from docspan.core.types import ValueType
from docspan.recognizers.base import PATTERN_SCORE, ValueTypeRecognizer


class CzechDateRecognizer(ValueTypeRecognizer):
    """Recognizer for dates; 31. 2. 2024 matches the pattern but fails validation."""

    ENTITY = "DATE"
    VALUE_TYPE = ValueType.DATE
    CATEGORY = "dates"
    CONFIDENCE = 0.9

    PATTERNS = [
        Pattern(
            name="cz_date_dotted",
            regex=r"(?<![\d.])\d{1,2}\.[ \t]?\d{1,2}\.[ \t]?\d{4}(?!\d)",
            score=PATTERN_SCORE,
        ),
        Pattern(
            name="date_slashed",
            regex=r"(?<![\d/])\d{1,2}[/-]\d{1,2}[/-]\d{4}(?!\d)",
            score=PATTERN_SCORE,
        ),
        Pattern(
            name="date_iso",
            regex=r"(?<!\d)\d{4}-\d{2}-\d{2}(?!\d)",
            score=PATTERN_SCORE,
        ),
    ]

    CONTEXT = ["datum", "dne", "ze dne", "nar.", "narozen", "splatnost", "lhůta", "termín"]

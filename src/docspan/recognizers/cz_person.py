"""
Contracting Party Name Recognizer

Personal names written as two to four capitalized Czech words.
"""

from presidio_analyzer import Pattern

from docspan.core.types import ValueType
from docspan.recognizers.base import CASE_SENSITIVE_FLAGS, PATTERN_SCORE, ValueTypeRecognizer

_UPPER = "A-ZÁČĎÉĚÍŇÓŘŠŤÚŮÝŽ"
_LOWER = "a-záčďéěíňóřšťúůýž"


class CzechPartyRecognizer(ValueTypeRecognizer):
    """Recognizer for names of contracting parties.

    Case matters here, so the recognizer runs without IGNORECASE.
    """

    ENTITY = "PERSON"
    VALUE_TYPE = ValueType.NAME
    CATEGORY = "parties"
    CONFIDENCE = 0.7
    REGEX_FLAGS = CASE_SENSITIVE_FLAGS

    PATTERNS = [
        Pattern(
            name="cz_full_name",
            regex=rf"\b[{_UPPER}][{_LOWER}]+(?:[ \t]+[{_UPPER}][{_LOWER}]+){{1,3}}\b",
            score=PATTERN_SCORE,
        ),
    ]

    CONTEXT = [
        "prodávající",
        "kupující",
        "pronajímatel",
        "nájemce",
        "zastoupen",
        "pan",
        "paní",
    ]

"""
Czech Birth Number (rodné číslo) Recognizer

Recognizes NNNNNN/NNN(N) birth numbers whose first six digits encode a
real date of birth.
"""

from presidio_analyzer import Pattern

from docspan.core.types import ValueType
from docspan.recognizers.base import PATTERN_SCORE, ValueTypeRecognizer


class CzechBirthNumberRecognizer(ValueTypeRecognizer):
    """Recognizer for Czech and Slovak birth numbers.

    Supports:
    - 10-digit numbers (born 1954 and later): 940115/1234
    - 9-digit numbers (born before 1954): 520115/123
    - Optional spaces around the slash

    The slash is required; a bare 9-10 digit run is far more often an
    account or order number.
    """

    ENTITY = "CZ_BIRTH_NUMBER"
    VALUE_TYPE = ValueType.BIRTH_NUMBER
    CATEGORY = "identifiers"
    CONFIDENCE = 0.95
    CONTEXT_WINDOW = 40

    PATTERNS = [
        Pattern(
            name="cz_birth_number",
            regex=r"(?<![\d/])\d{6}[ \t]?/[ \t]?\d{3,4}(?![\d/])",
            score=PATTERN_SCORE,
        ),
    ]

    CONTEXT = [
        "rodné číslo",
        "rodne cislo",
        "rč",
        "r.č.",
        "nar.",
        "narozen",
        "narozena",
    ]

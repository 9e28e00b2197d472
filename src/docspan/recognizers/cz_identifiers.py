"""
Czech Business Identifier Recognizers

IČO (company identification number) with its weighted mod-11 check digit,
and DIČ (VAT identifier).
"""

from presidio_analyzer import Pattern

from docspan.core.types import ValueType
from docspan.recognizers.base import CASE_SENSITIVE_FLAGS, PATTERN_SCORE, ValueTypeRecognizer
from docspan.utils.validators import validate_company_id, validate_vat_id


class CzechCompanyIdRecognizer(ValueTypeRecognizer):
    """Recognizer for IČO numbers.

    An eight-digit run is too common to accept on its own, so the number
    must directly follow an "IČ" or "IČO" label. Each label variant is a
    separate fixed-width lookbehind.
    """

    ENTITY = "CZ_COMPANY_ID"
    VALUE_TYPE = ValueType.TEXT
    CATEGORY = "identifiers"
    CONFIDENCE = 0.9

    PATTERNS = [
        Pattern(
            name="cz_company_id_labeled",
            regex=(
                r"(?:(?<=IČO:\s)|(?<=IČO\s)|(?<=IČO:)|(?<=IČ:\s)|(?<=IČ\s)|(?<=IČ:))"
                r"\d{8}(?!\d)"
            ),
            score=PATTERN_SCORE,
        ),
    ]

    CONTEXT = ["ičo", "ič", "identifikační číslo", "společnost", "s.r.o.", "a.s."]

    def __init__(self, **kwargs) -> None:
        kwargs.setdefault("validator", validate_company_id)
        super().__init__(**kwargs)


class CzechVatIdRecognizer(ValueTypeRecognizer):
    """Recognizer for Czech VAT identifiers (DIČ): CZ followed by 8-10 digits."""

    ENTITY = "CZ_VAT_ID"
    VALUE_TYPE = ValueType.TEXT
    CATEGORY = "identifiers"
    CONFIDENCE = 0.9
    REGEX_FLAGS = CASE_SENSITIVE_FLAGS

    PATTERNS = [
        Pattern(
            name="cz_vat_id",
            regex=r"\bCZ\d{8,10}\b",
            score=PATTERN_SCORE,
        ),
    ]

    CONTEXT = ["dič", "daňové identifikační číslo", "plátce dph"]

    def __init__(self, **kwargs) -> None:
        kwargs.setdefault("validator", validate_vat_id)
        super().__init__(**kwargs)

"""
Contact Recognizers

Czech phone numbers and postal addresses.
"""

from presidio_analyzer import Pattern

from docspan.core.types import ValueType
from docspan.recognizers.base import CASE_SENSITIVE_FLAGS, PATTERN_SCORE, ValueTypeRecognizer

_UPPER = "A-ZÁČĎÉĚÍŇÓŘŠŤÚŮÝŽ"
_LOWER = "a-záčďéěíňóřšťúůýž"


class CzechPhoneRecognizer(ValueTypeRecognizer):
    """Recognizer for Czech phone numbers.

    Supports:
    - 9 digits, optionally grouped 3-3-3
    - +420 prefix with or without a space
    """

    ENTITY = "PHONE_NUMBER"
    VALUE_TYPE = ValueType.PHONE
    CATEGORY = "contacts"
    CONFIDENCE = 0.8

    PATTERNS = [
        Pattern(
            name="cz_phone",
            regex=r"(?<![\d+])(?:\+420[ ]?)?\d{3}[ ]?\d{3}[ ]?\d{3}(?![\d/])",
            score=PATTERN_SCORE,
        ),
    ]

    CONTEXT = ["telefon", "tel.", "mobil", "kontakt"]


class CzechAddressRecognizer(ValueTypeRecognizer):
    """Recognizer for postal addresses: street, house number, ZIP code and town.

    Example match: "Vinohradská 12/345, 120 00 Praha 2". Loosely patterned,
    hence the low prior confidence.
    """

    ENTITY = "ADDRESS"
    VALUE_TYPE = ValueType.ADDRESS
    CATEGORY = "addresses"
    CONFIDENCE = 0.6
    REGEX_FLAGS = CASE_SENSITIVE_FLAGS

    PATTERNS = [
        Pattern(
            name="cz_address",
            regex=(
                rf"\b[{_UPPER}][{_LOWER}]+(?:[ \t]+[{_UPPER}{_LOWER}]+)*"
                rf"[ \t]+\d+(?:/\d+)?[a-zA-Z]?,[ \t]*\d{{3}}[ \t]?\d{{2}}"
                rf"[ \t]+[{_UPPER}][{_LOWER}]+(?:[ \t]+(?:\d{{1,2}}|[{_UPPER}][{_LOWER}]+))?"
            ),
            score=PATTERN_SCORE,
        ),
    ]

    CONTEXT = ["bytem", "bydliště", "trvalé bydliště", "sídlo", "adresa", "se sídlem"]

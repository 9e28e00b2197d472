"""
Monetary Amount and RPSN Recognizers

Amounts in Czech notation (spaces or dots as thousands separators, comma
decimals, optional ",-") followed by a currency, and percentage rates.
"""

from presidio_analyzer import Pattern

from docspan.core.types import ValueType
from docspan.recognizers.base import PATTERN_SCORE, ValueTypeRecognizer

CURRENCY = r"(?:Kč|CZK|korun(?:y)?|EUR|€|USD|\$)"


class AmountRecognizer(ValueTypeRecognizer):
    """Recognizer for amounts such as "7 850 000 Kč" or "1.500,50 EUR".

    The ungrouped pattern also hits the tail of grouped amounts
    ("000 Kč"); presidio drops a hit contained in another of the same entity.
    """

    ENTITY = "AMOUNT"
    VALUE_TYPE = ValueType.AMOUNT
    CATEGORY = "amounts"
    CONFIDENCE = 0.8

    PATTERNS = [
        Pattern(
            name="amount_grouped",
            regex=(
                r"(?<![\d.,])\d{1,3}(?:[ \u00a0.,]\d{3})+(?:[.,]\d{1,2})?(?:,-)?"
                r"[ \u00a0]?" + CURRENCY + r"(?!\w)"
            ),
            score=PATTERN_SCORE,
        ),
        Pattern(
            name="amount_plain",
            regex=(
                r"(?<![\d.,])\d+(?:[.,]\d{1,2})?(?:,-)?[ \u00a0]?" + CURRENCY + r"(?!\w)"
            ),
            score=PATTERN_SCORE,
        ),
    ]

    CONTEXT = [
        "cena",
        "kupní cena",
        "částka",
        "celkem",
        "splátka",
        "záloha",
        "nájemné",
        "úhrada",
    ]


class RpsnRecognizer(ValueTypeRecognizer):
    """Recognizer for percentage rates (RPSN, interest) such as "12,5 %"."""

    ENTITY = "RPSN"
    VALUE_TYPE = ValueType.RPSN
    CATEGORY = "amounts"
    CONFIDENCE = 0.85

    PATTERNS = [
        Pattern(
            name="percentage",
            regex=r"(?<![\d.,])\d{1,3}(?:[.,]\d{1,2})?[ \u00a0]?%",
            score=PATTERN_SCORE,
        ),
    ]

    CONTEXT = ["rpsn", "úrok", "úroková sazba", "procent", "sazba"]

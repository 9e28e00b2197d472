"""
Bank Account Recognizers

IBANs (ISO 13616, mod-97 verified) and Czech domestic account numbers in
the [prefix-]number/bank-code form.
"""

from presidio_analyzer import Pattern

from docspan.core.types import ValueType
from docspan.recognizers.base import CASE_SENSITIVE_FLAGS, PATTERN_SCORE, ValueTypeRecognizer


class IbanRecognizer(ValueTypeRecognizer):
    """Recognizer for IBANs, compact or printed in groups of four.

    Example:
        >>> recognizer = IbanRecognizer()
        >>> [r.entity_type for r in recognizer.analyze(
        ...     "IBAN: CZ65 0800 0000 1920 0014 5399", entities=["IBAN"])]
        ['IBAN']
    """

    ENTITY = "IBAN"
    VALUE_TYPE = ValueType.IBAN
    CATEGORY = "bankAccounts"
    CONFIDENCE = 0.95
    REGEX_FLAGS = CASE_SENSITIVE_FLAGS

    PATTERNS = [
        Pattern(
            name="iban_compact",
            regex=r"\b[A-Z]{2}\d{2}[A-Z0-9]{11,30}\b",
            score=PATTERN_SCORE,
        ),
        Pattern(
            name="iban_grouped",
            regex=r"\b[A-Z]{2}\d{2}(?: [A-Z0-9]{4}){2,7}(?: [A-Z0-9]{1,3})?\b",
            score=PATTERN_SCORE,
        ),
    ]

    CONTEXT = ["iban", "účet", "bankovní spojení", "číslo účtu"]


class CzechBankAccountRecognizer(ValueTypeRecognizer):
    """Recognizer for Czech domestic account numbers such as 19-2000145399/0800."""

    ENTITY = "CZ_BANK_ACCOUNT"
    VALUE_TYPE = ValueType.BANK_ACCOUNT
    CATEGORY = "bankAccounts"
    CONFIDENCE = 0.85

    PATTERNS = [
        Pattern(
            name="cz_bank_account",
            regex=r"(?<![\d/-])(?:\d{1,6}-)?\d{2,10}/\d{4}(?![\d/])",
            score=PATTERN_SCORE,
        ),
    ]

    CONTEXT = ["účet", "číslo účtu", "bankovní spojení", "kód banky", "vedený u"]

"""Registry of value types: validator, canonical form and display label.

Every matcher validates and canonicalizes through this table, so adding a
value type means adding one ValueTypeSpec here.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Union

from docspan.core.types import ValueType
from docspan.utils.text import collapse_whitespace, compact
from docspan.utils.validators import (
    canonical_birth_number,
    canonical_iban,
    canonical_phone,
    canonical_rpsn,
    validate_address,
    validate_amount,
    validate_bank_account,
    validate_birth_number,
    validate_date,
    validate_iban,
    validate_person_name,
    validate_phone,
    validate_rpsn,
    validate_text,
)


@dataclass(frozen=True)
class ValueTypeSpec:
    """Behavior attached to one ValueType.

    Attributes:
        value_type: The type described.
        validate: Predicate on a raw value.
        normalize: Canonical string form of a raw value.
        label: Czech display label.
    """

    value_type: ValueType
    validate: Callable[[str], bool]
    normalize: Callable[[str], str]
    label: str


VALUE_TYPES: dict[ValueType, ValueTypeSpec] = {
    ValueType.BIRTH_NUMBER: ValueTypeSpec(
        ValueType.BIRTH_NUMBER, validate_birth_number, canonical_birth_number, "Rodné číslo"
    ),
    ValueType.IBAN: ValueTypeSpec(ValueType.IBAN, validate_iban, canonical_iban, "IBAN"),
    ValueType.BANK_ACCOUNT: ValueTypeSpec(
        ValueType.BANK_ACCOUNT, validate_bank_account, compact, "Číslo účtu"
    ),
    ValueType.AMOUNT: ValueTypeSpec(
        ValueType.AMOUNT, validate_amount, collapse_whitespace, "Finanční částka"
    ),
    ValueType.RPSN: ValueTypeSpec(ValueType.RPSN, validate_rpsn, canonical_rpsn, "RPSN"),
    ValueType.DATE: ValueTypeSpec(ValueType.DATE, validate_date, collapse_whitespace, "Datum"),
    ValueType.PHONE: ValueTypeSpec(ValueType.PHONE, validate_phone, canonical_phone, "Telefon"),
    ValueType.NAME: ValueTypeSpec(
        ValueType.NAME, validate_person_name, collapse_whitespace, "Jméno"
    ),
    ValueType.ADDRESS: ValueTypeSpec(
        ValueType.ADDRESS, validate_address, collapse_whitespace, "Adresa"
    ),
    ValueType.TEXT: ValueTypeSpec(ValueType.TEXT, validate_text, collapse_whitespace, "Text"),
    ValueType.UNKNOWN: ValueTypeSpec(
        ValueType.UNKNOWN, validate_text, collapse_whitespace, "Hodnota"
    ),
}

# Types whose values are free-form; exact matching does not canonicalize them.
FREE_FORM_TYPES = frozenset({ValueType.TEXT, ValueType.UNKNOWN})

# Order in which detect_value_type tries the validators.
DETECTION_ORDER = (
    ValueType.BIRTH_NUMBER,
    ValueType.IBAN,
    ValueType.BANK_ACCOUNT,
    ValueType.RPSN,
    ValueType.DATE,
    ValueType.AMOUNT,
    ValueType.PHONE,
)


def coerce_value_type(value_type: Union[ValueType, str, None]) -> Optional[ValueType]:
    """Accept a ValueType or its string value.

    Raises:
        ValueError: If the string names no value type.
    """
    if value_type is None or isinstance(value_type, ValueType):
        return value_type
    return ValueType(value_type)


def validate_value(value: str, value_type: Optional[ValueType]) -> bool:
    """Validate a raw value against its type; a missing type accepts any non-blank value."""
    if value_type is None:
        return validate_text(value)
    return VALUE_TYPES[value_type].validate(value)


def normalize_value(value: str, value_type: Optional[ValueType]) -> str:
    """Canonical form of a raw value."""
    if not value:
        return ""
    if value_type is None:
        return collapse_whitespace(value)
    return VALUE_TYPES[value_type].normalize(value)


def detect_value_type(value: str) -> ValueType:
    """Guess the type of a raw value.

    Validators are tried in a fixed order; percentages are only detected
    when a percent sign is present, otherwise every short number would be
    an RPSN.

    Examples:
        >>> detect_value_type("940115/1234")
        <ValueType.BIRTH_NUMBER: 'birthNumber'>
        >>> detect_value_type("kupní cena")
        <ValueType.TEXT: 'text'>
    """
    if not value or not value.strip():
        return ValueType.UNKNOWN

    for value_type in DETECTION_ORDER:
        if value_type is ValueType.RPSN and "%" not in value:
            continue
        if VALUE_TYPES[value_type].validate(value):
            return value_type

    return ValueType.TEXT


def get_label(value_type: ValueType) -> str:
    """Czech display label of a value type."""
    return VALUE_TYPES[value_type].label

"""Validation and canonicalization functions for Czech document values."""

import datetime
import re

from docspan.utils.text import collapse_whitespace, compact


# Regex patterns for validation
_BIRTH_NUMBER_PATTERN = re.compile(r"^(\d{2})(\d{2})(\d{2})/(\d{3,4})$")
_BIRTH_NUMBER_DIGITS = re.compile(r"^\d{9,10}$")
_IBAN_PATTERN = re.compile(r"^[A-Z]{2}\d{2}[A-Z0-9]{1,30}$")
_BANK_ACCOUNT_PATTERN = re.compile(r"^(\d{0,6}-)?(\d{2,10})/\d{4}$")
_CURRENCY = r"(?:Kč|CZK|korun|EUR|€|USD|\$)"
_AMOUNT_GROUPED_PATTERN = re.compile(
    r"^\d{1,3}(?:[\s,.]\d{3})*(?:[.,]\d{1,2})?(?:,-)?\s*" + _CURRENCY + r"?$",
    re.IGNORECASE,
)
_AMOUNT_PLAIN_PATTERN = re.compile(
    r"^\d+(?:[.,]\d{1,2})?(?:,-)?\s*" + _CURRENCY + r"$",
    re.IGNORECASE,
)
_RPSN_PATTERN = re.compile(r"^\d{1,3}(?:\.\d{1,2})?%?$")
_DATE_DOTTED_PATTERN = re.compile(r"^(\d{1,2})\.\s*(\d{1,2})\.\s*(\d{4})$")
_DATE_SLASHED_PATTERN = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")
_DATE_ISO_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_NAME_PART_PATTERN = re.compile(r"^[A-ZÁČĎÉĚÍŇÓŘŠŤÚŮÝŽ][a-záčďéěíňóřšťúůýž]+$")
_ZIP_PATTERN = re.compile(r"\d{3}\s?\d{2}")
_CAPITALIZED_WORD_PATTERN = re.compile(r"[A-ZÁČĎÉĚÍŇÓŘŠŤÚŮÝŽ][a-záčďéěíňóřšťúůýž]")
_COMPANY_ID_PATTERN = re.compile(r"^\d{8}$")
_VAT_ID_PATTERN = re.compile(r"^CZ\d{8,10}$")

MIN_YEAR = 1900
MAX_YEAR = 2100


def _is_calendar_date(year: int, month: int, day: int) -> bool:
    if not MIN_YEAR <= year <= MAX_YEAR:
        return False
    try:
        datetime.date(year, month, day)
    except ValueError:
        return False
    return True


def validate_birth_number(value: str) -> bool:
    """Validate a Czech birth number (rodné číslo).

    The value must have the form NNNNNN/NNN or NNNNNN/NNNN (whitespace is
    ignored) and the first six digits must encode a real date. Women have 50
    added to the month, and numbers issued after 2004 may add another 20.
    The mod-11 checksum is not enforced: many documents in circulation carry
    numbers that predate or ignore it.

    Args:
        value: Birth number to validate.

    Returns:
        True if the birth number is plausible, False otherwise.

    Examples:
        >>> validate_birth_number("940919/1022")
        True
        >>> validate_birth_number("12345")
        False
    """
    if not value or not isinstance(value, str):
        return False

    match = _BIRTH_NUMBER_PATTERN.match(compact(value))
    if not match:
        return False

    yy, mm, dd, suffix = match.groups()
    year = int(yy)
    month = int(mm)
    day = int(dd)

    if len(suffix) == 3:
        # nine-digit numbers were issued only until 1953
        if year >= 54:
            return False
        year += 1900
    else:
        year += 1900 if year >= 54 else 2000

    if month > 70:
        month -= 70
    elif month > 50:
        month -= 50
    elif month > 20:
        month -= 20

    return _is_calendar_date(year, month, day)


def validate_iban(value: str) -> bool:
    """Validate an IBAN including its ISO 7064 mod-97 check digits.

    Examples:
        >>> validate_iban("CZ65 0800 0000 1920 0014 5399")
        True
    """
    if not value or not isinstance(value, str):
        return False

    iban = compact(value).upper()
    if not _IBAN_PATTERN.match(iban) or len(iban) < 15:
        return False

    rearranged = iban[4:] + iban[:4]
    digits = "".join(str(int(ch, 36)) for ch in rearranged)
    return int(digits) % 97 == 1


def validate_bank_account(value: str) -> bool:
    """Validate a Czech domestic account number: [prefix-]number/bank_code."""
    if not value or not isinstance(value, str):
        return False
    return bool(_BANK_ACCOUNT_PATTERN.match(compact(value)))


def validate_amount(value: str) -> bool:
    """Validate a monetary amount.

    Digit groups may be separated by spaces, dots or commas. Ungrouped
    numbers of any length need an explicit currency.

    Examples:
        >>> validate_amount("7 850 000 Kč")
        True
        >>> validate_amount("1500000 CZK")
        True
        >>> validate_amount("Kč")
        False
    """
    if not value or not isinstance(value, str):
        return False
    cleaned = collapse_whitespace(value)
    return bool(_AMOUNT_GROUPED_PATTERN.match(cleaned) or _AMOUNT_PLAIN_PATTERN.match(cleaned))


def validate_rpsn(value: str) -> bool:
    """Validate an annual percentage rate such as '12,5 %'."""
    if not value or not isinstance(value, str):
        return False
    return bool(_RPSN_PATTERN.match(compact(value).replace(",", ".")))


def validate_date(value: str) -> bool:
    """Validate a Czech (d. m. yyyy), slashed (d/m/yyyy) or ISO date.

    Examples:
        >>> validate_date("15. 1. 1994")
        True
        >>> validate_date("31.02.2024")
        False
    """
    if not value or not isinstance(value, str):
        return False

    cleaned = value.strip()
    match = _DATE_DOTTED_PATTERN.match(cleaned) or _DATE_SLASHED_PATTERN.match(cleaned)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return _is_calendar_date(year, month, day)

    match = _DATE_ISO_PATTERN.match(cleaned)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _is_calendar_date(year, month, day)

    return False


def validate_phone(value: str) -> bool:
    """Validate a Czech phone number (9 digits, optionally prefixed by +420)."""
    if not value or not isinstance(value, str):
        return False
    if re.search(r"[^\d\s+]", value):
        return False
    digits = re.sub(r"\D", "", value)
    return len(digits) == 9 or (len(digits) == 12 and digits.startswith("420"))


def validate_person_name(value: str) -> bool:
    """Validate a personal name of two to four capitalized Czech words."""
    if not value or not isinstance(value, str):
        return False
    parts = value.split()
    return 2 <= len(parts) <= 4 and all(_NAME_PART_PATTERN.match(part) for part in parts)


def validate_address(value: str) -> bool:
    """Validate a postal address: longer than 10 chars, with a ZIP and a capitalized word."""
    if not value or not isinstance(value, str):
        return False
    cleaned = collapse_whitespace(value)
    return (
        len(cleaned) > 10
        and bool(_ZIP_PATTERN.search(cleaned))
        and bool(_CAPITALIZED_WORD_PATTERN.search(cleaned))
    )


def validate_company_id(value: str) -> bool:
    """Validate a Czech company identifier (IČO) with its weighted mod-11 check digit.

    Examples:
        >>> validate_company_id("27082440")
        True
        >>> validate_company_id("27082441")
        False
    """
    if not value or not isinstance(value, str):
        return False

    ico = compact(value)
    if not _COMPANY_ID_PATTERN.match(ico):
        return False

    total = sum(int(ico[i]) * (8 - i) for i in range(7))
    check = (11 - total % 11) % 10
    return int(ico[7]) == check


def validate_vat_id(value: str) -> bool:
    """Validate a Czech VAT identifier (DIČ): CZ followed by 8-10 digits."""
    if not value or not isinstance(value, str):
        return False
    return bool(_VAT_ID_PATTERN.match(compact(value).upper()))


def validate_text(value: str) -> bool:
    """Any non-blank string."""
    return isinstance(value, str) and bool(value.strip())


def canonical_birth_number(value: str) -> str:
    """Canonical NNNNNN/NNN(N) form of a birth number.

    Examples:
        >>> canonical_birth_number("940115 / 1234")
        '940115/1234'
        >>> canonical_birth_number("9401151234")
        '940115/1234'
    """
    cleaned = compact(value)
    if _BIRTH_NUMBER_DIGITS.match(cleaned):
        return f"{cleaned[:6]}/{cleaned[6:]}"
    return cleaned


def canonical_phone(value: str) -> str:
    """Canonical phone form: 9 digits, or '+420 ' plus 9 digits."""
    digits = re.sub(r"\D", "", value)
    if len(digits) == 12 and digits.startswith("420"):
        return f"+420 {digits[3:]}"
    return digits


def canonical_rpsn(value: str) -> str:
    return compact(value).replace(",", ".")


def canonical_iban(value: str) -> str:
    return compact(value).upper()

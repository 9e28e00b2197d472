"""Utility functions and validators."""

# Text processing utilities
from docspan.utils.text import (
    collapse_whitespace,
    compact,
    escape_html,
    extract_context,
    fold_text,
    remove_diacritics,
    sanitize_for_logging,
    truncate_text,
    unescape_html,
)

# Validation utilities
from docspan.utils.validators import (
    validate_amount,
    validate_bank_account,
    validate_birth_number,
    validate_company_id,
    validate_date,
    validate_iban,
    validate_phone,
    validate_rpsn,
    validate_vat_id,
)

__all__ = [
    "collapse_whitespace",
    "compact",
    "escape_html",
    "extract_context",
    "fold_text",
    "remove_diacritics",
    "sanitize_for_logging",
    "truncate_text",
    "unescape_html",
    "validate_amount",
    "validate_bank_account",
    "validate_birth_number",
    "validate_company_id",
    "validate_date",
    "validate_iban",
    "validate_phone",
    "validate_rpsn",
    "validate_vat_id",
]

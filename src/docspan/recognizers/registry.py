"""
Recognizer Registry

Builds the set of value recognizers the PatternMatcher iterates over.
No NLP engine is involved: every recognizer is regex-driven and runs
with nlp_artifacts=None.
"""

import warnings
from pathlib import Path
from typing import Optional, Union

from docspan.core.types import ValueType
from docspan.recognizers.base import ValueTypeRecognizer
from docspan.recognizers.cz_amount import AmountRecognizer, RpsnRecognizer
from docspan.recognizers.cz_banking import CzechBankAccountRecognizer, IbanRecognizer
from docspan.recognizers.cz_birth_number import CzechBirthNumberRecognizer
from docspan.recognizers.cz_contact import CzechAddressRecognizer, CzechPhoneRecognizer
from docspan.recognizers.cz_date import CzechDateRecognizer
from docspan.recognizers.cz_identifiers import CzechCompanyIdRecognizer, CzechVatIdRecognizer
from docspan.recognizers.cz_person import CzechPartyRecognizer

DEFAULT_RECOGNIZER_CLASSES: list[type[ValueTypeRecognizer]] = [
    CzechBirthNumberRecognizer,
    CzechCompanyIdRecognizer,
    CzechVatIdRecognizer,
    IbanRecognizer,
    CzechBankAccountRecognizer,
    AmountRecognizer,
    RpsnRecognizer,
    CzechDateRecognizer,
    CzechPhoneRecognizer,
    CzechPartyRecognizer,
    CzechAddressRecognizer,
]


def create_default_recognizers(
    language: str = "cs",
    custom_recognizers: Optional[list[ValueTypeRecognizer]] = None,
    config_path: Optional[Union[Path, str]] = None,
) -> list[ValueTypeRecognizer]:
    """Create the value recognizers used for entity extraction.

    Args:
        language: Language code (default: "cs").
        custom_recognizers: Additional recognizers to register.
        config_path: Path to YAML configuration file with custom patterns.

    Returns:
        Recognizers in registration order.

    Example:
        >>> recognizers = create_default_recognizers()
        >>> [r.entity for r in recognizers][:2]
        ['CZ_BIRTH_NUMBER', 'CZ_COMPANY_ID']

        # With custom patterns from YAML:
        >>> recognizers = create_default_recognizers(
        ...     config_path="config/custom_patterns.yaml"
        ... )
    """
    recognizers: list[ValueTypeRecognizer] = [
        cls(supported_language=language) for cls in DEFAULT_RECOGNIZER_CLASSES
    ]

    if custom_recognizers:
        recognizers.extend(custom_recognizers)

    if config_path:
        from docspan.config.pattern_loader import load_patterns_from_yaml_safe
        from docspan.recognizers.custom_pattern import create_recognizer_from_config

        config_path = Path(config_path)
        patterns, error = load_patterns_from_yaml_safe(config_path)

        if error:
            warnings.warn(f"Failed to load custom patterns: {error}")
        else:
            for pattern_config in patterns:
                recognizers.append(create_recognizer_from_config(pattern_config, language))

    return recognizers


def entities_for_types(
    recognizers: list[ValueTypeRecognizer],
    value_types: Union[list[ValueType], set[ValueType], tuple[ValueType, ...]],
) -> set[str]:
    """Entity names of the recognizers producing any of the given value types."""
    wanted = set(value_types)
    return {r.entity for r in recognizers if r.value_type in wanted}

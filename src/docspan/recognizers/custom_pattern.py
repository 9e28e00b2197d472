"""Dynamic pattern recognizer factory.

This module creates ValueTypeRecognizer instances from configuration,
allowing custom value patterns to be loaded at runtime.
"""

from presidio_analyzer import Pattern

from docspan.config.pattern_loader import PatternConfig
from docspan.core.types import ValueType
from docspan.recognizers.base import PATTERN_SCORE, ValueTypeRecognizer


def create_recognizer_from_config(
    config: PatternConfig,
    language: str = "cs",
) -> ValueTypeRecognizer:
    """Create a ValueTypeRecognizer from a PatternConfig.

    Args:
        config: The pattern configuration.
        language: Language code for the recognizer (default: "cs").

    Returns:
        A configured recognizer instance.

    Example:
        >>> config = PatternConfig(
        ...     name="contract_number",
        ...     value_type="text",
        ...     regex="SML-\\d{4}/\\d{2}",
        ...     confidence=0.85,
        ... )
        >>> recognizer = create_recognizer_from_config(config)
        >>> recognizer.analyze("Smlouva SML-2024/07", entities=["CONTRACT_NUMBER"])
    """
    pattern = Pattern(
        name=config.name,
        regex=config.regex,
        score=PATTERN_SCORE,
    )

    # e.g., "contract_number" -> "CustomContractNumberRecognizer"
    name_parts = config.name.split("_")
    class_name = "Custom" + "".join(part.title() for part in name_parts) + "Recognizer"

    return ValueTypeRecognizer(
        supported_language=language,
        context=config.context or [],
        patterns=[pattern],
        entity=config.entity_type,
        value_type=ValueType(config.value_type),
        category=config.category,
        confidence=config.confidence,
        name=class_name,
    )


def create_recognizers_from_configs(
    configs: list[PatternConfig],
    language: str = "cs",
) -> list[ValueTypeRecognizer]:
    """Create multiple recognizers from a list of configurations.

    Args:
        configs: List of pattern configurations.
        language: Language code for the recognizers.

    Returns:
        List of configured recognizer instances.
    """
    return [create_recognizer_from_config(config, language) for config in configs]

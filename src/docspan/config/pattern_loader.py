"""YAML configuration loader for custom value patterns.

Custom patterns let a deployment recognize document-specific values
(contract numbers, internal codes) without modifying code. Each pattern
names one of the built-in value types, whose validator still gates hits.

Example YAML configuration:

    patterns:
      - name: contract_number
        value_type: text
        entity_type: CONTRACT_NUMBER
        regex: "SML-\\d{4}/\\d{2}"
        confidence: 0.85
        category: identifiers
        context: ["smlouva", "číslo smlouvy"]
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from docspan.core.types import ValueType


@dataclass
class PatternConfig:
    """Configuration for a single custom pattern.

    Attributes:
        name: Unique identifier for the pattern.
        value_type: Value type of hits (a ValueType value such as "amount").
        regex: Regular expression matching the value itself.
        confidence: Prior confidence of hits (0.0 to 1.0).
        entity_type: Recognizer entity name (defaults to the upper-cased name).
        category: Pattern family hits are deduplicated within.
        context: Context words shown alongside the pattern.
    """

    name: str
    value_type: str
    regex: str
    confidence: float = 0.7
    entity_type: str = ""
    category: str = "custom"
    context: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.name:
            raise ValueError("Pattern name cannot be empty")
        if not self.regex:
            raise ValueError("Regex pattern cannot be empty")
        try:
            ValueType(self.value_type)
        except ValueError:
            raise ValueError(f"Unknown value type: {self.value_type!r}")
        try:
            re.compile(self.regex)
        except re.error as e:
            raise ValueError(f"Invalid regex for pattern {self.name!r}: {e}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Confidence must be between 0.0 and 1.0, got {self.confidence}"
            )
        if not self.entity_type:
            self.entity_type = self.name.upper()


def load_patterns_from_yaml(path: Path | str) -> list[PatternConfig]:
    """Load pattern configurations from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        List of PatternConfig objects.

    Raises:
        FileNotFoundError: If the configuration file doesn't exist.
        ValueError: If the YAML structure is invalid.
        yaml.YAMLError: If the YAML is malformed.

    Example:
        >>> patterns = load_patterns_from_yaml("config/custom_patterns.yaml")
        >>> for p in patterns:
        ...     print(f"{p.name}: {p.value_type}")
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return []

    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML structure: expected dict, got {type(data).__name__}")

    patterns_data = data.get("patterns", [])

    if not isinstance(patterns_data, list):
        raise ValueError(
            f"Invalid patterns structure: expected list, got {type(patterns_data).__name__}"
        )

    patterns = []
    for i, p in enumerate(patterns_data):
        if not isinstance(p, dict):
            raise ValueError(f"Pattern {i} is not a dict: {type(p).__name__}")

        for required in ("name", "value_type", "regex"):
            if required not in p:
                raise ValueError(f"Pattern {i} missing required field: {required}")

        patterns.append(
            PatternConfig(
                name=p["name"],
                value_type=p["value_type"],
                regex=p["regex"],
                confidence=p.get("confidence", 0.7),
                entity_type=p.get("entity_type", ""),
                category=p.get("category", "custom"),
                context=p.get("context", []),
            )
        )

    return patterns


def load_patterns_from_yaml_safe(path: Path | str) -> tuple[list[PatternConfig], Optional[str]]:
    """Load patterns with error handling, returning any error message.

    This is a convenience wrapper around load_patterns_from_yaml that
    catches the expected failures and returns them as error messages.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Tuple of (patterns, error_message). If successful, error_message is None.
        If failed, patterns is an empty list.
    """
    try:
        patterns = load_patterns_from_yaml(path)
        return patterns, None
    except FileNotFoundError as e:
        return [], str(e)
    except ValueError as e:
        return [], f"Configuration error: {e}"
    except yaml.YAMLError as e:
        return [], f"YAML parsing error: {e}"

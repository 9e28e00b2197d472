"""
Value-Type Pattern Recognizer

Base class tying a presidio PatternRecognizer to a docspan ValueType: the
type's validator gates every regex hit, and each recognizer carries the
fixed prior confidence and category of its pattern family.
"""

import re
from typing import Callable, Optional

from presidio_analyzer import Pattern, PatternRecognizer

from docspan.core.types import ValueType
from docspan.core.value_types import VALUE_TYPES

# Hits are validated, so the presidio pattern score only orders duplicates.
PATTERN_SCORE = 0.5

DEFAULT_REGEX_FLAGS = re.DOTALL | re.MULTILINE | re.IGNORECASE
CASE_SENSITIVE_FLAGS = re.DOTALL | re.MULTILINE


class ValueTypeRecognizer(PatternRecognizer):
    """Pattern recognizer whose hits must validate as a ValueType.

    Subclasses set ENTITY, VALUE_TYPE, CATEGORY, CONFIDENCE, PATTERNS and
    CONTEXT. validate_result() returning False makes presidio drop the hit.

    Example:
        >>> recognizer = CzechBirthNumberRecognizer()
        >>> results = recognizer.analyze("RČ 940115/1234", entities=["CZ_BIRTH_NUMBER"])
        >>> [(r.start, r.end) for r in results]
        [(3, 14)]
    """

    ENTITY: str = ""
    VALUE_TYPE: ValueType = ValueType.TEXT
    CATEGORY: str = "other"
    CONFIDENCE: float = 0.5
    CONTEXT_WINDOW: int = 50
    REGEX_FLAGS: int = DEFAULT_REGEX_FLAGS
    PATTERNS: list[Pattern] = []
    CONTEXT: list[str] = []

    def __init__(
        self,
        supported_language: str = "cs",
        context: Optional[list[str]] = None,
        patterns: Optional[list[Pattern]] = None,
        entity: Optional[str] = None,
        value_type: Optional[ValueType] = None,
        category: Optional[str] = None,
        confidence: Optional[float] = None,
        context_window: Optional[int] = None,
        validator: Optional[Callable[[str], bool]] = None,
        name: Optional[str] = None,
        regex_flags: Optional[int] = None,
    ) -> None:
        """Initialize the recognizer.

        Args:
            supported_language: Language code (default: cs).
            context: Additional context words.
            patterns: Patterns replacing the class PATTERNS.
            entity: Entity name replacing the class ENTITY.
            value_type: Value type replacing the class VALUE_TYPE.
            category: Pattern family replacing the class CATEGORY.
            confidence: Prior confidence replacing the class CONFIDENCE.
            context_window: Characters of context kept around each hit.
            validator: Predicate replacing the value type's validator.
            name: Recognizer name (defaults to the class name).
            regex_flags: Regex flags replacing the class REGEX_FLAGS.
        """
        self.value_type = value_type or self.VALUE_TYPE
        self.category = category or self.CATEGORY
        self.confidence = self.CONFIDENCE if confidence is None else confidence
        self.context_window = self.CONTEXT_WINDOW if context_window is None else context_window
        self._validator = validator or VALUE_TYPES[self.value_type].validate

        context_words = list(self.CONTEXT) + (context or [])

        super().__init__(
            supported_entity=entity or self.ENTITY,
            patterns=patterns if patterns is not None else list(self.PATTERNS),
            context=context_words,
            supported_language=supported_language,
            name=name,
            global_regex_flags=self.REGEX_FLAGS if regex_flags is None else regex_flags,
        )

    @property
    def entity(self) -> str:
        return self.supported_entities[0]

    def validate_result(self, pattern_text: str) -> Optional[bool]:
        """Validate a hit against the value type.

        Args:
            pattern_text: The matched text.

        Returns:
            True if valid, False if the hit must be dropped.
        """
        return bool(self._validator(pattern_text))

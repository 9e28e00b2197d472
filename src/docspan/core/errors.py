"""Exceptions raised by docspan.

Search-time input problems are reported through SearchOutcome.error rather
than raised; only programmer and configuration errors propagate.
"""

from typing import Optional


class DocspanError(Exception):
    """Base class of every docspan exception."""


class ConfigurationError(DocspanError, ValueError):
    """Malformed configuration: YAML files, ranking weights, options."""


class SearchInputError(DocspanError):
    """Invalid search input.

    Attributes:
        code: Machine-readable reason (see the class constants).
        field: Offending input field, if any.
    """

    EMPTY_QUERY = "empty_query"
    EMPTY_DOCUMENT = "empty_document"
    DOCUMENT_TOO_LARGE = "document_too_large"
    INVALID_VALUE_TYPE = "invalid_value_type"

    def __init__(self, code: str, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.field = field

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"code": self.code, "message": self.message, "field": self.field}

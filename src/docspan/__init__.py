"""
docspan: Normalized search and highlight for Czech documents

Finds requested values (birth numbers, amounts, dates, names, accounts)
in diacritic-heavy documents and returns their exact spans in the
original, unmodified text.
"""

__version__ = "0.3.0"

from docspan.core.engine import SearchEngine, SearchOutcome
from docspan.core.errors import ConfigurationError, DocspanError, SearchInputError
from docspan.core.highlighter import render
from docspan.core.normalizer import normalize
from docspan.core.types import SearchMatch, SearchResult, ValueType

__all__ = [
    "SearchEngine",
    "SearchOutcome",
    "SearchMatch",
    "SearchResult",
    "ValueType",
    "DocspanError",
    "ConfigurationError",
    "SearchInputError",
    "normalize",
    "render",
]

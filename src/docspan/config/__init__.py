"""Configuration module for docspan."""

from docspan.config.pattern_loader import (
    PatternConfig,
    load_patterns_from_yaml,
    load_patterns_from_yaml_safe,
)
from docspan.config.settings import SearchConfig

__all__ = [
    "PatternConfig",
    "SearchConfig",
    "load_patterns_from_yaml",
    "load_patterns_from_yaml_safe",
]

"""Search engine configuration.

Settings come from environment variables (DOCSPAN_*) or a YAML file:

    search:
      max_document_chars: 2000000
      fuzzy_min_score: 0.6
      fuzzy_algorithm: hybrid
      max_results: 10
      time_budget_ms: 250
      merge_adjacent: false
      cache_ttl: 300
      patterns_file: config/custom_patterns.yaml
    ranking:
      replacement_margin: 0.2
      weights:
        relevance: 0.4
        confidence: 0.3
        context: 0.15
        freshness: 0.1
        feedback: 0.05
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from docspan.core.errors import ConfigurationError
from docspan.core.ranking import REPLACEMENT_MARGIN, RankingWeights
from docspan.core.types import FUZZY_ALGORITHMS, MatchAlgorithm

ENV_PREFIX = "DOCSPAN_"
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _env(name: str) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc


def _parse_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


@dataclass
class SearchConfig:
    """Engine settings.

    Attributes:
        max_document_chars: Documents longer than this are rejected.
        fuzzy_min_score: Lowest fuzzy score returned.
        fuzzy_algorithm: Algorithm used for fuzzy value search.
        max_results: Results returned per search.
        time_budget_ms: Wall-clock budget of one search; None disables it.
        merge_adjacent: Merge touching highlight ranges.
        cache_ttl: TTL of cache entries written by the engine, in seconds.
        patterns_file: YAML file of custom patterns.
        context_length: Context characters kept around each match.
        ranking_weights: Component weights of the ranker.
        replacement_margin: Relative gain a duplicate result needs to replace the kept one.
    """

    max_document_chars: int = 2_000_000
    fuzzy_min_score: float = 0.6
    fuzzy_algorithm: MatchAlgorithm = MatchAlgorithm.HYBRID
    max_results: int = 10
    time_budget_ms: Optional[float] = None
    merge_adjacent: bool = False
    cache_ttl: int = 300
    patterns_file: Optional[str] = None
    context_length: int = 50
    ranking_weights: RankingWeights = field(default_factory=RankingWeights)
    replacement_margin: float = REPLACEMENT_MARGIN

    def __post_init__(self) -> None:
        """Validate configuration values."""
        try:
            self.fuzzy_algorithm = MatchAlgorithm(self.fuzzy_algorithm)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown fuzzy algorithm: {self.fuzzy_algorithm!r}") from exc
        if self.fuzzy_algorithm not in FUZZY_ALGORITHMS:
            raise ConfigurationError(f"Not a fuzzy algorithm: {self.fuzzy_algorithm.value}")
        if self.max_document_chars <= 0:
            raise ConfigurationError(
                f"max_document_chars must be positive, got {self.max_document_chars}"
            )
        if not 0.0 <= self.fuzzy_min_score <= 1.0:
            raise ConfigurationError(
                f"fuzzy_min_score must be between 0.0 and 1.0, got {self.fuzzy_min_score}"
            )
        if self.max_results < 1:
            raise ConfigurationError(f"max_results must be positive, got {self.max_results}")
        if self.time_budget_ms is not None and self.time_budget_ms <= 0:
            raise ConfigurationError(f"time_budget_ms must be positive, got {self.time_budget_ms}")
        if self.cache_ttl < 0:
            raise ConfigurationError(f"cache_ttl must not be negative, got {self.cache_ttl}")
        if self.replacement_margin < 0:
            raise ConfigurationError(
                f"replacement_margin must not be negative, got {self.replacement_margin}"
            )

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Load configuration from environment variables.

        Environment variables:
            DOCSPAN_MAX_DOCUMENT_CHARS: Document size ceiling (default: 2000000)
            DOCSPAN_FUZZY_MIN_SCORE: Fuzzy threshold (default: 0.6)
            DOCSPAN_FUZZY_ALGORITHM: levenshtein, jaro, jaroWinkler or hybrid (default: hybrid)
            DOCSPAN_MAX_RESULTS: Results per search (default: 10)
            DOCSPAN_TIME_BUDGET_MS: Search time budget (default: unset)
            DOCSPAN_MERGE_ADJACENT: Merge touching highlights (default: false)
            DOCSPAN_CACHE_TTL: Cache TTL in seconds (default: 300)
            DOCSPAN_PATTERNS_FILE: Custom pattern YAML (default: unset)

        Raises:
            ConfigurationError: If a variable cannot be parsed.
        """
        kwargs: dict[str, Any] = {}
        parsers = {
            "MAX_DOCUMENT_CHARS": ("max_document_chars", _parse_int),
            "FUZZY_MIN_SCORE": ("fuzzy_min_score", _parse_float),
            "FUZZY_ALGORITHM": ("fuzzy_algorithm", None),
            "MAX_RESULTS": ("max_results", _parse_int),
            "TIME_BUDGET_MS": ("time_budget_ms", _parse_float),
            "MERGE_ADJACENT": ("merge_adjacent", _parse_bool),
            "CACHE_TTL": ("cache_ttl", _parse_int),
            "PATTERNS_FILE": ("patterns_file", None),
        }

        for env_suffix, (attribute, parser) in parsers.items():
            value = _env(env_suffix)
            if value is None:
                continue
            kwargs[attribute] = parser(ENV_PREFIX + env_suffix, value) if parser else value

        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "SearchConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            SearchConfig with the file's values over the defaults.

        Raises:
            ConfigurationError: If the file is missing, malformed or has unknown keys.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration in {path} must be a mapping")

        unknown_sections = set(data) - {"search", "ranking"}
        if unknown_sections:
            raise ConfigurationError(
                f"Unknown configuration sections: {', '.join(sorted(unknown_sections))}"
            )

        return cls.from_dict(data.get("search") or {}, data.get("ranking") or {})

    @classmethod
    def from_dict(
        cls,
        search: dict[str, Any],
        ranking: Optional[dict[str, Any]] = None,
    ) -> "SearchConfig":
        """Build a configuration from plain search and ranking mappings."""
        if not isinstance(search, dict):
            raise ConfigurationError("'search' must be a mapping")
        ranking = ranking or {}
        if not isinstance(ranking, dict):
            raise ConfigurationError("'ranking' must be a mapping")

        allowed = {f.name for f in fields(cls)} - {"ranking_weights", "replacement_margin"}
        unknown = set(search) - allowed
        if unknown:
            raise ConfigurationError(f"Unknown search settings: {', '.join(sorted(unknown))}")

        kwargs: dict[str, Any] = {}
        for key, value in search.items():
            if value is None:
                continue
            if key in ("max_document_chars", "max_results", "cache_ttl", "context_length"):
                kwargs[key] = _parse_int(key, value)
            elif key in ("fuzzy_min_score", "time_budget_ms"):
                kwargs[key] = _parse_float(key, value)
            elif key == "merge_adjacent":
                kwargs[key] = _parse_bool(key, value)
            else:
                kwargs[key] = value

        unknown_ranking = set(ranking) - {"weights", "replacement_margin"}
        if unknown_ranking:
            raise ConfigurationError(
                f"Unknown ranking settings: {', '.join(sorted(unknown_ranking))}"
            )
        if ranking.get("weights") is not None:
            if not isinstance(ranking["weights"], dict):
                raise ConfigurationError("'ranking.weights' must be a mapping")
            kwargs["ranking_weights"] = RankingWeights.from_dict(ranking["weights"])
        if ranking.get("replacement_margin") is not None:
            kwargs["replacement_margin"] = _parse_float(
                "replacement_margin", ranking["replacement_margin"]
            )

        return cls(**kwargs)

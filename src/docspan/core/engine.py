"""
Search engine facade

SearchEngine wires the normalizer, matchers, ranker and highlighter into
one call:

1. Validate the request (SearchRequest); bad input becomes a failed
   SearchOutcome, never an exception.
2. Normalize the document (cached per document text).
3. Decide between a label query ("rodné číslo": extract values of the
   requested types) and a value query ("Novák": search the text itself,
   exactly first, fuzzily when nothing exact is found).
4. Verify oracle candidates against the original text.
5. Group matches into results per (type, canonical value) and rank them.

Collaborators (cache, logger, extractor, ranker, oracle) are injected. An
oracle or cache that raises is logged and reported as a warning; the
search carries on without it.
"""

import copy
import time
import uuid
from dataclasses import dataclass, field
from logging import Logger
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from docspan.cache.match_cache import Cache, query_cache_key
from docspan.config.settings import SearchConfig
from docspan.core.errors import SearchInputError
from docspan.core.exact import find_exact
from docspan.core.extractor import EntityExtractor
from docspan.core.fuzzy.matcher import FuzzyMatcher, FuzzyOptions
from docspan.core.highlighter import HighlightRenderer, ranges_from_results
from docspan.core.intent_detector import QueryIntent, detect_query_intents, is_value_query
from docspan.core.normalizer import Normalizer
from docspan.core.oracle import CandidateInput, CandidateOracle, OracleCandidate, verify_candidates
from docspan.core.ranking import Ranker, RankingOptions
from docspan.core.types import NormalizedDocument, SearchMatch, SearchResult, Segment, ValueType
from docspan.core.value_types import FREE_FORM_TYPES, normalize_value, validate_value
from docspan.logging.setup import get_logger, set_search_id
from docspan.metrics.collectors import (
    CACHE_HITS,
    CACHE_MISSES,
    ORACLE_CANDIDATES,
    SEARCH_COUNT,
    SEARCH_DEGRADED,
    SEARCH_LATENCY,
    VALIDATION_REJECTIONS,
)
from docspan.recognizers.registry import create_default_recognizers
from docspan.utils.text import sanitize_for_logging


class SearchRequest(BaseModel):
    """Validated search input.

    The document size ceiling is read from the validation context key
    "max_document_chars".
    """

    query: str
    document: str
    value_type: Optional[ValueType] = None

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError(SearchInputError.EMPTY_QUERY, "Query must not be empty")
        return value

    @field_validator("document")
    @classmethod
    def document_within_limits(cls, value: str, info: ValidationInfo) -> str:
        if not value.strip():
            raise PydanticCustomError(SearchInputError.EMPTY_DOCUMENT, "Document must not be empty")
        limit = (info.context or {}).get("max_document_chars")
        if limit is not None and len(value) > limit:
            raise PydanticCustomError(
                SearchInputError.DOCUMENT_TOO_LARGE,
                "Document has {length} characters, limit is {limit}",
                {"length": len(value), "limit": limit},
            )
        return value


_FIELD_ERROR_CODES = {
    "query": SearchInputError.EMPTY_QUERY,
    "document": SearchInputError.EMPTY_DOCUMENT,
    "value_type": SearchInputError.INVALID_VALUE_TYPE,
}
_KNOWN_CODES = {
    SearchInputError.EMPTY_QUERY,
    SearchInputError.EMPTY_DOCUMENT,
    SearchInputError.DOCUMENT_TOO_LARGE,
    SearchInputError.INVALID_VALUE_TYPE,
}


def _input_error(exc: ValidationError) -> SearchInputError:
    error = exc.errors()[0]
    field_name = str(error["loc"][0]) if error.get("loc") else None
    code = error["type"]
    if code not in _KNOWN_CODES:
        code = _FIELD_ERROR_CODES.get(field_name, SearchInputError.EMPTY_QUERY)
    return SearchInputError(code, error["msg"], field_name)


@dataclass
class SearchOutcome:
    """Result of SearchEngine.search().

    Attributes:
        ok: False when the input was rejected.
        results: Ranked results.
        warnings: Dropped candidates and other non-fatal problems.
        error: The input error when ok is False.
        degraded: The time budget ran out and fuzzy results were discarded.
        elapsed_ms: Wall-clock duration of the search.
        search_id: Identifier used to correlate log lines.
    """

    ok: bool
    results: list[SearchResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: Optional[SearchInputError] = None
    degraded: bool = False
    elapsed_ms: float = 0.0
    search_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "results": [r.to_dict() for r in self.results],
            "warnings": list(self.warnings),
            "error": self.error.to_dict() if self.error else None,
            "degraded": self.degraded,
            "elapsed_ms": self.elapsed_ms,
            "search_id": self.search_id,
        }


@dataclass
class _QueryPlan:
    value_query: bool
    value_type: Optional[ValueType]
    intents: list[QueryIntent]
    target_types: frozenset[ValueType]
    entities: Optional[frozenset[str]]


class _ResultBuilder:
    """Groups matches into results keyed by (type, canonical value)."""

    def __init__(self, label: str) -> None:
        self.label = label
        self._results: dict[tuple[ValueType, str], SearchResult] = {}

    def add(self, match: SearchMatch, source: str, label: Optional[str] = None) -> None:
        value_type = match.type or ValueType.TEXT
        value = match.value or normalize_value(match.text, value_type)
        key = (value_type, value.casefold())
        result = self._results.get(key)
        if result is None:
            result = SearchResult(
                id=f"{source}-{len(self._results)}",
                label=label or self.label,
                value=value,
                type=value_type,
                source=source,
                metadata={"sources": [source]},
            )
            self._results[key] = result
        else:
            if label:
                result.label = label
            if source not in result.metadata["sources"]:
                result.metadata["sources"].append(source)
        result.add_match(match)

    def add_result(self, result: SearchResult) -> None:
        for match in result.matches:
            self.add(match, result.source or "oracle", result.label)

    def build(self) -> list[SearchResult]:
        return list(self._results.values())


class SearchEngine:
    """Normalized search and highlight engine.

    Example:
        >>> engine = SearchEngine()
        >>> outcome = engine.search(
        ...     "Jan Novák, nar. 15.1.1994, RČ 940115/1234",
        ...     "rodné číslo",
        ...     value_type="birthNumber",
        ... )
        >>> [(r.value, r.matches[0].start) for r in outcome.results]
        [('940115/1234', 30)]
    """

    def __init__(
        self,
        cache: Optional[Cache] = None,
        logger: Optional[Logger] = None,
        config: Optional[SearchConfig] = None,
        extractor: Optional[EntityExtractor] = None,
        ranker: Optional[Ranker] = None,
        oracle: Optional[CandidateOracle] = None,
        fuzzy_matcher: Optional[FuzzyMatcher] = None,
    ) -> None:
        self.config = config or SearchConfig()
        self._logger = logger if logger is not None else get_logger(__name__)
        self._cache = cache
        self.normalizer = Normalizer(cache=cache, logger=self._logger, cache_ttl=self.config.cache_ttl)
        if extractor is None:
            extractor = EntityExtractor(
                recognizers=create_default_recognizers(config_path=self.config.patterns_file),
                logger=self._logger,
            )
        self.extractor = extractor
        self.ranker = ranker or Ranker(logger=self._logger, weights=self.config.ranking_weights)
        self.fuzzy = fuzzy_matcher or FuzzyMatcher(logger=self._logger)
        self.oracle = oracle
        self.renderer = HighlightRenderer(merge_adjacent=self.config.merge_adjacent)

    def _plan(self, query: str, value_type: Optional[ValueType]) -> _QueryPlan:
        intents = detect_query_intents(query)
        value_query = is_value_query(query, value_type, intents)
        typed = value_type is not None and value_type not in FREE_FORM_TYPES

        if typed:
            target_types = frozenset({value_type})
            entities = None
        else:
            target_types = frozenset(t for intent in intents for t in intent.value_types)
            entities = frozenset(e for intent in intents for e in intent.entities) or None

        return _QueryPlan(
            value_query=value_query,
            value_type=value_type if typed else None,
            intents=intents,
            target_types=target_types,
            entities=entities,
        )

    def _log_failure(self, message: str, event: str, error: Exception, **fields: Any) -> None:
        self._logger.warning(
            message,
            extra={"event": event, "error": f"{type(error).__name__}: {error}", **fields},
        )

    def _propose(self, query: str, document: str, warnings: list[str]) -> list[OracleCandidate]:
        """Candidates from the injected oracle; a failing oracle contributes none."""
        try:
            proposed = self.oracle.propose(query, document)
        except Exception as e:
            ORACLE_CANDIDATES.labels(status="error").inc()
            self._log_failure("Oracle failed", "oracle_failed", e)
            warnings.append(f"oracle failed: {type(e).__name__}: {e}")
            return []
        return list(proposed or [])

    def _extract(
        self,
        document: str,
        plan: _QueryPlan,
        builder: _ResultBuilder,
    ) -> None:
        value_types = plan.target_types if plan.value_type is not None else None
        context_length = self.config.context_length

        for match in self.extractor.extract_entities(
            document, entities=plan.entities, value_types=value_types, context_length=context_length
        ):
            builder.add(match, "pattern")
        for match in self.extractor.extract_clauses(
            document, entities=plan.entities, value_types=value_types, context_length=context_length
        ):
            builder.add(match, "clause")

    def _search_value(
        self,
        document: str,
        doc: NormalizedDocument,
        query: str,
        plan: _QueryPlan,
        approximate: bool,
        deadline: Optional[float],
        builder: _ResultBuilder,
        warnings: list[str],
    ) -> bool:
        """Exact, then fuzzy search for the query text. Returns True if degraded."""

        def on_reject(start: int, end: int, text: str) -> None:
            warnings.append(
                f"exact match rejected: {sanitize_for_logging(text, 40)!r} at {start}-{end} "
                f"is not a valid {plan.value_type.value}"
            )

        exact = find_exact(
            query,
            doc,
            document,
            plan.value_type,
            context_length=self.config.context_length,
            on_reject=on_reject,
        )
        for match in exact:
            builder.add(match, "exact")
        if exact or not approximate:
            return False

        if deadline is not None and time.monotonic() >= deadline:
            return True

        run = self.fuzzy.search(
            query,
            document,
            FuzzyOptions(
                algorithm=self.config.fuzzy_algorithm,
                min_score=self.config.fuzzy_min_score,
                max_results=self.config.max_results,
                context_length=self.config.context_length,
            ),
            doc=doc,
            deadline=deadline,
        )
        if run.timed_out:
            return True
        if run.skipped:
            warnings.append("fuzzy search skipped: query too short for a document this large")

        for match in run.matches:
            if plan.value_type is not None:
                if not validate_value(match.text, plan.value_type):
                    VALIDATION_REJECTIONS.labels(source="fuzzy", reason="type_mismatch").inc()
                    continue
                match.type = plan.value_type
                match.value = normalize_value(match.text, plan.value_type)
            builder.add(match, "fuzzy")
        return False

    def search(
        self,
        document: Optional[str],
        query: Optional[str],
        value_type: Union[ValueType, str, None] = None,
        candidates: Optional[Iterable[CandidateInput]] = None,
        approximate: bool = True,
        max_results: Optional[int] = None,
    ) -> SearchOutcome:
        """Find the values a query asks for.

        Args:
            document: Original document text.
            query: A label ("rodné číslo") or a value ("Novák").
            value_type: Optional ValueType hint (enum or its string value).
            candidates: Oracle candidates as OracleCandidate, (label, value)
                or (label, value, start, end) tuples, or dicts.
            approximate: Allow fuzzy search when a value has no exact hit.
            max_results: Overrides the configured result count.

        Returns:
            SearchOutcome; input problems are reported in outcome.error.
        """
        started = time.perf_counter()
        search_id = uuid.uuid4().hex[:12]
        set_search_id(search_id)

        try:
            request = SearchRequest.model_validate(
                {"document": document, "query": query, "value_type": value_type},
                context={"max_document_chars": self.config.max_document_chars},
            )
        except ValidationError as exc:
            error = _input_error(exc)
            elapsed = time.perf_counter() - started
            SEARCH_COUNT.labels(outcome="invalid").inc()
            SEARCH_LATENCY.labels(outcome="invalid").observe(elapsed)
            self._logger.info(
                "Search rejected",
                extra={"event": "search_rejected", "code": error.code, "field": error.field},
            )
            return SearchOutcome(
                ok=False,
                error=error,
                elapsed_ms=round(elapsed * 1000, 3),
                search_id=search_id,
            )

        supplied: list[OracleCandidate] = []
        warnings: list[str] = []
        for raw in candidates or []:
            try:
                supplied.append(OracleCandidate.coerce(raw))
            except ValueError as exc:
                warnings.append(f"oracle candidate rejected: {exc}")

        limit = max_results or self.config.max_results
        cache_key = None
        if self._cache is not None and self.oracle is None:
            cache_key = query_cache_key(
                request.document,
                request.query,
                value_type=request.value_type.value if request.value_type else None,
                candidates=[c.as_key() for c in supplied],
                approximate=approximate,
                max_results=limit,
                config=repr(self.config),
            )
            try:
                cached = self._cache.get(cache_key)
            except Exception as e:
                self._log_failure("Query cache unavailable", "cache_failed", e, operation="get")
                warnings.append(f"query cache unavailable: {type(e).__name__}")
                cached = None
                cache_key = None
            if cached is not None:
                CACHE_HITS.labels(kind="query").inc()
                outcome = copy.deepcopy(cached)
                outcome.search_id = search_id
                return outcome
            CACHE_MISSES.labels(kind="query").inc()

        deadline = None
        if self.config.time_budget_ms is not None:
            deadline = time.monotonic() + self.config.time_budget_ms / 1000.0

        doc = self.normalizer.normalize(request.document)
        plan = self._plan(request.query, request.value_type)
        builder = _ResultBuilder(label=request.query.strip())
        degraded = False

        if self.oracle is not None:
            supplied.extend(self._propose(request.query, request.document, warnings))
        if supplied:
            verified, oracle_warnings = verify_candidates(
                supplied,
                doc,
                request.document,
                context_length=self.config.context_length,
                split_composite=True,
                extractor=self.extractor,
            )
            warnings.extend(oracle_warnings)
            for result in verified:
                builder.add_result(result)

        if plan.value_query:
            degraded = self._search_value(
                request.document,
                doc,
                request.query,
                plan,
                approximate,
                deadline,
                builder,
                warnings,
            )
        elif plan.target_types or plan.entities:
            self._extract(request.document, plan, builder)

        ranked = self.ranker.rank(
            builder.build(),
            request.query,
            request.document,
            RankingOptions(
                weights=self.ranker.weights,
                max_results=limit,
                replacement_margin=self.config.replacement_margin,
                target_types=plan.target_types,
            ),
        )

        elapsed = time.perf_counter() - started
        outcome_label = "degraded" if degraded else ("found" if ranked else "empty")
        SEARCH_COUNT.labels(outcome=outcome_label).inc()
        SEARCH_LATENCY.labels(outcome=outcome_label).observe(elapsed)
        if degraded:
            SEARCH_DEGRADED.inc()
            warnings.append("time budget exceeded: fuzzy results omitted")

        self._logger.info(
            "Search completed",
            extra={
                "event": "search_completed",
                "query_kind": "value" if plan.value_query else "label",
                "intents": [i.name for i in plan.intents],
                "result_count": len(ranked),
                "warning_count": len(warnings),
                "degraded": degraded,
                "duration_ms": round(elapsed * 1000, 3),
            },
        )

        outcome = SearchOutcome(
            ok=True,
            results=ranked,
            warnings=warnings,
            degraded=degraded,
            elapsed_ms=round(elapsed * 1000, 3),
            search_id=search_id,
        )
        if cache_key is not None and not degraded:
            try:
                self._cache.set(cache_key, copy.deepcopy(outcome), self.config.cache_ttl)
            except Exception as e:
                self._log_failure("Query cache unavailable", "cache_failed", e, operation="set")
        return outcome

    def highlight(
        self,
        document: Optional[str],
        results: Iterable[SearchResult],
        merge_adjacent: Optional[bool] = None,
    ) -> list[Segment]:
        """Render segments highlighting every match of the given results."""
        return self.renderer.render(document, ranges_from_results(results), merge_adjacent)

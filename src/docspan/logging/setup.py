"""Logging configuration for docspan.

Provides structured JSON logging with search_id correlation. Every JSON
line carries an ``event`` name; document-derived fields are masked before
they are written.
"""

import logging
import os
import sys
from contextvars import ContextVar
from typing import Any, Optional

from pythonjsonlogger import jsonlogger

from docspan.utils.text import sanitize_for_logging

SERVICE_NAME = "docspan"
DEFAULT_EVENT = "log"

# Fields that may hold document text; masked and truncated in JSON output.
SENSITIVE_FIELDS = ("query", "document", "value", "text")
SENSITIVE_FIELD_LENGTH = 60

# Context variable for search_id correlation
search_id_var: ContextVar[str] = ContextVar("search_id", default="")


class SearchContextFilter(logging.Filter):
    """Filter that adds search_id and a default event name to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add search_id from context to log record."""
        record.search_id = search_id_var.get() or "-"
        if not getattr(record, "event", None):
            record.event = DEFAULT_EVENT
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter with docspan service fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        """Add custom fields to log record."""
        super().add_fields(log_record, record, message_dict)

        if "levelname" in log_record:
            log_record["level"] = log_record.pop("levelname")
        if "asctime" in log_record:
            log_record["timestamp"] = log_record.pop("asctime")

        log_record["service"] = SERVICE_NAME
        log_record["event"] = getattr(record, "event", None) or DEFAULT_EVENT

        if hasattr(record, "search_id"):
            log_record["search_id"] = record.search_id

        if "duration_ms" in log_record:
            try:
                log_record["duration_ms"] = round(float(log_record["duration_ms"]), 3)
            except (TypeError, ValueError):
                log_record.pop("duration_ms")

        for name in SENSITIVE_FIELDS:
            if isinstance(log_record.get(name), str):
                log_record[name] = sanitize_for_logging(log_record[name], SENSITIVE_FIELD_LENGTH)


def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> None:
    """Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to env var
               DOCSPAN_LOG_LEVEL or INFO.
        json_format: Whether to use JSON format. Defaults to env var
                     DOCSPAN_LOG_FORMAT == 'json' or True.
    """
    if level is None:
        level = os.getenv("DOCSPAN_LOG_LEVEL", "INFO").upper()
    if json_format is None:
        log_format = os.getenv("DOCSPAN_LOG_FORMAT", "json").lower()
        json_format = log_format == "json"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(SearchContextFilter())

    if json_format:
        formatter = CustomJsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - [%(search_id)s] %(event)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # presidio logs every recognizer load at INFO
    logging.getLogger("presidio-analyzer").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(name)


def set_search_id(search_id: str) -> None:
    """Set the search ID for the current context."""
    search_id_var.set(search_id)


def get_search_id() -> str:
    """Current search ID, or an empty string outside a search."""
    return search_id_var.get()

"""Tests for logging configuration."""

import io
import json
import logging
from unittest.mock import patch

from docspan.logging.setup import (
    CustomJsonFormatter,
    SearchContextFilter,
    get_logger,
    get_search_id,
    search_id_var,
    set_search_id,
    setup_logging,
)


def _record(msg="test message"):
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestSearchContextFilter:
    """Tests for SearchContextFilter."""

    def test_adds_search_id_to_record(self):
        """Test that search_id is added to log records."""
        filter_ = SearchContextFilter()
        record = _record()

        token = search_id_var.set("abc123")
        try:
            assert filter_.filter(record) is True
            assert record.search_id == "abc123"
        finally:
            search_id_var.reset(token)

    def test_default_search_id(self):
        """Test that the default search_id is '-' outside a search."""
        filter_ = SearchContextFilter()
        record = _record()

        token = search_id_var.set("")
        try:
            filter_.filter(record)
            assert record.search_id == "-"
        finally:
            search_id_var.reset(token)

    def test_default_event(self):
        """Test that records without an event get the default name."""
        record = _record()
        SearchContextFilter().filter(record)
        assert record.event == "log"


class TestCustomJsonFormatter:
    """Tests for CustomJsonFormatter."""

    def test_adds_service_field(self):
        """Test that the service and search_id fields are added."""
        formatter = CustomJsonFormatter()
        record = _record()
        record.search_id = "abc123"

        log_record = {}
        formatter.add_fields(log_record, record, {})

        assert log_record.get("service") == "docspan"
        assert log_record.get("search_id") == "abc123"

    def test_renames_levelname_to_level(self):
        """Test that levelname is renamed to level."""
        formatter = CustomJsonFormatter()
        record = _record()

        log_record = {"levelname": "INFO", "asctime": "2024-06-30T12:00:00"}
        formatter.add_fields(log_record, record, {})

        assert "levelname" not in log_record
        assert log_record.get("level") == "INFO"
        assert log_record.get("timestamp") == "2024-06-30T12:00:00"

    def test_formats_json_line(self):
        """Test that a formatted record is one JSON object with extras."""
        formatter = CustomJsonFormatter(fmt="%(levelname)s %(name)s %(message)s")
        record = _record("Search completed")
        record.search_id = "abc123"
        record.result_count = 2

        data = json.loads(formatter.format(record))
        assert data["message"] == "Search completed"
        assert data["level"] == "INFO"
        assert data["result_count"] == 2
        assert data["service"] == "docspan"

    def test_event_defaults_to_log(self):
        """Test that every JSON line names an event."""
        formatter = CustomJsonFormatter()
        log_record = {}
        formatter.add_fields(log_record, _record(), {})
        assert log_record["event"] == "log"

    def test_explicit_event_kept(self):
        """Test that an event passed through extra is kept."""
        formatter = CustomJsonFormatter()
        record = _record("Oracle failed")
        record.event = "oracle_failed"
        log_record = {}
        formatter.add_fields(log_record, record, {})
        assert log_record["event"] == "oracle_failed"

    def test_duration_rounded(self):
        """Test that durations are written as milliseconds with three decimals."""
        formatter = CustomJsonFormatter(fmt="%(message)s")
        record = _record("Search completed")
        record.duration_ms = 12.345678
        data = json.loads(formatter.format(record))
        assert data["duration_ms"] == 12.346

    def test_document_fields_masked(self):
        """Test that identifiers in document-derived fields never reach the log."""
        formatter = CustomJsonFormatter(fmt="%(message)s")
        record = _record("Search completed")
        record.query = "RČ 940115/1234"
        record.document = "x" * 500
        data = json.loads(formatter.format(record))
        assert data["query"] == "RČ [BIRTH_NUMBER]"
        assert len(data["document"]) <= 60


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_json_format(self):
        """Test that JSON logging writes JSON lines to stdout."""
        root_logger = logging.getLogger()
        root_logger.handlers.clear()

        stream = io.StringIO()
        with patch("sys.stdout", stream):
            setup_logging(level="INFO", json_format=True)
            get_logger("test_json").info("Test message", extra={"custom_field": "value"})

        line = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert line["message"] == "Test message"
        assert line["custom_field"] == "value"
        assert line["service"] == "docspan"

    def test_setup_text_format(self):
        """Test that text format logging works."""
        root_logger = logging.getLogger()
        root_logger.handlers.clear()

        setup_logging(level="DEBUG", json_format=False)

        assert len(root_logger.handlers) == 1
        assert not isinstance(root_logger.handlers[0].formatter, CustomJsonFormatter)

    def test_text_format_shows_event(self):
        """Test that plain-text lines carry the search id and event name."""
        root_logger = logging.getLogger()
        root_logger.handlers.clear()

        stream = io.StringIO()
        with patch("sys.stdout", stream):
            setup_logging(level="INFO", json_format=False)
            get_logger("test_text").warning("Oracle failed", extra={"event": "oracle_failed"})

        assert "oracle_failed: Oracle failed" in stream.getvalue()

    def test_setup_from_environment(self):
        """Test that logging reads from environment variables."""
        root_logger = logging.getLogger()
        root_logger.handlers.clear()

        with patch.dict(
            "os.environ",
            {
                "DOCSPAN_LOG_LEVEL": "WARNING",
                "DOCSPAN_LOG_FORMAT": "text",
            },
        ):
            setup_logging()

        assert root_logger.level == logging.WARNING

    def test_replaces_handlers(self):
        """Test that repeated setup does not stack handlers."""
        setup_logging(level="INFO")
        setup_logging(level="INFO")
        assert len(logging.getLogger().handlers) == 1

    def test_quiets_presidio(self):
        """Test that presidio's recognizer chatter is raised to WARNING."""
        setup_logging(level="DEBUG")
        assert logging.getLogger("presidio-analyzer").level == logging.WARNING

    def test_handler_has_filter(self):
        """Test that the handler carries the search context filter."""
        setup_logging()
        handler = logging.getLogger().handlers[0]
        assert "SearchContextFilter" in [type(f).__name__ for f in handler.filters]


class TestSearchIdHelpers:
    """Tests for search ID helper functions."""

    def test_set_and_get_search_id(self):
        """Test setting and getting the search ID."""
        set_search_id("search-123")
        assert get_search_id() == "search-123"

    def test_default_search_id(self):
        """Test the default search ID is an empty string."""
        token = search_id_var.set("")
        try:
            assert get_search_id() == ""
        finally:
            search_id_var.reset(token)


class TestGetLogger:
    """Tests for get_logger function."""

    def test_returns_logger(self):
        """Test that get_logger returns a named logger."""
        logger = get_logger("test_module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "test_module"

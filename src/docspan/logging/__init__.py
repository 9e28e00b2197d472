"""Logging configuration module for docspan."""

from docspan.logging.setup import get_logger, set_search_id, setup_logging

__all__ = ["get_logger", "set_search_id", "setup_logging"]

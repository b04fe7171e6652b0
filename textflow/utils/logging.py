"""
Unified logging system for TextFlow.

This module provides a standardized logging interface for all components
of the pipeline with consistent formatting and contextual information.

Usage:
    from textflow.utils.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Running step")

    # With context attached to every record inside the block
    with LogContext(logger, step_index=1, step_name="summarize"):
        logger.debug("Calling provider")
"""

import json
import logging
import os
import sys
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional, Union


class RequestContextFilter(logging.Filter):
    """
    Filter that adds a request id to log records.
    """

    def __init__(self, request_id: Optional[str] = None):
        super().__init__()
        self.request_id = request_id or str(uuid.uuid4())

    def filter(self, record):
        record.request_id = getattr(record, "request_id", self.request_id)
        return True


class JsonFormatter(logging.Formatter):
    """
    Format log records as JSON for structured logging.
    """

    def format(self, record):
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "request_id": getattr(record, "request_id", "-"),
        }

        # Context added through LogContext
        if hasattr(record, "extra"):
            log_data.update(record.extra)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logger(
    name: str,
    level: Union[int, str] = None,
    log_format: str = None,
    request_id: Optional[str] = None,
    add_console_handler: bool = True,
) -> logging.Logger:
    """
    Configure and return a logger with the specified settings.

    Args:
        name: The name of the logger (usually __name__)
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: The format to use (json or text)
        request_id: Optional request ID for tracking related log entries
        add_console_handler: Whether to add a console handler

    Returns:
        A configured logger instance
    """
    level = level or os.getenv("LOG_LEVEL", "INFO")
    log_format = log_format or os.getenv("LOG_FORMAT", "text")

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers and filters to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    for existing_filter in logger.filters[:]:
        if isinstance(existing_filter, RequestContextFilter):
            logger.removeFilter(existing_filter)

    logger.addFilter(RequestContextFilter(request_id))

    json_formatter = JsonFormatter()
    text_formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - [%(request_id)s] - %(name)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    formatter = json_formatter if log_format.lower() == "json" else text_formatter

    if add_console_handler:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(
    name: str, level: Union[int, str] = None, request_id: Optional[str] = None
) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: The name of the logger (usually __name__)
        level: Override the default logging level for this logger
        request_id: Optional request ID for tracking related log entries

    Returns:
        A configured logger instance
    """
    return setup_logger(name, level=level, request_id=request_id)


def set_log_level(level: Union[int, str]) -> None:
    """Set the level of every logger under the textflow namespace."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logging.getLogger("textflow").setLevel(level)
    for name, candidate in logging.Logger.manager.loggerDict.items():
        if name.startswith("textflow.") and isinstance(candidate, logging.Logger):
            candidate.setLevel(level)


_log_context: ContextVar[Dict[str, Any]] = ContextVar("textflow_log_context", default={})
_base_record_factory = logging.getLogRecordFactory()


def _context_record_factory(*args, **kwargs):
    record = _base_record_factory(*args, **kwargs)
    context = _log_context.get()
    if context:
        record.extra = dict(getattr(record, "extra", {}), **context)
    return record


logging.setLogRecordFactory(_context_record_factory)


def get_log_context() -> Dict[str, Any]:
    """Return the context currently attached to log records."""
    return dict(_log_context.get())


class LogContext:
    """
    Context manager for temporarily adding context data to logs.

    Context is held in a context variable, so concurrent asyncio tasks each
    see only their own values.

    Usage:
        with LogContext(logger, step_index=0, step_name="clean_text"):
            logger.info("Running step")  # Will include the context data
    """

    def __init__(self, logger: logging.Logger, **context):
        self.logger = logger
        self.context = context
        self._token = None

    def __enter__(self):
        self._token = _log_context.set({**_log_context.get(), **self.context})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)

"""Tests for the logging utilities."""

import asyncio
import json
import logging

import pytest

from textflow.utils.logging import (
    JsonFormatter,
    LogContext,
    get_log_context,
    get_logger,
    set_log_level,
    setup_logger,
)


class ListHandler(logging.Handler):
    """Handler that keeps emitted records."""

    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured_logger():
    logger = setup_logger("textflow.tests.capture", level="DEBUG", add_console_handler=False)
    handler = ListHandler()
    logger.addHandler(handler)
    yield logger, handler
    logger.removeHandler(handler)


class TestSetupLogger:
    """Test logger configuration."""

    def test_level_from_string(self):
        """Test that string levels are resolved."""
        logger = setup_logger("textflow.tests.level", level="warning")
        assert logger.level == logging.WARNING

    def test_no_duplicate_handlers(self):
        """Test that repeated setup does not stack handlers."""
        setup_logger("textflow.tests.dupes")
        logger = setup_logger("textflow.tests.dupes")
        assert len(logger.handlers) == 1

    def test_request_id_attached(self, captured_logger):
        """Test that every record carries a request id."""
        logger, handler = captured_logger
        logger.info("hello")
        assert handler.records[-1].request_id

    def test_set_log_level(self):
        """Test that the namespace level is applied to existing loggers."""
        logger = get_logger("textflow.tests.namespace", level="INFO")
        set_log_level("ERROR")
        try:
            assert logger.level == logging.ERROR
        finally:
            set_log_level("DEBUG")


class TestLogContext:
    """Test contextual log data."""

    def test_context_added_and_removed(self, captured_logger):
        """Test that context is attached inside the block only."""
        logger, handler = captured_logger

        with LogContext(logger, step_index=1, step_name="summarize"):
            logger.info("inside")
            assert get_log_context() == {"step_index": 1, "step_name": "summarize"}
        logger.info("outside")

        inside, outside = handler.records[-2:]
        assert inside.extra == {"step_index": 1, "step_name": "summarize"}
        assert not hasattr(outside, "extra")
        assert get_log_context() == {}

    def test_nested_context(self, captured_logger):
        """Test that nested blocks merge and restore context."""
        logger, _ = captured_logger

        with LogContext(logger, run="a"):
            with LogContext(logger, step_index=0):
                assert get_log_context() == {"run": "a", "step_index": 0}
            assert get_log_context() == {"run": "a"}

    @pytest.mark.asyncio
    async def test_concurrent_tasks_are_isolated(self, captured_logger):
        """Test that concurrent tasks see only their own context."""
        logger, _ = captured_logger
        seen = {}

        async def task(name):
            with LogContext(logger, task=name):
                await asyncio.sleep(0.01)
                seen[name] = get_log_context()["task"]

        await asyncio.gather(task("a"), task("b"), task("c"))

        assert seen == {"a": "a", "b": "b", "c": "c"}


class TestJsonFormatter:
    """Test structured output."""

    def test_format_includes_context(self, captured_logger):
        """Test that context appears in the JSON document."""
        logger, handler = captured_logger

        with LogContext(logger, step_name="generate_title"):
            logger.warning("degraded")

        data = json.loads(JsonFormatter().format(handler.records[-1]))
        assert data["level"] == "WARNING"
        assert data["message"] == "degraded"
        assert data["step_name"] == "generate_title"
        assert "request_id" in data

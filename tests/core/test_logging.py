"""Tests for structured logging setup."""

import logging
from collections.abc import Iterator

import pytest
import structlog

from ab_monitor.core.logging import get_logger, log_context, setup_logging


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Undo global logging changes after the test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_configures_root_logger(self, restore_logging: None) -> None:
        """Test one stdout handler at the requested level."""
        setup_logging(log_level="debug", log_format="text")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert logging.getLogger("aiohttp.access").level == logging.WARNING

    def test_json_format(self, restore_logging: None) -> None:
        """Test JSON rendering is selected by format."""
        setup_logging(log_level="INFO", log_format="json")

        formatter = logging.getLogger().handlers[0].formatter
        assert isinstance(formatter, structlog.stdlib.ProcessorFormatter)
        assert isinstance(formatter.processors[-1], structlog.processors.JSONRenderer)


class TestLogContext:
    """Tests for log_context."""

    def test_binds_test_id(self) -> None:
        """Test test_id is bound only inside the block."""
        with log_context("checkout-cta"):
            assert structlog.contextvars.get_contextvars() == {"test_id": "checkout-cta"}
        assert "test_id" not in structlog.contextvars.get_contextvars()

    def test_get_logger(self) -> None:
        """Test loggers can be used without setup."""
        get_logger("ab_monitor.tests").info("logger_ready")

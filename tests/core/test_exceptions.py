"""Tests for custom exception hierarchy."""

import pytest

from ab_monitor.core.exceptions import (
    ABMonitorException,
    AnalysisError,
    ConfigurationError,
    InsufficientDataError,
    MonitorShutdownError,
)


class TestABMonitorException:
    """Tests for base ABMonitorException."""

    def test_default_message(self) -> None:
        """Test exception with default empty message."""
        exc = ABMonitorException()
        assert exc.message == ""
        assert str(exc) == ""

    def test_custom_message(self) -> None:
        """Test exception with custom message."""
        exc = ABMonitorException("Custom error message")
        assert exc.message == "Custom error message"
        assert str(exc) == "Custom error message"

    def test_is_exception(self) -> None:
        """Test that ABMonitorException inherits from Exception."""
        assert isinstance(ABMonitorException("test"), Exception)


class TestInsufficientDataError:
    """Tests for InsufficientDataError."""

    def test_default_message(self) -> None:
        """Test exception with default message."""
        exc = InsufficientDataError()
        assert exc.message == "At least 2 variations required for statistical analysis"

    def test_custom_message(self) -> None:
        """Test exception with custom message."""
        exc = InsufficientDataError("Variation control has no visitors")
        assert exc.message == "Variation control has no visitors"

    def test_can_be_caught_as_base(self) -> None:
        """Test exception can be caught as ABMonitorException."""
        with pytest.raises(ABMonitorException):
            raise InsufficientDataError()


class TestConfigurationError:
    """Tests for ConfigurationError."""

    def test_default_message(self) -> None:
        """Test exception with default message."""
        assert ConfigurationError().message == "Invalid configuration"

    def test_inheritance(self) -> None:
        """Test ConfigurationError inherits from ABMonitorException."""
        assert isinstance(ConfigurationError(), ABMonitorException)


class TestAnalysisError:
    """Tests for AnalysisError."""

    def test_default_message(self) -> None:
        """Test exception with default message."""
        exc = AnalysisError()
        assert exc.message == "Analysis failed"
        assert exc.test_id is None

    def test_test_id(self) -> None:
        """Test the failing test id is kept."""
        exc = AnalysisError("boom", test_id="checkout-cta")
        assert exc.test_id == "checkout-cta"
        assert str(exc) == "boom"


class TestMonitorShutdownError:
    """Tests for MonitorShutdownError."""

    def test_default_message(self) -> None:
        """Test exception with default message."""
        assert MonitorShutdownError().message == "Monitor has been shut down"

    def test_can_be_caught_as_base(self) -> None:
        """Test exception can be caught as ABMonitorException."""
        with pytest.raises(ABMonitorException):
            raise MonitorShutdownError()

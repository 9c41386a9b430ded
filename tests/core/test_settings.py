"""Tests for process settings."""

import pytest
from pydantic import ValidationError

from ab_monitor.core.config import Settings, get_settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default values."""
        for name in ("LOG_LEVEL", "LOG_FORMAT", "MAX_HISTORY_PER_TEST", "METRICS_ENABLED"):
            monkeypatch.delenv(f"ABMON_{name}", raising=False)

        settings = Settings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.log_format == "json"
        assert settings.max_history_per_test is None
        assert settings.metrics_enabled is True

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test values are read from ABMON_ prefixed variables."""
        monkeypatch.setenv("ABMON_MAX_HISTORY_PER_TEST", "50")
        monkeypatch.setenv("ABMON_METRICS_ENABLED", "false")

        settings = Settings(_env_file=None)

        assert settings.max_history_per_test == 50
        assert settings.metrics_enabled is False

    def test_invalid_history_limit(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a non-positive history limit is rejected."""
        monkeypatch.setenv("ABMON_MAX_HISTORY_PER_TEST", "0")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_get_settings_is_cached(self) -> None:
        """Test get_settings returns the same instance."""
        assert get_settings() is get_settings()

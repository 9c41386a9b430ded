"""Configuration management for ab-monitor."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ABMON_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format (json or text)")

    # History retention
    max_history_per_test: int | None = Field(
        default=None,
        ge=1,
        description="Maximum stored results per test (None keeps everything)",
    )

    # Prometheus
    metrics_enabled: bool = Field(default=True, description="Update Prometheus metrics")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

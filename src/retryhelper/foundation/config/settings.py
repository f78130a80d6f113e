"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated defaults for retry loops and logging from
environment variables. Supports .env files and nested configuration.

Example:
    >>> from retryhelper.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.retry.delay
    1.0
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # RETRYHELPER_RETRY_DELAY=0.5
    # RETRYHELPER_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, NonNegativeFloat, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYHELPER_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"
    colors: bool | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class RetrySettings(BaseSettings):
    """Defaults for retry loops that don't specify them."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYHELPER_RETRY_",
        extra="ignore",
    )

    delay: NonNegativeFloat = Field(default=1.0, description="Delay between attempts in seconds")
    raise_on_cancel: bool = Field(
        default=False,
        description="Raise RetryCancelledError instead of returning a default from stop-on-success loops",
    )
    name: str = Field(default="retry", min_length=1, description="Label bound into log records")


class RetryHelperSettings(BaseSettings):
    """Root settings for retryhelper.

    Loads configuration from environment variables with RETRYHELPER_ prefix.

    Example environment variables:
        RETRYHELPER_DEBUG=true
        RETRYHELPER_RETRY_DELAY=0.25
        RETRYHELPER_LOG_LEVEL=DEBUG
        RETRYHELPER_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="RETRYHELPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug mode")

    # Nested settings (loaded with RETRYHELPER_LOG_, RETRYHELPER_RETRY_)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)

    @computed_field
    @property
    def effective_log_level(self) -> str:
        """Log level after applying the debug switch."""
        return "DEBUG" if self.debug else self.logging.level


@lru_cache(maxsize=1)
def get_settings() -> RetryHelperSettings:
    """Get the global settings instance (cached)."""
    return RetryHelperSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()

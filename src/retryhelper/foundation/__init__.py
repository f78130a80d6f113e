"""Foundation layer: configuration and error types."""

from .config import LoggingSettings, RetryHelperSettings, RetrySettings, clear_settings_cache, get_settings
from .errors import ErrorCode, RetryCancelledError, RetryHelperError, classify_exception

__all__ = [
    "LoggingSettings",
    "RetryHelperSettings",
    "RetrySettings",
    "clear_settings_cache",
    "get_settings",
    "ErrorCode",
    "RetryCancelledError",
    "RetryHelperError",
    "classify_exception",
]

"""Error types for retryhelper.

- RetryHelperError: Base class for library errors
- RetryCancelledError: Opt-in signal that a retry loop was cancelled
- ErrorCode/classify_exception: Labels for failed attempts in logs
"""

from .errors import ErrorCode, RetryCancelledError, RetryHelperError, classify_exception
from .types import JsonDict, JsonPrimitive, JsonValue

__all__ = [
    "ErrorCode",
    "RetryCancelledError",
    "RetryHelperError",
    "classify_exception",
    "JsonDict",
    "JsonPrimitive",
    "JsonValue",
]

"""Exceptions raised by retryhelper and classification of attempt failures.

The retry loop never raises an operation's error to its caller; failures are
reduced to a boolean outcome. ``classify_exception`` only labels those
failures in log records.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache


class ErrorCode(StrEnum):
    """Coarse label for a failed attempt, used in log records."""
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_STATE = "INVALID_STATE"
    NOT_FOUND = "NOT_FOUND"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"


# Checked in order; first substring hit wins
_PATTERN_CODES: dict[str, ErrorCode] = {
    "cancel": ErrorCode.CANCELLED,
    "timeout": ErrorCode.TIMEOUT,
    "connection": ErrorCode.NETWORK_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "rate": ErrorCode.RATE_LIMITED,
    "permission": ErrorCode.PERMISSION_DENIED,
    "forbidden": ErrorCode.PERMISSION_DENIED,
    "parse": ErrorCode.PARSE_ERROR,
    "json": ErrorCode.PARSE_ERROR,
    "decode": ErrorCode.PARSE_ERROR,
    "notfound": ErrorCode.NOT_FOUND,
    "filenotfound": ErrorCode.NOT_FOUND,
    "runtime": ErrorCode.INVALID_STATE,
    "state": ErrorCode.INVALID_STATE,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES)


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> ErrorCode:
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return ErrorCode.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map exception to error code via pattern matching on name/message."""
    return _classify_cached(f"{type(exc).__name__} {exc}")


class RetryHelperError(Exception):
    """Base class for errors raised by retryhelper itself."""


class RetryCancelledError(RetryHelperError):
    """Retry loop stopped because its cancellation token was cancelled.

    Only raised where the caller asked for it: ``LoopResult.unwrap()``,
    ``CancellationToken.raise_if_cancelled()`` and the stop-on-success entry
    points called with ``raise_on_cancel=True``.
    """

    __slots__ = ("attempts", "failures")

    def __init__(self, message: str = "retry loop was cancelled", *, attempts: int = 0, failures: int = 0) -> None:
        self.attempts = attempts
        self.failures = failures
        super().__init__(message)

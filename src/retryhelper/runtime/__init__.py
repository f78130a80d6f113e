"""Runtime: concurrency primitives, observability and the retry loop."""

from .concurrency import CancellationToken, resolve_async, resolve_blocking, sleep_async, sleep_blocking
from .observability import configure_logging, get_logger, log_context
from .retry import (
    NO_PARAM,
    AttemptOutcome,
    Completion,
    LoopResult,
    LoopStatus,
    RetryConfiguration,
    RetryLoop,
    retry_action,
    retry_action_async,
    retry_func,
    retry_func_async,
)

__all__ = [
    "CancellationToken",
    "resolve_async",
    "resolve_blocking",
    "sleep_async",
    "sleep_blocking",
    "configure_logging",
    "get_logger",
    "log_context",
    "NO_PARAM",
    "AttemptOutcome",
    "Completion",
    "LoopResult",
    "LoopStatus",
    "RetryConfiguration",
    "RetryLoop",
    "retry_action",
    "retry_action_async",
    "retry_func",
    "retry_func_async",
]

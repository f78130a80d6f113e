"""retryhelper - retry an operation at a fixed delay until it succeeds or is cancelled.

A small library for the common "try again later" loop: run a callable,
wait, run it again, and tell an observer how each attempt went. Works from
plain threads (blocking) and from asyncio code (suspending), with operations
that return values, coroutines or futures.

Quick Start (blocking):
    >>> from retryhelper import CancellationToken, retry_func
    >>>
    >>> token = CancellationToken()
    >>> config = retry_func(load_config, "settings.toml", delay=0.5, cancellation=token)

Quick Start (asyncio):
    >>> from retryhelper import CancellationToken, Progress, retry_action_async
    >>>
    >>> token = CancellationToken()
    >>> progress = Progress(lambda ok: print(f"Progress: {ok}"))
    >>> task = asyncio.create_task(
    ...     retry_action_async(send_heartbeat, delay=1.0, cancellation=token, progress=progress)
    ... )
    >>> ...
    >>> token.cancel()  # loop exits at its next checkpoint
    >>> await task

Full result instead of a bare value:
    >>> from retryhelper import RetryConfiguration, RetryLoop, Completion
    >>>
    >>> loop = RetryLoop(ping, RetryConfiguration(delay=0.2, cancellation=token),
    ...                  completion=Completion.STOP_ON_SUCCESS)
    >>> result = loop.run()
    >>> if result.cancelled:
    ...     print(f"gave up after {result.attempts} attempts")

Configuration (environment, applied on first use unless configure_logging() is called):
    RETRYHELPER_RETRY_DELAY=0.5
    RETRYHELPER_RETRY_RAISE_ON_CANCEL=true
    RETRYHELPER_LOG_LEVEL=DEBUG
    RETRYHELPER_LOG_FORMAT=json
"""

from .foundation import (
    ErrorCode,
    RetryCancelledError,
    RetryHelperError,
    RetryHelperSettings,
    clear_settings_cache,
    get_settings,
)
from .io import Progress, ProgressObserver
from .runtime import (
    NO_PARAM,
    AttemptOutcome,
    CancellationToken,
    Completion,
    LoopResult,
    LoopStatus,
    RetryConfiguration,
    RetryLoop,
    configure_logging,
    get_logger,
    log_context,
    retry_action,
    retry_action_async,
    retry_func,
    retry_func_async,
)
from .runtime.observability import configure_logging_from_settings

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "retry_action",
    "retry_action_async",
    "retry_func",
    "retry_func_async",
    # Loop & results
    "RetryLoop",
    "RetryConfiguration",
    "Completion",
    "NO_PARAM",
    "AttemptOutcome",
    "LoopResult",
    "LoopStatus",
    # Cancellation & progress
    "CancellationToken",
    "Progress",
    "ProgressObserver",
    # Errors
    "RetryHelperError",
    "RetryCancelledError",
    "ErrorCode",
    # Settings & logging
    "RetryHelperSettings",
    "get_settings",
    "clear_settings_cache",
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "log_context",
]

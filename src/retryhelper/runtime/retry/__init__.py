"""Fixed-delay retry loops with cooperative cancellation.

Runs an operation again and again, waiting a fixed delay before each
attempt, until it succeeds (``retry_func*``) or the cancellation token is
cancelled (all variants). Each executed attempt is reported to an optional
observer as True/False.

Example:
    >>> from retryhelper.runtime.concurrency import CancellationToken
    >>> from retryhelper.runtime.retry import retry_func
    >>>
    >>> token = CancellationToken()
    >>> _ = token.cancel_after(30.0)
    >>> port = retry_func(open_port, "COM3", delay=0.5, cancellation=token, progress=print)
"""

from .api import retry_action, retry_action_async, retry_func, retry_func_async
from .config import RetryConfiguration
from .loop import NO_PARAM, Completion, Mode, RetryLoop
from .outcome import AttemptOutcome, LoopResult, LoopStatus

__all__ = [
    # Entry points
    "retry_action",
    "retry_action_async",
    "retry_func",
    "retry_func_async",
    # Loop
    "RetryLoop",
    "Completion",
    "Mode",
    "NO_PARAM",
    # Configuration & results
    "RetryConfiguration",
    "AttemptOutcome",
    "LoopResult",
    "LoopStatus",
]

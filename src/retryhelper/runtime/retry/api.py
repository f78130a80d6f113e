"""Entry points for retrying an operation at a fixed delay.

Four functions cover the eight call shapes: blocking or suspending, run
forever or stop on success, each with or without a parameter.

    ==================  ==========  ===============  ===========================
    Function            Mode        Completion       Returns
    ==================  ==========  ===============  ===========================
    retry_action        blocking    run forever      None
    retry_action_async  suspending  run forever      None
    retry_func          blocking    stop on success  value (default if cancelled)
    retry_func_async    suspending  stop on success  value (default if cancelled)
    ==================  ==========  ===============  ===========================

Example:
    >>> token = CancellationToken()
    >>>
    >>> # Poll a service every second until the UI cancels
    >>> task = asyncio.create_task(
    ...     retry_action_async(refresh_status, delay=1.0, cancellation=token, progress=show_outcome)
    ... )
    >>>
    >>> # Block until a lock file can be read
    >>> content = retry_func(read_text, "/var/run/app.lock", delay=0.5, cancellation=token)
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Callable, TypeVar

from retryhelper.foundation.config import get_settings

from .config import RetryConfiguration
from .loop import NO_PARAM, Completion, RetryLoop

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from retryhelper.io.progress import ProgressObserver
    from retryhelper.runtime.concurrency import CancellationToken

    from .outcome import LoopResult

    Observer = ProgressObserver | Callable[[bool], None]

T = TypeVar("T")


def retry_action(
    action: Callable[..., object],
    param: object = NO_PARAM,
    /,
    *,
    delay: float | timedelta | None = None,
    cancellation: CancellationToken | None = None,
    progress: Observer | None = None,
    config: RetryConfiguration | None = None,
) -> None:
    """Run ``action`` every ``delay`` seconds on this thread until cancelled.

    Every attempt is reported to ``progress`` as True (completed) or False
    (raised). Errors raised by ``action`` never reach the caller.

    Args:
        action: Callable to retry; called with ``param`` when one is given
        param: Single argument passed unchanged to every attempt
        delay: Wait before each attempt (default: ``RETRYHELPER_RETRY_DELAY``)
        cancellation: Token that stops the loop
        progress: Observer or ``(bool) -> None`` callable
        config: Prebuilt configuration instead of delay/cancellation/progress
    """
    cfg = _configure(config, delay, cancellation, progress)
    RetryLoop(action, cfg, param=param).run()


async def retry_action_async(
    action: Callable[..., object],
    param: object = NO_PARAM,
    /,
    *,
    delay: float | timedelta | None = None,
    cancellation: CancellationToken | None = None,
    progress: Observer | None = None,
    config: RetryConfiguration | None = None,
) -> None:
    """Async version of ``retry_action``: suspends during delays.

    ``action`` may return a coroutine, Task or Future; it is awaited as
    part of the attempt.
    """
    cfg = _configure(config, delay, cancellation, progress)
    await RetryLoop(action, cfg, param=param).run_async()


def retry_func(
    func: Callable[..., T | Awaitable[T]],
    param: object = NO_PARAM,
    /,
    *,
    delay: float | timedelta | None = None,
    cancellation: CancellationToken | None = None,
    progress: Observer | None = None,
    config: RetryConfiguration | None = None,
    default: T | None = None,
    raise_on_cancel: bool | None = None,
) -> T | None:
    """Block until an attempt of ``func`` succeeds and return its value.

    ``func`` may return a plain value or a deferred result; a coroutine is
    run to completion on an event loop, futures are waited on.

    Args:
        func: Callable to retry; called with ``param`` when one is given
        param: Single argument passed unchanged to every attempt
        delay: Wait before each attempt (default: ``RETRYHELPER_RETRY_DELAY``)
        cancellation: Token that stops the loop
        progress: Observer or ``(bool) -> None`` callable
        config: Prebuilt configuration instead of delay/cancellation/progress
        default: Returned when the loop is cancelled before any success
        raise_on_cancel: Raise RetryCancelledError instead of returning
            ``default`` (default: ``RETRYHELPER_RETRY_RAISE_ON_CANCEL``)

    Returns:
        Value of the first successful attempt, or ``default``

    Raises:
        RetryCancelledError: If cancelled and ``raise_on_cancel`` is set
    """
    cfg = _configure(config, delay, cancellation, progress)
    result: LoopResult[T] = RetryLoop(func, cfg, param=param, completion=Completion.STOP_ON_SUCCESS).run()
    return _finish(result, default, raise_on_cancel)


async def retry_func_async(
    func: Callable[..., T | Awaitable[T]],
    param: object = NO_PARAM,
    /,
    *,
    delay: float | timedelta | None = None,
    cancellation: CancellationToken | None = None,
    progress: Observer | None = None,
    config: RetryConfiguration | None = None,
    default: T | None = None,
    raise_on_cancel: bool | None = None,
) -> T | None:
    """Async version of ``retry_func``: suspends during delays and deferred results."""
    cfg = _configure(config, delay, cancellation, progress)
    loop: RetryLoop[T] = RetryLoop(func, cfg, param=param, completion=Completion.STOP_ON_SUCCESS)
    return _finish(await loop.run_async(), default, raise_on_cancel)


def _configure(
    config: RetryConfiguration | None,
    delay: float | timedelta | None,
    cancellation: CancellationToken | None,
    progress: Observer | None,
) -> RetryConfiguration:
    if config is None:
        return RetryConfiguration.from_settings(delay=delay, cancellation=cancellation, progress=progress)
    if delay is not None or cancellation is not None or progress is not None:
        raise TypeError("pass either config or delay/cancellation/progress, not both")
    return config


def _finish(result: LoopResult[T], default: T | None, raise_on_cancel: bool | None) -> T | None:
    if raise_on_cancel is None:
        raise_on_cancel = get_settings().retry.raise_on_cancel
    return result.unwrap() if raise_on_cancel else result.unwrap_or(default)  # type: ignore[arg-type]

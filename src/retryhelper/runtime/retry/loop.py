"""The retry loop: one algorithm, two drivers.

Each cycle is:

    cancelled? -> wait(delay) -> cancelled? -> attempt -> report -> repeat/stop

The cycle is written once, as a generator that yields the two effectful
steps (wait, attempt). ``RetryLoop.run`` performs those steps by blocking
the calling thread; ``RetryLoop.run_async`` performs them by awaiting on the
running event loop. The checkpoints and the stop decision are shared.

Example:
    >>> token = CancellationToken()
    >>> loop = RetryLoop(fetch_config, RetryConfiguration(delay=0.5, cancellation=token),
    ...                  completion=Completion.STOP_ON_SUCCESS)
    >>> result = loop.run()
    >>> result.status, result.attempts
    (<LoopStatus.SUCCEEDED: 'succeeded'>, 1)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Generator
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Callable, Final, Generic, TypeVar

from retryhelper.foundation.errors import classify_exception
from retryhelper.runtime.concurrency import resolve_async, resolve_blocking, sleep_async, sleep_blocking
from retryhelper.runtime.observability import get_logger

from .outcome import AttemptOutcome, LoopResult, LoopStatus

if TYPE_CHECKING:
    from retryhelper.runtime.observability import BoundLogger

    from .config import RetryConfiguration

T = TypeVar("T")


class _NoParam:
    """Sentinel type: the operation takes no argument."""

    __slots__ = ()
    _instance: _NoParam | None = None

    def __new__(cls) -> _NoParam:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_PARAM"


NO_PARAM: Final = _NoParam()


class Completion(StrEnum):
    """When a retry loop stops on its own (it always stops on cancellation)."""
    RUN_FOREVER = "run_forever"          # Keep attempting and reporting until cancelled
    STOP_ON_SUCCESS = "stop_on_success"  # Return the value of the first successful attempt


class Mode(StrEnum):
    """How the loop waits."""
    BLOCKING = "blocking"
    SUSPENDING = "suspending"


@dataclass(slots=True, frozen=True)
class _Wait:
    delay: float


@dataclass(slots=True, frozen=True)
class _Attempt:
    number: int


class RetryLoop(Generic[T]):
    """Repeatedly run an operation at a fixed delay until success or cancellation.

    The operation is called with no argument, or with ``param`` when one is
    given. It may return a plain value or a deferred result (coroutine,
    asyncio Task/Future, ``concurrent.futures.Future``); deferred results are
    waited on as part of the attempt.

    Any ``Exception`` raised by an attempt is absorbed and counts as a failed
    attempt. Exceptions raised by the progress observer propagate.

    Attributes:
        operation: Callable retried by the loop
        config: Delay, cancellation token and observer
        param: Argument passed to every attempt (``NO_PARAM`` for none)
        completion: RUN_FOREVER or STOP_ON_SUCCESS
    """

    __slots__ = ("operation", "config", "param", "completion")

    def __init__(
        self,
        operation: Callable[..., object],
        config: RetryConfiguration,
        *,
        param: object = NO_PARAM,
        completion: Completion = Completion.RUN_FOREVER,
    ) -> None:
        if not callable(operation):
            raise TypeError(f"operation must be callable, got {type(operation).__name__}")
        self.operation = operation
        self.config = config
        self.param = param
        self.completion = Completion(completion)

    # ─────────────────────────────────────────────────────────────────────
    # Drivers
    # ─────────────────────────────────────────────────────────────────────

    def run(self) -> LoopResult[T]:
        """Run the loop on the calling thread, blocking it for the loop's lifetime."""
        token = self.config.cancellation
        steps = self._cycle(self._logger(Mode.BLOCKING))
        reply: object = None
        try:
            while True:
                step = steps.send(reply)
                if isinstance(step, _Wait):
                    reply = sleep_blocking(step.delay, token)
                else:
                    reply = self._attempt_blocking(step.number)
        except StopIteration as stop:
            return stop.value
        finally:
            steps.close()

    async def run_async(self) -> LoopResult[T]:
        """Run the loop as a coroutine, suspending during delays and deferred results."""
        token = self.config.cancellation
        steps = self._cycle(self._logger(Mode.SUSPENDING))
        reply: object = None
        try:
            while True:
                step = steps.send(reply)
                if isinstance(step, _Wait):
                    reply = await sleep_async(step.delay, token)
                else:
                    reply = await self._attempt_async(step.number)
        except StopIteration as stop:
            return stop.value
        finally:
            steps.close()

    # ─────────────────────────────────────────────────────────────────────
    # Shared algorithm
    # ─────────────────────────────────────────────────────────────────────

    def _cycle(self, log: BoundLogger) -> Generator[_Wait | _Attempt, Any, LoopResult[T]]:
        token = self.config.cancellation
        progress = self.config.progress
        attempts = failures = 0

        while True:
            if token.cancelled:
                break
            yield _Wait(self.config.delay)
            # The wait ends early on cancellation
            if token.cancelled:
                break

            attempts += 1
            outcome: AttemptOutcome[T] = yield _Attempt(attempts)
            if not outcome.success:
                failures += 1
            _log_attempt(log, outcome)

            if progress is not None:
                progress.report(outcome.success)

            if outcome.success and self.completion is Completion.STOP_ON_SUCCESS:
                log.info("retry loop succeeded", attempts=attempts, failures=failures)
                return LoopResult(LoopStatus.SUCCEEDED, outcome.value, attempts, failures)

        log.info("retry loop cancelled", attempts=attempts, failures=failures)
        return LoopResult(LoopStatus.CANCELLED, None, attempts, failures)

    def _invoke(self) -> object:
        if self.param is NO_PARAM:
            return self.operation()
        return self.operation(self.param)

    def _attempt_blocking(self, number: int) -> AttemptOutcome[T]:
        start = time.perf_counter()
        try:
            value = resolve_blocking(self._invoke())
        except Exception as exc:
            return AttemptOutcome(number, False, error=exc, elapsed=time.perf_counter() - start)
        return AttemptOutcome(number, True, value=value, elapsed=time.perf_counter() - start)  # type: ignore[arg-type]

    async def _attempt_async(self, number: int) -> AttemptOutcome[T]:
        start = time.perf_counter()
        try:
            value = await resolve_async(self._invoke())
        except asyncio.CancelledError as exc:
            # Cancellation of the task driving this loop is not an attempt failure
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            return AttemptOutcome(number, False, error=exc, elapsed=time.perf_counter() - start)  # type: ignore[arg-type]
        except Exception as exc:
            return AttemptOutcome(number, False, error=exc, elapsed=time.perf_counter() - start)
        return AttemptOutcome(number, True, value=value, elapsed=time.perf_counter() - start)  # type: ignore[arg-type]

    def _logger(self, mode: Mode) -> BoundLogger:
        return get_logger("retryhelper.retry").bind_loop(
            self.config.name, mode.value, completion=self.completion.value,
        )

    def __repr__(self) -> str:
        name = getattr(self.operation, "__qualname__", repr(self.operation))
        return (f"RetryLoop({name}, delay={self.config.delay}, "
                f"completion={self.completion.value}, param={self.param!r})")


def _log_attempt(log: BoundLogger, outcome: AttemptOutcome[object]) -> None:
    if not log.is_enabled_for(logging.DEBUG):
        return
    elapsed_ms = round(outcome.elapsed * 1000, 2)
    if outcome.success:
        log.debug("attempt succeeded", attempt=outcome.number, elapsed_ms=elapsed_ms)
        return
    error = outcome.error
    log.debug(
        "attempt failed",
        attempt=outcome.number,
        elapsed_ms=elapsed_ms,
        error_type=type(error).__name__,
        error_code=classify_exception(error).value if error is not None else None,
        error=str(error),
    )

"""Cooperative cancellation signal shared between a retry loop and its caller.

A ``CancellationToken`` is a thread-safe flag. Any thread may cancel it;
blocking code waits on it with ``wait()``, async code registers a callback
that wakes the event loop. Cancellation never interrupts running work; it
is observed only where code checks for it.

Example:
    >>> token = CancellationToken()
    >>> token.cancelled
    False
    >>> token.cancel()
    >>> token.cancelled
    True
"""

from __future__ import annotations

import threading
from typing import Callable

from retryhelper.foundation.errors import RetryCancelledError
from retryhelper.runtime.observability.logging import get_logger


class CancellationToken:
    """Thread-safe, one-shot cancellation flag with callbacks.

    Attributes:
        cancelled: Whether ``cancel()`` has been called

    Example:
        >>> token = CancellationToken()
        >>> timer = token.cancel_after(5.0)  # cancel from a background timer
        >>> token.wait(0.01)  # blocks up to 10ms, True once cancelled
        False
    """

    __slots__ = ("_event", "_lock", "_callbacks", "_timers")

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self._timers: list[threading.Timer] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def is_cancelled(self) -> bool:
        """Method form of ``cancelled`` for use as a predicate."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Idempotent; callbacks run once, on this thread."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
            timers, self._timers = self._timers, []

        for timer in timers:
            timer.cancel()
        for callback in callbacks:
            self._run_callback(callback)

    def cancel_after(self, seconds: float) -> threading.Timer:
        """Cancel from a daemon timer thread after ``seconds``.

        The returned timer can be cancelled to abort the scheduled cancellation.
        """
        if seconds < 0:
            raise ValueError(f"seconds must be non-negative, got {seconds}")
        timer = threading.Timer(seconds, self.cancel)
        timer.daemon = True
        with self._lock:
            if self._event.is_set():
                return timer
            self._timers.append(timer)
        timer.start()
        return timer

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run ``callback`` when cancelled, immediately if already cancelled.

        Returns:
            Callable that unregisters the callback (no-op once it has run)
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                registered = True
            else:
                registered = False

        if not registered:
            self._run_callback(callback)
            return _noop

        def unregister() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unregister

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or ``timeout`` seconds pass.

        Returns:
            True if the token is cancelled
        """
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RetryCancelledError()

    @staticmethod
    def _run_callback(callback: Callable[[], None]) -> None:
        # Remaining callbacks still run if one raises
        try:
            callback()
        except Exception:
            get_logger("retryhelper.cancellation").exception("cancellation callback raised", callback=repr(callback))

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


def _noop() -> None:
    pass

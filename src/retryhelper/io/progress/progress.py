"""Progress reporting for retry loops.

A retry loop reports one boolean per executed attempt: ``True`` when the
operation completed, ``False`` when it raised. Observers receive the report
synchronously, in attempt order.

Example:
    >>> outcomes: list[bool] = []
    >>> progress = Progress(outcomes.append)
    >>> progress.report(False)
    >>> progress.report(True)
    >>> outcomes
    [False, True]
"""

from __future__ import annotations

import threading
from typing import Callable, Generic, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class ProgressObserver(Protocol):
    """Protocol for anything that accepts attempt outcome reports."""

    def report(self, value: bool) -> None: ...


class Progress(Generic[T]):
    """Fan-out observer that forwards each report to subscribed handlers.

    Handlers are called on the reporting thread, in subscription order.
    Exceptions raised by a handler propagate to the reporter.

    Example:
        >>> progress: Progress[bool] = Progress()
        >>> unsubscribe = progress.subscribe(lambda ok: print("ok" if ok else "failed"))
        >>> progress.report(True)
        ok
        >>> unsubscribe()
        >>> progress.report(True)
    """

    __slots__ = ("_handlers", "_lock")

    def __init__(self, handler: Callable[[T], None] | None = None) -> None:
        self._handlers: list[Callable[[T], None]] = [handler] if handler is not None else []
        self._lock = threading.Lock()

    def subscribe(self, handler: Callable[[T], None]) -> Callable[[], None]:
        """Add a handler. Returns a callable that removes it again."""
        with self._lock:
            self._handlers.append(handler)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return unsubscribe

    def report(self, value: T) -> None:
        with self._lock:
            handlers = tuple(self._handlers)
        for handler in handlers:
            handler(value)

    __call__ = report

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"Progress(handlers={len(self._handlers)})"


def as_observer(observer: ProgressObserver | Callable[[bool], None] | None) -> ProgressObserver | None:
    """Normalize a bare callable into a ``Progress``; observers pass through."""
    if observer is None or isinstance(observer, ProgressObserver):
        return observer
    if callable(observer):
        return Progress(observer)
    raise TypeError(f"progress must be a ProgressObserver or a callable, got {type(observer).__name__}")

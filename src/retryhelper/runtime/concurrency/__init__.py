"""Concurrency primitives used by the retry loop.

Key Components:
    - CancellationToken: Thread-safe cooperative cancellation signal
    - sleep_blocking / sleep_async: Delays that end early on cancellation
    - resolve_blocking / resolve_async: Wait on deferred results (coroutines,
      tasks, futures) from sync or async code

Example:
    >>> from retryhelper.runtime.concurrency import CancellationToken, sleep_async
    >>>
    >>> token = CancellationToken()
    >>> cancelled = await sleep_async(1.0, token)
"""

from __future__ import annotations

from .cancellation import CancellationToken
from .interop import is_deferred, resolve_async, resolve_blocking, run_coroutine_blocking
from .wait import sleep_async, sleep_blocking

__all__ = [
    "CancellationToken",
    "is_deferred",
    "resolve_async",
    "resolve_blocking",
    "run_coroutine_blocking",
    "sleep_async",
    "sleep_blocking",
]

"""Cancellation-aware delays.

Both primitives wait for ``delay`` seconds but return as soon as the token is
cancelled. Neither raises on cancellation; they report it through the return
value so the caller decides what cancellation means. A delay longer than the
platform can time (``float("inf")``, ``timedelta.max``) waits for cancellation
alone.

    - sleep_blocking: blocks the calling thread
    - sleep_async: suspends the current task; other tasks keep running

Example:
    >>> token = CancellationToken()
    >>> _ = token.cancel_after(0.1)
    >>> sleep_blocking(10.0, token)  # returns after ~0.1s
    True
"""

from __future__ import annotations

import asyncio
import contextlib
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .cancellation import CancellationToken


def sleep_blocking(delay: float, token: CancellationToken) -> bool:
    """Block for ``delay`` seconds or until cancelled.

    Returns:
        True if the token was cancelled when the wait ended
    """
    if delay <= 0:
        return token.cancelled
    return token.wait(_timeout(delay))


async def sleep_async(delay: float, token: CancellationToken) -> bool:
    """Suspend for ``delay`` seconds or until cancelled.

    The token may be cancelled from any thread; its callback hands the wake-up
    to this event loop with ``call_soon_threadsafe``.

    Returns:
        True if the token was cancelled when the wait ended
    """
    if token.cancelled:
        return True
    if delay <= 0:
        # Still a suspension point
        await asyncio.sleep(0)
        return token.cancelled

    loop = asyncio.get_running_loop()
    woken: asyncio.Future[None] = loop.create_future()

    def wake() -> None:
        # Loop may already be closed if the waiting task is gone
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(_resolve, woken)

    unregister = token.register(wake)
    try:
        await asyncio.wait({woken}, timeout=_timeout(delay))
    finally:
        unregister()
        if not woken.done():
            woken.cancel()
    return token.cancelled


def _resolve(fut: asyncio.Future[None]) -> None:
    if not fut.done():
        fut.set_result(None)


def _timeout(delay: float) -> float | None:
    # Beyond the platform's longest timed wait (or infinite): wait for cancellation only
    return None if delay > threading.TIMEOUT_MAX else delay

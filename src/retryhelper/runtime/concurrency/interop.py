"""Resolving deferred results from blocking and async code.

An operation may hand back its result later: as a coroutine object that has
not been scheduled yet, as an asyncio Task/Future that is already running,
or as a ``concurrent.futures.Future`` from an executor. These helpers turn
any of those into the final value:

    - resolve_blocking: block the calling thread until the value is ready
    - resolve_async: await the value from a coroutine
    - run_coroutine_blocking: run a coroutine to completion from sync code

Unscheduled coroutines are scheduled before being waited on. Anything that
is already scheduled is waited on as-is and never scheduled a second time.

Example:
    >>> async def fetch() -> int:
    ...     return 42
    >>> resolve_blocking(fetch())
    42
    >>> resolve_blocking(7)  # plain values pass through
    7
"""

from __future__ import annotations

import asyncio
import contextvars
import inspect
import threading
from concurrent.futures import Future as ConcurrentFuture
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Coroutine

T = TypeVar("T")


def is_deferred(value: object) -> bool:
    """Whether ``value`` is a result that still has to be waited on."""
    return isinstance(value, ConcurrentFuture) or inspect.isawaitable(value)


# ─────────────────────────────────────────────────────────────────────────────
# Blocking resolution
# ─────────────────────────────────────────────────────────────────────────────

def resolve_blocking(value: object) -> object:
    """Block until a deferred result completes; return plain values unchanged.

    Raises:
        Exception: Whatever the deferred computation raised
        RuntimeError: If ``value`` is an asyncio future owned by the event
            loop running on this very thread (blocking would deadlock)
    """
    if isinstance(value, ConcurrentFuture):
        return value.result()
    if asyncio.isfuture(value):
        return _block_on_loop_future(value)
    if inspect.iscoroutine(value):
        return run_coroutine_blocking(value)
    if inspect.isawaitable(value):
        return run_coroutine_blocking(_await(value))
    return value


def run_coroutine_blocking(coro: Coroutine[object, object, T]) -> T:
    """Run a coroutine to completion from synchronous code.

    1. No running loop on this thread -> ``asyncio.run()``
    2. Called from inside a running loop -> run on a fresh loop in a helper thread

    Context variables (e.g. ``log_context``) are carried into the helper thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    # Inside a running loop (e.g. blocking retry called from async code)
    return _run_in_thread_loop(coro)


def _run_in_thread_loop(coro: Coroutine[object, object, T]) -> T:
    """Run coroutine in a new thread with its own event loop."""
    result: T | None = None
    error: BaseException | None = None
    ctx = contextvars.copy_context()

    def runner() -> None:
        nonlocal result, error
        try:
            result = ctx.run(asyncio.run, coro)
        except BaseException as e:
            error = e

    thread = threading.Thread(target=runner, name="retryhelper-resolve", daemon=True)
    thread.start()
    thread.join()

    if error is not None:
        raise error
    return result  # type: ignore[return-value]


def _block_on_loop_future(fut: asyncio.Future[T]) -> T:
    """Wait for an asyncio future that is bound to some event loop."""
    if fut.done():
        return fut.result()

    loop = fut.get_loop()
    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None

    if running is loop:
        raise RuntimeError("cannot block on a future owned by the event loop running on this thread")
    if loop.is_running():
        # Loop lives on another thread: wait from here without touching it
        return asyncio.run_coroutine_threadsafe(_await(fut), loop).result()
    return loop.run_until_complete(fut)


# ─────────────────────────────────────────────────────────────────────────────
# Async resolution
# ─────────────────────────────────────────────────────────────────────────────

async def resolve_async(value: object) -> object:
    """Await a deferred result; return plain values unchanged.

    Coroutines are wrapped in a Task first so they are scheduled on the
    running loop; Tasks and Futures are awaited directly; executor futures
    are bridged with ``asyncio.wrap_future``.
    """
    if isinstance(value, ConcurrentFuture):
        return await asyncio.wrap_future(value)
    if asyncio.isfuture(value):
        return await value
    if inspect.isawaitable(value):
        return await asyncio.ensure_future(value)
    return value


async def _await(awaitable: Awaitable[T]) -> T:
    return await awaitable

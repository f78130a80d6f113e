"""Tests for suspending retry loops (retry_action_async, retry_func_async, RetryLoop.run_async)."""

from __future__ import annotations

import asyncio
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from retryhelper import (
    CancellationToken,
    Completion,
    LoopStatus,
    RetryCancelledError,
    RetryConfiguration,
    RetryLoop,
    retry_action_async,
    retry_func_async,
)


class TestCheckpoints:
    """Cancellation is observed before and after every wait, never mid-attempt."""

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, token: CancellationToken, reports: list[bool]) -> None:
        calls: list[int] = []
        token.cancel()

        await retry_action_async(lambda: calls.append(1), delay=0, cancellation=token, progress=reports.append)
        value = await retry_func_async(lambda: calls.append(1), delay=0, cancellation=token, default="fallback")

        assert calls == []
        assert reports == []
        assert value == "fallback"

    @pytest.mark.asyncio
    async def test_run_forever_until_cancelled(self, token: CancellationToken, reports: list[bool]) -> None:
        calls: list[int] = []

        def op() -> None:
            calls.append(1)
            if len(calls) == 5:
                token.cancel()

        await retry_action_async(op, delay=0.001, cancellation=token, progress=reports.append)

        assert len(calls) == 5
        assert reports == [True] * 5

    @pytest.mark.asyncio
    async def test_cancel_from_other_thread_wakes_delay(self, token: CancellationToken) -> None:
        calls: list[int] = []
        token.cancel_after(0.05)

        start = time.monotonic()
        await retry_action_async(lambda: calls.append(1), delay=10.0, cancellation=token)

        assert time.monotonic() - start < 2.0
        assert calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("delay", [float("inf"), timedelta.max])
    async def test_unbounded_delay_waits_for_cancellation(
        self, token: CancellationToken, delay: float | timedelta
    ) -> None:
        token.cancel_after(0.05)

        assert await retry_func_async(lambda: 1, delay=delay, cancellation=token, default="x") == "x"

    @pytest.mark.asyncio
    async def test_always_failing_with_timed_cancellation(self, token: CancellationToken, reports: list[bool]) -> None:
        """Delay 100ms, cancelled at 350ms: three failed attempts, then exit."""
        def op() -> None:
            raise ConnectionError("no route to host")

        token.cancel_after(0.35)
        await retry_action_async(op, delay=0.1, cancellation=token, progress=reports.append)

        assert reports == [False, False, False]

    @pytest.mark.asyncio
    async def test_attempt_in_flight_runs_to_completion(self, token: CancellationToken, reports: list[bool]) -> None:
        """Cancelling while an attempt is awaited does not interrupt it."""
        finished: list[bool] = []

        async def slow() -> str:
            token.cancel()
            await asyncio.sleep(0.02)
            finished.append(True)
            return "late"

        value = await retry_func_async(slow, delay=0, cancellation=token, progress=reports.append)

        assert finished == [True]
        assert value == "late"
        assert reports == [True]


class TestStopOnSuccess:

    @pytest.mark.asyncio
    async def test_returns_value_of_kth_attempt(self, token: CancellationToken, reports: list[bool]) -> None:
        calls: list[str] = []

        async def connect(host: str) -> str:
            calls.append(host)
            if len(calls) < 3:
                raise ConnectionRefusedError(host)
            return f"connected to {host}"

        value = await retry_func_async(connect, "db", delay=0.001, cancellation=token, progress=reports.append)

        assert value == "connected to db"
        assert calls == ["db", "db", "db"]
        assert reports == [False, False, True]

    @pytest.mark.asyncio
    async def test_raise_on_cancel(self, token: CancellationToken) -> None:
        def op() -> None:
            token.cancel()
            raise RuntimeError("not ready")

        with pytest.raises(RetryCancelledError):
            await retry_func_async(op, delay=0, cancellation=token, raise_on_cancel=True)

    @pytest.mark.asyncio
    async def test_loop_result(self, token: CancellationToken) -> None:
        loop = RetryLoop(lambda: 7, RetryConfiguration(delay=0, cancellation=token),
                         completion=Completion.STOP_ON_SUCCESS)

        result = await loop.run_async()

        assert result.status == LoopStatus.SUCCEEDED
        assert result.unwrap() == 7
        assert result.attempts == 1


class TestSuspension:

    @pytest.mark.asyncio
    async def test_other_tasks_run_during_delay(self, token: CancellationToken) -> None:
        """The loop yields the event loop while waiting."""
        ticks: list[int] = []

        async def ticker() -> None:
            while not token.cancelled:
                ticks.append(1)
                await asyncio.sleep(0.005)

        def op() -> None:
            if len(ticks) >= 5:
                token.cancel()

        await asyncio.gather(
            retry_action_async(op, delay=0.02, cancellation=token),
            ticker(),
        )

        assert len(ticks) >= 5

    @pytest.mark.asyncio
    async def test_attempts_separated_by_delay(self, token: CancellationToken) -> None:
        starts: list[float] = []

        async def op() -> None:
            starts.append(time.monotonic())
            if len(starts) == 4:
                token.cancel()

        await retry_action_async(op, delay=0.03, cancellation=token)

        gaps = [b - a for a, b in zip(starts, starts[1:])]
        assert len(gaps) == 3
        # asyncio timers may fire up to one clock tick early
        assert all(gap >= 0.025 for gap in gaps)

    @pytest.mark.asyncio
    async def test_cancelling_driving_task_propagates(self, token: CancellationToken) -> None:
        """asyncio cancellation of the loop's own task is not swallowed."""
        task = asyncio.create_task(retry_action_async(lambda: None, delay=10.0, cancellation=token))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


class TestDeferredResults:

    @pytest.mark.asyncio
    async def test_coroutine_is_scheduled_as_task(self, token: CancellationToken) -> None:
        """An unscheduled coroutine runs in its own Task before being awaited."""
        runner_tasks: list[asyncio.Task[object] | None] = []

        async def op() -> str:
            runner_tasks.append(asyncio.current_task())
            return "ok"

        outer = asyncio.current_task()
        assert await retry_func_async(op, delay=0, cancellation=token) == "ok"

        assert len(runner_tasks) == 1
        assert runner_tasks[0] is not None
        assert runner_tasks[0] is not outer

    @pytest.mark.asyncio
    async def test_scheduled_task_is_awaited_directly(self, token: CancellationToken) -> None:
        """A Task that is already running is awaited as-is, its body runs once."""
        runs: list[int] = []

        async def body() -> int:
            runs.append(1)
            await asyncio.sleep(0)
            return len(runs)

        created: list[asyncio.Task[int]] = []

        def op() -> asyncio.Task[int]:
            created.append(asyncio.create_task(body()))
            return created[-1]

        assert await retry_func_async(op, delay=0, cancellation=token) == 1
        assert runs == [1]
        assert created[0].done()

    @pytest.mark.asyncio
    async def test_externally_cancelled_task_is_a_failed_attempt(
        self, token: CancellationToken, reports: list[bool]
    ) -> None:
        """A deferred result cancelled by someone else does not stop the loop."""
        async def never() -> str:
            await asyncio.sleep(10)
            return "never"

        def op() -> object:
            if not reports:
                task = asyncio.create_task(never())
                task.cancel()
                return task
            return "second"

        assert await retry_func_async(op, delay=0, cancellation=token, progress=reports.append) == "second"
        assert reports == [False, True]

    @pytest.mark.asyncio
    async def test_executor_future_is_bridged(self, token: CancellationToken) -> None:
        with ThreadPoolExecutor(max_workers=1) as pool:
            value = await retry_func_async(lambda n: pool.submit(pow, n, 2), 12, delay=0, cancellation=token)

        assert value == 144

    @pytest.mark.asyncio
    async def test_failing_coroutines_never_escape(self, token: CancellationToken, reports: list[bool]) -> None:
        async def op() -> None:
            if len(reports) == 3:
                token.cancel()
            raise ValueError("malformed payload")

        await retry_action_async(op, delay=0, cancellation=token, progress=reports.append)

        assert reports == [False] * 4

    @pytest.mark.asyncio
    async def test_param_passed_unchanged(self, token: CancellationToken) -> None:
        seen: list[object] = []
        param = object()

        async def op(p: object) -> None:
            seen.append(p)
            if len(seen) == 3:
                token.cancel()

        await retry_action_async(op, param, delay=0, cancellation=token)

        assert len(seen) == 3
        assert all(p is param for p in seen)

"""Tests for structured logging of retry loops and failure classification."""

from __future__ import annotations

import io
import threading

import orjson
import pytest

import retryhelper.runtime.observability.logging as log_module
from retryhelper import (
    CancellationToken,
    ErrorCode,
    clear_settings_cache,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
    log_context,
    retry_action,
    retry_func,
    retry_func_async,
)
from retryhelper.foundation.errors import classify_exception
from retryhelper.runtime.observability import ConsoleRenderer, JsonRenderer, NoOpRenderer


def records(buf: io.StringIO) -> list[dict[str, object]]:
    return [orjson.loads(line) for line in buf.getvalue().splitlines() if line]


def flaky(failures: int) -> object:
    calls: list[int] = []

    def op() -> str:
        calls.append(1)
        if len(calls) <= failures:
            raise ConnectionError("connection refused")
        return "up"

    return op


# ═════════════════════════════════════════════════════════════════════════════
# Retry loop records
# ═════════════════════════════════════════════════════════════════════════════


def test_attempts_logged_at_debug(token: CancellationToken) -> None:
    buf = io.StringIO()
    configure_logging(format="json", level="DEBUG", output=buf)

    assert retry_func(flaky(1), delay=0, cancellation=token) == "up"

    events = records(buf)
    assert [e["event"] for e in events] == ["attempt failed", "attempt succeeded", "retry loop succeeded"]

    failed = events[0]
    assert failed["level"] == "debug"
    assert failed["attempt"] == 1
    assert failed["error_type"] == "ConnectionError"
    assert failed["error_code"] == ErrorCode.NETWORK_ERROR
    assert failed["loop"] == "retry"
    assert failed["mode"] == "blocking"
    assert failed["logger"] == "retryhelper.retry"

    assert events[2]["attempts"] == 2
    assert events[2]["failures"] == 1


def test_info_level_hides_attempts(token: CancellationToken) -> None:
    buf = io.StringIO()
    configure_logging(format="json", level="INFO", output=buf)

    retry_func(flaky(2), delay=0, cancellation=token)

    assert [e["event"] for e in records(buf)] == ["retry loop succeeded"]


def test_cancellation_logged(token: CancellationToken) -> None:
    buf = io.StringIO()
    configure_logging(format="json", output=buf)
    token.cancel()

    retry_func(flaky(0), delay=0, cancellation=token)

    (event,) = records(buf)
    assert event["event"] == "retry loop cancelled"
    assert event["attempts"] == 0


@pytest.mark.asyncio
async def test_suspending_mode_and_context(token: CancellationToken) -> None:
    buf = io.StringIO()
    configure_logging(format="json", level="DEBUG", output=buf)

    with log_context(job_id="sync-42"):
        await retry_func_async(flaky(0), delay=0, cancellation=token)

    events = records(buf)
    assert {e["mode"] for e in events} == {"suspending"}
    assert all(e["job_id"] == "sync-42" for e in events)


def test_loop_name_from_settings(token: CancellationToken, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRYHELPER_RETRY_NAME", "heartbeat")
    clear_settings_cache()
    buf = io.StringIO()
    configure_logging(format="json", output=buf)

    retry_func(flaky(0), delay=0, cancellation=token)

    assert records(buf)[0]["loop"] == "heartbeat"


# ═════════════════════════════════════════════════════════════════════════════
# Logger & configuration
# ═════════════════════════════════════════════════════════════════════════════


def test_bind_is_immutable() -> None:
    base = get_logger("svc")
    bound = base.bind(request="r1")

    assert "request" not in base.context
    assert bound.context == {"logger": "svc", "request": "r1"}


def test_configuration_applies_to_worker_threads(token: CancellationToken) -> None:
    """A loop on another thread writes to the renderer configured here."""
    buf = io.StringIO()
    configure_logging(format="json", output=buf)
    token.cancel()

    worker = threading.Thread(target=retry_action, args=(lambda: None,), kwargs={"delay": 0, "cancellation": token})
    worker.start()
    worker.join()

    (event,) = records(buf)
    assert event["event"] == "retry loop cancelled"
    assert event["mode"] == "blocking"


def test_existing_logger_follows_reconfiguration() -> None:
    log = get_logger("svc")
    buf = io.StringIO()
    configure_logging(format="json", level="DEBUG", output=buf)

    log.debug("cache warmed")

    assert [e["event"] for e in records(buf)] == ["cache warmed"]


def test_environment_applied_without_configure_call(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(log_module, "_renderer", None)
    monkeypatch.setenv("RETRYHELPER_LOG_FORMAT", "json")
    monkeypatch.setenv("RETRYHELPER_LOG_LEVEL", "debug")
    clear_settings_cache()

    get_logger("svc").debug("first record")

    (line,) = capsys.readouterr().out.splitlines()
    assert orjson.loads(line)["event"] == "first record"


def test_console_renderer_plain_output() -> None:
    buf = io.StringIO()
    configure_logging(format="console", output=buf, colors=False)

    get_logger("svc").bind_loop("poll", "blocking").info("retry loop cancelled", attempts=3)

    line = buf.getvalue().strip()
    assert "[info] retry loop cancelled" in line
    assert "attempts=3" in line
    assert 'loop="poll"' in line
    assert "\033[" not in line


def test_configure_rejects_unknown_format() -> None:
    with pytest.raises(ValueError, match="Unknown format"):
        configure_logging(format="xml")


def test_configure_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRYHELPER_LOG_FORMAT", "json")
    clear_settings_cache()
    assert isinstance(configure_logging_from_settings(), JsonRenderer)

    monkeypatch.setenv("RETRYHELPER_LOG_FORMAT", "console")
    monkeypatch.setenv("RETRYHELPER_DEBUG", "true")
    clear_settings_cache()
    assert isinstance(configure_logging_from_settings(), ConsoleRenderer)
    assert get_logger().is_enabled_for(10)

    monkeypatch.setenv("RETRYHELPER_LOG_FORMAT", "none")
    clear_settings_cache()
    assert isinstance(configure_logging_from_settings(), NoOpRenderer)


# ═════════════════════════════════════════════════════════════════════════════
# Failure classification
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (TimeoutError("read timed out"), ErrorCode.TIMEOUT),
        (ConnectionRefusedError("refused"), ErrorCode.NETWORK_ERROR),
        (PermissionError("denied"), ErrorCode.PERMISSION_DENIED),
        (FileNotFoundError("app.lock"), ErrorCode.NOT_FOUND),
        (RuntimeError("not ready"), ErrorCode.INVALID_STATE),
        (ValueError("bad"), ErrorCode.UNKNOWN),
    ],
)
def test_classify_exception(exc: Exception, code: ErrorCode) -> None:
    assert classify_exception(exc) is code

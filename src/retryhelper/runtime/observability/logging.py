"""Structured logging for retry loops.

Records are an event name plus key/value context (loop name, mode, attempt
number). Output goes to one process-wide renderer: readable console lines for
development, JSON lines for log shippers, or nothing.

The renderer and level are shared by every thread and event loop. If
``configure_logging`` was never called, the first record applies
``RETRYHELPER_LOG_*`` settings from the environment. ``log_context`` adds
fields for the current thread or task only.

Quick Start:
    >>> from retryhelper.runtime.observability import get_logger, configure_logging
    >>>
    >>> configure_logging(format="json", level="DEBUG")  # once at startup
    >>>
    >>> log = get_logger("my-service").bind_loop("poll-status", "blocking")
    >>> log.debug("attempt failed", attempt=3)
"""

from __future__ import annotations

import logging
import sys
import threading
import time
import traceback
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, TextIO, runtime_checkable

import orjson

from retryhelper.foundation.errors import JsonDict, JsonValue

if TYPE_CHECKING:
    from types import TracebackType

    from retryhelper.foundation.config import LoggingSettings

# Scoped fields; follows async calls, not threads
_log_context: ContextVar[JsonDict] = ContextVar("log_context", default={})


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class BoundLogger:
    """Logger carrying bound context. ``bind`` returns a new logger.

    Level and renderer are looked up when a record is emitted, so a logger
    created before ``configure_logging`` still follows it.
    """

    context: JsonDict = field(default_factory=dict)

    def bind(self, **kw: JsonValue) -> BoundLogger:
        return BoundLogger({**self.context, **kw})

    def bind_loop(self, name: str, mode: str, **kw: JsonValue) -> BoundLogger:
        """Bind the retry loop's name and execution mode."""
        return self.bind(loop=name, mode=mode, **kw)

    def is_enabled_for(self, level: int) -> bool:
        return level >= _active()[1]

    def debug(self, event: str, **kw: JsonValue) -> None:
        self._log(logging.DEBUG, event, kw)

    def info(self, event: str, **kw: JsonValue) -> None:
        self._log(logging.INFO, event, kw)

    def exception(self, event: str, **kw: JsonValue) -> None:
        """Log at error level with the current traceback attached."""
        self._log(logging.ERROR, event, {**kw, "exc_info": traceback.format_exc()})

    def _log(self, level: int, event: str, kw: JsonDict) -> None:
        renderer, threshold = _active()
        if level < threshold:
            return
        # Scoped context first, bound and call-site fields override it
        fields = {**_log_context.get(), **self.context, **kw}
        renderer.render(LogEntry(time.time(), logging.getLevelName(level).lower(), event, fields))


@dataclass(slots=True)
class LogEntry:
    """One record as handed to a renderer."""

    timestamp: float
    level: str
    event: str
    context: JsonDict

    @property
    def when(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=UTC)


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class LogRenderer(Protocol):
    def render(self, entry: LogEntry) -> None: ...


_RESET = "\033[0m"
_LEVEL_STYLES = {"debug": "\033[2m", "info": "\033[32m", "error": "\033[31m"}


@dataclass(slots=True)
class ConsoleRenderer:
    """``HH:MM:SS.mmm [level] event key=value ...``, fields sorted by key."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None: colour when output is a tty

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = getattr(self.output, "isatty", lambda: False)()

    def render(self, entry: LogEntry) -> None:
        level = f"[{entry.level}]"
        if self.colors:
            level = f"{_LEVEL_STYLES.get(entry.level, '')}{level}{_RESET}"
        fields = " ".join(f"{k}={_format_value(v)}" for k, v in sorted(entry.context.items()) if k != "exc_info")
        line = f"{entry.when.strftime('%H:%M:%S.%f')[:-3]} {level} {entry.event}"
        print(f"{line} {fields}" if fields else line, file=self.output)
        if "exc_info" in entry.context:
            print(entry.context["exc_info"], file=self.output, end="")


@dataclass(slots=True)
class JsonRenderer:
    """One JSON object per line."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        record = {"timestamp": entry.when.isoformat(), "level": entry.level, "event": entry.event, **entry.context}
        print(orjson.dumps(record, default=str, option=orjson.OPT_NON_STR_KEYS).decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    """Discards every record."""

    def render(self, entry: LogEntry) -> None:
        pass


def _format_value(v: object) -> str:
    match v:
        case str(): return f'"{v}"'
        case bool(): return str(v).lower()
        case None: return "null"
        case _: return str(v)


# ─────────────────────────────────────────────────────────────────────────────
# Configuration (process-wide)
# ─────────────────────────────────────────────────────────────────────────────


_lock = threading.Lock()
_renderer: LogRenderer | None = None
_level: int = logging.INFO


def configure_logging(
    format: str = "console",  # noqa: A002 - shadows builtin but matches stdlib
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Set the renderer and level for all threads. Format: "console", "json" or "none"."""
    global _renderer, _level
    match format:
        case "console": renderer: LogRenderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
        case "json": renderer = JsonRenderer(output=output or sys.stdout)
        case "none": renderer = NoOpRenderer()
        case _: raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")
    with _lock:
        _renderer, _level = renderer, getattr(logging, level.upper(), logging.INFO)
    return renderer


def configure_logging_from_settings(settings: LoggingSettings | None = None, *, debug: bool = False) -> LogRenderer:
    """Apply ``LoggingSettings`` (defaults to the environment's)."""
    if settings is None:
        from retryhelper.foundation.config import get_settings
        root = get_settings()
        settings, debug = root.logging, debug or root.debug
    return configure_logging(settings.format, "DEBUG" if debug else settings.level, colors=settings.colors)


def _active() -> tuple[LogRenderer, int]:
    with _lock:
        renderer, level = _renderer, _level
    if renderer is None:
        configure_logging_from_settings()
        with _lock:
            renderer, level = _renderer, _level
    return renderer, level  # type: ignore[return-value]


def get_logger(name: str | None = None, **initial_context: JsonValue) -> BoundLogger:
    """Logger with optional initial context; ``name`` is bound as ``logger``."""
    return BoundLogger({**initial_context, **({"logger": name} if name else {})})


class log_context:
    """Context manager adding key-value pairs to every record within the scope.

    Example:
        >>> with log_context(job_id="abc123"):
        ...     retry_action(poll, delay=1.0, cancellation=token)  # every record carries job_id
    """

    __slots__ = ("_ctx", "_token")

    def __init__(self, **kw: JsonValue) -> None:
        self._ctx: JsonDict = dict(kw)
        self._token: object | None = None

    def __enter__(self) -> log_context:
        self._token = _log_context.set({**_log_context.get(), **self._ctx})
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None,
                 exc_tb: TracebackType | None) -> None:
        if self._token is not None:
            _log_context.reset(self._token)  # type: ignore[arg-type]

"""Per-session retry loop configuration.

Optimizations:
- Frozen: the loop reads it, never mutates it
- Bare callables are wrapped into ``Progress`` once, at construction
"""

from __future__ import annotations

from datetime import timedelta
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from retryhelper.foundation.config import get_settings
from retryhelper.io.progress import ProgressObserver, as_observer
from retryhelper.runtime.concurrency import CancellationToken


class RetryConfiguration(BaseModel):
    """Delay, cancellation signal and observer for one retry session.

    Attributes:
        delay: Seconds to wait before every attempt (non-negative). A
            ``timedelta`` is converted to seconds. An unbounded delay
            (``float("inf")``) waits for cancellation before each attempt.
        cancellation: Token observed before and after every wait
        progress: Receives one bool per executed attempt. A bare callable
            ``(bool) -> None`` is accepted and wrapped in ``Progress``.
        name: Label bound into log records

    Example:
        >>> token = CancellationToken()
        >>> config = RetryConfiguration(delay=timedelta(milliseconds=250), cancellation=token)
        >>> config.delay
        0.25
        >>> RetryConfiguration(delay=-1)
        Traceback (most recent call last):
        ...
        pydantic_core._pydantic_core.ValidationError: ...
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,  # CancellationToken, ProgressObserver protocol
        extra="forbid",
        revalidate_instances="never",
    )

    delay: Annotated[float, Field(ge=0.0)]
    cancellation: CancellationToken = Field(default_factory=CancellationToken)
    progress: ProgressObserver | None = Field(default=None, repr=False)
    name: Annotated[str, Field(min_length=1)] = "retry"

    @field_validator("delay", mode="before")
    @classmethod
    def _delay_seconds(cls, v: float | timedelta) -> float:
        return v.total_seconds() if isinstance(v, timedelta) else v

    @field_validator("progress", mode="before")
    @classmethod
    def _wrap_callable(cls, v: object) -> ProgressObserver | None:
        try:
            return as_observer(v)  # type: ignore[arg-type]
        except TypeError as e:
            raise ValueError(str(e)) from e

    @classmethod
    def from_settings(cls, **overrides: object) -> RetryConfiguration:
        """Build a configuration, taking unspecified fields from the environment.

        Example:
            >>> # RETRYHELPER_RETRY_DELAY=0.5
            >>> RetryConfiguration.from_settings(cancellation=token).delay
            0.5
        """
        retry = get_settings().retry
        values: dict[str, object] = {"delay": retry.delay, "name": retry.name}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

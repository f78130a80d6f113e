"""Results of single attempts and of whole retry loops."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

from retryhelper.foundation.errors import RetryCancelledError

T = TypeVar("T")


class LoopStatus(StrEnum):
    """Why a retry loop stopped."""
    SUCCEEDED = "succeeded"  # Stop-on-success loop got a successful attempt
    CANCELLED = "cancelled"  # Cancellation was observed at a checkpoint


@dataclass(slots=True, frozen=True)
class AttemptOutcome(Generic[T]):
    """Outcome of one execution of the operation.

    Attributes:
        number: 1-based attempt number within the loop
        success: True if the operation completed without raising
        value: Result of a successful attempt
        error: Exception raised by a failed attempt
        elapsed: Wall time the attempt took, in seconds
    """

    number: int
    success: bool
    value: T | None = None
    error: Exception | None = None
    elapsed: float = 0.0


@dataclass(slots=True, frozen=True)
class LoopResult(Generic[T]):
    """How a retry loop ended.

    Attributes:
        status: SUCCEEDED or CANCELLED
        value: Value of the successful attempt (None when cancelled)
        attempts: Number of attempts executed
        failures: Number of those attempts that failed
    """

    status: LoopStatus
    value: T | None = None
    attempts: int = 0
    failures: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == LoopStatus.SUCCEEDED

    @property
    def cancelled(self) -> bool:
        return self.status == LoopStatus.CANCELLED

    def unwrap(self) -> T:
        """Get value or raise RetryCancelledError."""
        if self.cancelled:
            raise RetryCancelledError(
                f"retry loop was cancelled after {self.attempts} attempt(s)",
                attempts=self.attempts,
                failures=self.failures,
            )
        return self.value  # type: ignore[return-value]

    def unwrap_or(self, default: T) -> T:
        """Get value or return default when cancelled."""
        return self.value if self.succeeded else default  # type: ignore[return-value]

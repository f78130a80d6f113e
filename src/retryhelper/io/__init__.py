"""I/O-facing helpers: progress reporting."""

from .progress import Progress, ProgressObserver, as_observer

__all__ = ["Progress", "ProgressObserver", "as_observer"]

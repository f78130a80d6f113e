"""Progress observers for retry loops."""

from .progress import Progress, ProgressObserver, as_observer

__all__ = ["Progress", "ProgressObserver", "as_observer"]

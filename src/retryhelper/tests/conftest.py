"""Shared fixtures for retryhelper tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from retryhelper import CancellationToken, clear_settings_cache, configure_logging


@pytest.fixture(autouse=True)
def quiet_logging_and_fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Silence log output and reload settings from a clean environment."""
    for var in ("RETRYHELPER_RETRY_DELAY", "RETRYHELPER_RETRY_RAISE_ON_CANCEL", "RETRYHELPER_RETRY_NAME",
                "RETRYHELPER_LOG_LEVEL", "RETRYHELPER_LOG_FORMAT", "RETRYHELPER_DEBUG"):
        monkeypatch.delenv(var, raising=False)
    configure_logging(format="none")
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def token() -> CancellationToken:
    return CancellationToken()


@pytest.fixture
def reports() -> list[bool]:
    """Observer reports, collected via ``progress=reports.append``."""
    return []

"""Shared test fixtures for cachedresource.

Provides a fresh configuration store per test, a fake wall clock for
expiry checks, and isolation from the process-wide default backend and
``CACHEDRESOURCE_*`` environment variables.
"""

from __future__ import annotations

import logging

import pytest

from cachedresource.configuration import ConfigurationStore, reset_store
from cachedresource.models import DEFAULT_CACHE


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolate_global_state(monkeypatch: pytest.MonkeyPatch):
    """Reset the process-wide store and default backend around every test."""
    for var in ["CACHEDRESOURCE_DISABLED", "CACHEDRESOURCE_OPTIONS"]:
        monkeypatch.delenv(var, raising=False)
    reset_store()
    DEFAULT_CACHE.clear()
    yield
    reset_store()
    DEFAULT_CACHE.clear()


# ---------------------------------------------------------------------------
# Stores and clocks
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> ConfigurationStore:
    """A host-less configuration store."""
    return ConfigurationStore()


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def host_logger() -> logging.Logger:
    """A named logger standing in for a hosting framework's logger."""
    return logging.getLogger("tests.host")

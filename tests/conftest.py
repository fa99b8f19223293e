"""
Pytest fixtures for the revenue core test suite.

Provides:
- A deterministic clock pinned to a known month
- Logging reset between tests so handlers never leak
- Simple in-memory metric fetchers
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import pytest

from revenue_kernel.domain.clock import DeterministicClock
from revenue_kernel.logging_config import LogContext, reset_logging


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "property: mark test as a Hypothesis property test"
    )


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Clock fixed at 2024-06-15 09:00 UTC (fiscal FY2024 Q3)."""
    return DeterministicClock(datetime(2024, 6, 15, 9, 0, tzinfo=UTC))


class TableFetcher:
    """Per-month fetcher backed by a dict keyed by (year, month).

    Records every call so tests can assert which months were read.
    """

    def __init__(self, table: Mapping[tuple[int, int], Mapping[str, Any]] | None = None):
        self.table = dict(table or {})
        self.calls: list[tuple[int, int]] = []

    def __call__(self, year: int, month: int) -> Mapping[str, Any] | None:
        self.calls.append((year, month))
        return self.table.get((year, month))


@pytest.fixture
def table_fetcher():
    return TableFetcher

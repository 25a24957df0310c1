"""
Pytest fixtures for MetricGate tests.
"""

import pytest

from metricgate.engine import Registry


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def registry():
    """Provide an isolated registry per test."""
    return Registry()


@pytest.fixture
def clock():
    """Provide a fake clock for time-window tests."""
    return FakeClock()

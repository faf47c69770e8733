"""
Shared test fixtures for the positioning test suite.
Provides a counting celestial engine and common positions.
"""
from datetime import datetime, timezone

import pytest

from positioning import LoadPolicy, Position


class CountingEngine:
    """Celestial engine stand-in recording every call.

    Returns the call arguments as the "result" so tests can check which
    inputs a representation was computed from.
    """

    def __init__(self):
        self.calls = []
        self.fail = False

    def __call__(self, latitude, longitude, instant):
        if self.fail:
            raise RuntimeError("celestial engine failure")
        self.calls.append((latitude, longitude, instant))
        return (latitude, longitude, instant)

    @property
    def count(self) -> int:
        return len(self.calls)


@pytest.fixture
def engine():
    """Fresh counting celestial engine."""
    return CountingEngine()


@pytest.fixture
def position(engine):
    """Fully loaded Position at (25, 25) with the counting engine."""
    return Position(25.0, 25.0, celestial_engine=engine)


@pytest.fixture
def bare_position(engine):
    """Position at (25, 25) with no representation loaded."""
    return Position(25.0, 25.0, load_policy=LoadPolicy.none(), celestial_engine=engine)


@pytest.fixture
def instant():
    return datetime(2020, 3, 20, 12, 0, tzinfo=timezone.utc)

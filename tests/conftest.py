"""Shared test fixtures for the recipescout test suite."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from recipescout.cache import RecipeCache

START = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def recipe_cache(clock: FakeClock) -> RecipeCache:
    """RecipeCache with a five minute TTL driven by the fake clock."""
    return RecipeCache(ttl=timedelta(minutes=5), clock=clock)

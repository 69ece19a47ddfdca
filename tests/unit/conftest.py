"""Shared fixtures for simplecal unit tests."""

import itertools
from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional

import pytest

from simplecal.event_store import EventStore
from simplecal.mutation_planner import MutationPlanner
from simplecal.recur_models import EventException, Series


@pytest.fixture
def make_series() -> Callable[..., Series]:
    """Factory for series records with sensible defaults.

    Defaults describe a one-hour event on Monday 2024-01-01 09:00 that recurs
    every Monday and Wednesday.
    """

    def _make(
        series_id: str = "s1",
        rrule: Optional[str] = "FREQ=WEEKLY;BYDAY=MO,WE",
        exdates: Optional[str] = None,
        start: datetime = datetime(2024, 1, 1, 9, 0),
        end: Optional[datetime] = None,
        **overrides: Any,
    ) -> Series:
        return Series(
            id=series_id,
            calendar_id=overrides.pop("calendar_id", "cal-1"),
            title=overrides.pop("title", "Standup"),
            start=start,
            end=end or start.replace(hour=start.hour + 1),
            rrule=rrule,
            exdates=exdates,
            **overrides,
        )

    return _make


@pytest.fixture
def make_exception() -> Callable[..., EventException]:
    """Factory for exception records attached to series ``s1`` by default."""

    def _make(
        original_start: datetime,
        exception_id: str = "ex-1",
        series_id: str = "s1",
        title: str = "Rescheduled",
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> EventException:
        start = start or original_start
        return EventException(
            id=exception_id,
            series_id=series_id,
            original_start=original_start,
            title=title,
            start=start,
            end=end or start.replace(hour=start.hour + 1),
        )

    return _make


@pytest.fixture
def weekly_series(make_series: Callable[..., Series]) -> Series:
    """Monday/Wednesday series starting Monday 2024-01-01 09:00-10:00."""
    return make_series()


@pytest.fixture
def store() -> EventStore:
    """Fresh in-memory event store."""
    return EventStore()


@pytest.fixture
def planner(store: EventStore) -> MutationPlanner:
    """Planner over the in-memory store with deterministic exception ids."""
    counter = itertools.count(1)
    return MutationPlanner.for_store(store, id_factory=lambda: f"ex-{next(counter)}")

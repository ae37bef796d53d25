"""Shared fixtures: in-memory collaborators, a controllable clock, stores, manager."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from vigil.collaborators import MemoryStreamLookup, MemoryTriggerHistory, Stream
from vigil.conditions import (
    AlertConditionFactory,
    AlertConditionManager,
    GracePeriodTracker,
    JsonConditionStore,
    SqliteConditionStore,
    default_registry,
)

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def _reset_observability():
    """Keep emitter/logging state from leaking between tests."""
    from vigil.observability import reset

    reset()
    yield
    reset()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def streams() -> MemoryStreamLookup:
    return MemoryStreamLookup([Stream("S1", "Stream one"), Stream("S2", "Stream two")])


@pytest.fixture
def history() -> MemoryTriggerHistory:
    return MemoryTriggerHistory()


@pytest.fixture
def factory(clock) -> AlertConditionFactory:
    return AlertConditionFactory(default_registry(), clock=clock)


@pytest.fixture(params=["sqlite", "json"], ids=["sqlite", "json"])
def store(request, tmp_path, streams):
    if request.param == "sqlite":
        s = SqliteConditionStore(str(tmp_path), streams=streams)
        yield s
        s.close()
    else:
        yield JsonConditionStore(str(tmp_path), streams=streams)


@pytest.fixture
def tracker(history, clock) -> GracePeriodTracker:
    return GracePeriodTracker(history, clock=clock)


@pytest.fixture
def manager(streams, store, factory, tracker) -> AlertConditionManager:
    return AlertConditionManager(streams, store, factory, tracker)

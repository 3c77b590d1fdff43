"""Shared fixtures for the test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from tracker.db import get_tracker_store
from tracker.engine.models import (
    CompletionRecord,
    GoalTracker,
    MeasurementEntry,
    MeasurementTracker,
)
from tracker.engine.periods import to_epoch_ms
from tracker.engine.store import TrackerStoreFacade
from tracker.main import app

# Wednesday; the Monday of that week is 2026-10-12
WEDNESDAY = datetime(2026, 10, 14, 15, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fake key-value store (no database needed)
# ---------------------------------------------------------------------------

class FakeKeyValueStore:
    """In-memory stand-in for SqlKeyValueStore."""

    def __init__(self, data: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(data or {})
        self.fail_writes = False
        self.writes = 0

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> bool:
        if self.fail_writes:
            return False
        self.data[key] = value
        self.writes += 1
        return True


class FakeClock:
    """Settable clock passed to the façade."""

    def __init__(self, now: datetime = WEDNESDAY):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def make_goal(**overrides: Any) -> GoalTracker:
    defaults: dict[str, Any] = dict(
        id="goal-1",
        name="Gym",
        tag="Health",
        tag_color="bg-tag-health",
        frequency=3,
        period="weekly",
        start_day="Mon",
        completions=[],
        created_at=to_epoch_ms(datetime(2026, 1, 1, tzinfo=timezone.utc)),
    )
    defaults.update(overrides)
    return GoalTracker(**defaults)


def make_records(*counts: int, start_ms: int = 0, step_ms: int = 86_400_000) -> list[CompletionRecord]:
    """Consecutive records, oldest first."""
    return [
        CompletionRecord(period_start=start_ms + i * step_ms, count=c)
        for i, c in enumerate(counts)
    ]


def make_measurement(values: list[float] | None = None, **overrides: Any) -> MeasurementTracker:
    base = to_epoch_ms(datetime(2026, 10, 1, 8, 0, tzinfo=timezone.utc))
    entries = [
        MeasurementEntry(id=f"e{i}", value=v, date=base + i * 86_400_000)
        for i, v in enumerate(values or [])
    ]
    defaults: dict[str, Any] = dict(
        id="weight-1",
        name="Weight",
        unit="kg",
        entries=entries,
        created_at=base,
    )
    defaults.update(overrides)
    return MeasurementTracker(**defaults)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def kv():
    return FakeKeyValueStore()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
async def store(kv, clock):
    """A loaded façade over an empty fake store."""
    facade = TrackerStoreFacade(kv, key="test_store", clock=clock)
    await facade.load()
    return facade


@pytest.fixture()
def override_store(store):
    """Override the FastAPI dependency so no real DB is needed."""
    app.dependency_overrides[get_tracker_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


@pytest.fixture()
async def client(override_store):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

"""Tests for the tracker store contract."""

import pytest
from pydantic import ValidationError

from tracker.engine.models import (
    CompletionRecord,
    GoalCreate,
    GoalTracker,
    GoalUpdate,
    MeasurementTracker,
    Period,
    TrackerStore,
    Weekday,
)


def _goal(**overrides) -> GoalTracker:
    defaults = dict(
        id="g1",
        name="Gym",
        tag="Health",
        tagColor="bg-tag-health",
        frequency=3,
        period="weekly",
        startDay="Tue",
        createdAt=1_700_000_000_000,
    )
    defaults.update(overrides)
    return GoalTracker(**defaults)


class TestGoalTrackerDefaults:
    def test_accepts_camel_case(self):
        goal = _goal()
        assert goal.tag_color == "bg-tag-health"
        assert goal.start_day == Weekday.tue

    def test_accepts_snake_case(self):
        goal = GoalTracker(
            id="g", name="Read", tag="Mind", frequency=1, period="daily", created_at=1
        )
        assert goal.start_day == Weekday.mon
        assert goal.start_date is None
        assert goal.completions == []

    def test_kind(self):
        assert _goal().kind == "goal"
        assert MeasurementTracker(id="m", name="W", unit="kg", created_at=1).kind == "measurement"

    @pytest.mark.parametrize("raw", ["Tuesday", "tue", "TUE", " tue "])
    def test_weekday_normalized(self, raw):
        assert _goal(startDay=raw).start_day == Weekday.tue

    @pytest.mark.parametrize("raw", ["Funday", "Monkey", "Thurs", "sat."])
    def test_unknown_weekday_rejected(self, raw):
        with pytest.raises(ValidationError):
            _goal(startDay=raw)

    def test_duplicate_period_start_rejected(self):
        with pytest.raises(ValidationError):
            _goal(completions=[{"periodStart": 5, "count": 1}, {"periodStart": 5, "count": 3}])


class TestValidation:
    def test_frequency_must_be_positive(self):
        with pytest.raises(ValidationError):
            _goal(frequency=0)

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            _goal(name="")

    def test_start_date_range(self):
        with pytest.raises(ValidationError):
            _goal(period="monthly", startDate=32)

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            CompletionRecord(periodStart=0, count=-1)

    def test_period_values(self):
        for p in ("daily", "weekly", "monthly"):
            assert GoalCreate(name="x", tag="t", frequency=1, period=p).period == Period(p)


class TestSerialization:
    def test_dump_uses_wire_names(self):
        data = _goal(completions=[{"periodStart": 5, "count": 1}]).model_dump(by_alias=True)
        assert data["tagColor"] == "bg-tag-health"
        assert data["startDay"] == "Tue"
        assert data["completions"] == [{"periodStart": 5, "count": 1}]
        assert "kind" not in data

    def test_start_date_omitted_when_unset(self):
        data = TrackerStore(goals=[_goal()]).model_dump(mode="json", by_alias=True, exclude_none=True)
        assert "startDate" not in data["goals"][0]

    def test_update_tracks_sent_fields_only(self):
        update = GoalUpdate(frequency=2)
        assert update.model_dump(exclude_unset=True) == {"frequency": 2}

    @pytest.mark.parametrize("field", ["name", "tag", "tagColor", "frequency", "period", "startDay"])
    def test_update_rejects_null_for_required_fields(self, field):
        with pytest.raises(ValidationError):
            GoalUpdate.model_validate({field: None})

    def test_update_null_start_date_clears(self):
        update = GoalUpdate.model_validate({"startDate": None})
        assert update.model_dump(exclude_unset=True) == {"start_date": None}

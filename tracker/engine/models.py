"""Tracker store contract: Pydantic v2 models.

Field names serialize in camelCase (``tagColor``, ``periodStart``...) so that
exported documents stay compatible with existing tracker data files.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, ClassVar, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class Period(str, Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class Weekday(str, Enum):
    sun = "Sun"
    mon = "Mon"
    tue = "Tue"
    wed = "Wed"
    thu = "Thu"
    fri = "Fri"
    sat = "Sat"


class TrendDirection(str, Enum):
    up = "up"
    down = "down"
    same = "same"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


WEEKDAY_NAMES: dict[str, Weekday] = {
    **{d.value.lower(): d for d in Weekday},
    "sunday": Weekday.sun,
    "monday": Weekday.mon,
    "tuesday": Weekday.tue,
    "wednesday": Weekday.wed,
    "thursday": Weekday.thu,
    "friday": Weekday.fri,
    "saturday": Weekday.sat,
}


def weekday_from_name(value: str) -> Weekday | None:
    """Exact abbreviation or full day name, any casing. None otherwise."""
    return WEEKDAY_NAMES.get(value.strip().lower())


def _normalize_weekday(value):
    if isinstance(value, str):
        day = weekday_from_name(value)
        if day is not None:
            return day
    return value


WeekdayName = Annotated[Weekday, BeforeValidator(_normalize_weekday)]


# ---------------------------------------------------------------------------
# Persisted document
# ---------------------------------------------------------------------------

class CompletionRecord(CamelModel):
    period_start: int  # epoch ms
    count: int = Field(default=0, ge=0)


class GoalTracker(CamelModel):
    kind: ClassVar[str] = "goal"

    id: str
    name: str = Field(min_length=1)
    tag: str
    tag_color: str = ""
    frequency: int = Field(ge=1)
    period: Period
    start_day: WeekdayName = Weekday.mon
    start_date: int | None = Field(default=None, ge=1, le=31)
    completions: list[CompletionRecord] = Field(default_factory=list)
    created_at: int

    @model_validator(mode="after")
    def check_one_record_per_period(self) -> GoalTracker:
        starts = [record.period_start for record in self.completions]
        if len(starts) != len(set(starts)):
            raise ValueError("completions hold more than one record for the same periodStart")
        return self


class MeasurementEntry(CamelModel):
    id: str
    value: float
    date: int  # epoch ms


class MeasurementTracker(CamelModel):
    kind: ClassVar[str] = "measurement"

    id: str
    name: str = Field(min_length=1)
    unit: str
    entries: list[MeasurementEntry] = Field(default_factory=list)
    created_at: int


Tracker = Union[GoalTracker, MeasurementTracker]


class TrackerStore(CamelModel):
    """Aggregate root, persisted whole under one key."""

    goals: list[GoalTracker] = Field(default_factory=list)
    measurements: list[MeasurementTracker] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class GoalCreate(CamelModel):
    name: str = Field(min_length=1)
    tag: str
    tag_color: str = ""
    frequency: int = Field(ge=1)
    period: Period
    start_day: WeekdayName = Weekday.mon
    start_date: int | None = Field(default=None, ge=1, le=31)


class GoalUpdate(CamelModel):
    """Partial update; only fields explicitly sent are merged.

    Fields may be omitted but not sent as null, except ``startDate`` where
    null clears the monthly anchor.
    """

    name: str | None = Field(default=None, min_length=1)
    tag: str | None = None
    tag_color: str | None = None
    frequency: int | None = Field(default=None, ge=1)
    period: Period | None = None
    start_day: WeekdayName | None = None
    start_date: int | None = Field(default=None, ge=1, le=31)

    @field_validator("name", "tag", "tag_color", "frequency", "period", "start_day")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class MeasurementCreate(CamelModel):
    name: str = Field(min_length=1)
    unit: str


class EntryCreate(CamelModel):
    value: float
    date: int | None = None  # backfill timestamp, defaults to now


class ReorderRequest(CamelModel):
    from_index: int
    to_index: int


# ---------------------------------------------------------------------------
# Read models (never persisted)
# ---------------------------------------------------------------------------

class GoalProgress(CamelModel):
    count: int
    frequency: int
    period_start: int


class TagStats(CamelModel):
    tag: str
    tag_color: str
    total_goals: int = 0
    completed_periods: int = 0
    total_periods: int = 0
    current_progress: int = 0
    current_target: int = 0


class GoalStats(CamelModel):
    streak: int = 0
    best_streak: int = 0
    completion_rate: float = 0.0  # 0–1
    completion_pct: int = 0  # 0–100, rounded
    total_completions: int = 0
    goals_met: int = 0
    periods: int = 0


class MeasurementTrend(CamelModel):
    direction: TrendDirection = TrendDirection.same
    magnitude: float = 0.0


class MeasurementSummary(CamelModel):
    latest: MeasurementEntry | None = None
    previous: MeasurementEntry | None = None
    start: MeasurementEntry | None = None
    total_change: float = 0.0
    lowest: float | None = None
    highest: float | None = None
    trend: MeasurementTrend = Field(default_factory=MeasurementTrend)
    entry_count: int = 0


class DashboardSummary(CamelModel):
    current_progress: int = 0
    current_target: int = 0
    tags: list[TagStats] = Field(default_factory=list)

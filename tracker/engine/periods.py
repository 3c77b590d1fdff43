"""Period calculator: pure, never raises for valid tracker settings.

Maps a wall-clock instant to the start of the daily / weekly / monthly period
containing it. "Local" always means the tzinfo carried by ``now``.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo

from tracker.engine.models import Period, Weekday, weekday_from_name

# Python weekday() order: Monday == 0
WEEKDAY_INDEX: dict[Weekday, int] = {
    Weekday.mon: 0,
    Weekday.tue: 1,
    Weekday.wed: 2,
    Weekday.thu: 3,
    Weekday.fri: 4,
    Weekday.sat: 5,
    Weekday.sun: 6,
}


def parse_weekday(name: str | Weekday) -> Weekday:
    """Resolve "Mon" / "monday" / Weekday.mon to a Weekday.

    Raises ValueError for anything else, as `Period(...)` does for periods.
    """
    if isinstance(name, Weekday):
        return name
    day = weekday_from_name(str(name))
    if day is None:
        raise ValueError(f"Unknown weekday: {name!r}")
    return day


def to_epoch_ms(dt: datetime) -> int:
    return int(round(dt.timestamp() * 1000))


def from_epoch_ms(ms: int, tz: tzinfo | str | None = None) -> datetime:
    if isinstance(tz, str):
        tz = ZoneInfo(tz)
    return datetime.fromtimestamp(ms / 1000, tz=tz)


def _midnight(day: date, tz: tzinfo | None) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def _clamped_day(year: int, month: int, day_of_month: int) -> date:
    """Date for (year, month, day_of_month), clamped to the month's last day."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day_of_month, last))


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def _monthly_anchor(today: date, start_date: int) -> date:
    candidate = _clamped_day(today.year, today.month, start_date)
    if today < candidate:
        year, month = _shift_month(today.year, today.month, -1)
        candidate = _clamped_day(year, month, start_date)
    return candidate


def period_start(
    now: datetime,
    period: Period | str,
    start_day: Weekday | str = Weekday.mon,
    start_date: int | None = None,
) -> datetime:
    """Start of the period containing `now`, at local midnight.

    - daily: today's midnight
    - weekly: most recent `start_day` at or before today (today included)
    - monthly: most recent `start_date` day-of-month at or before today;
      days past the end of a short month clamp to its last day
    """
    period = Period(period)
    tz = now.tzinfo
    today = now.date()

    if period == Period.daily:
        return _midnight(today, tz)

    if period == Period.weekly:
        anchor = WEEKDAY_INDEX[parse_weekday(start_day)]
        days_back = (today.weekday() - anchor) % 7
        return _midnight(today - timedelta(days=days_back), tz)

    return _midnight(_monthly_anchor(today, start_date or 1), tz)


def next_period_start(
    now: datetime,
    period: Period | str,
    start_day: Weekday | str = Weekday.mon,
    start_date: int | None = None,
) -> datetime:
    """Exclusive end of the period containing `now`."""
    period = Period(period)
    start = period_start(now, period, start_day, start_date)
    tz = start.tzinfo

    if period == Period.daily:
        return _midnight(start.date() + timedelta(days=1), tz)

    if period == Period.weekly:
        return _midnight(start.date() + timedelta(days=7), tz)

    year, month = _shift_month(start.year, start.month, 1)
    return _midnight(_clamped_day(year, month, start_date or 1), tz)


def period_start_ms(
    now: datetime,
    period: Period | str,
    start_day: Weekday | str = Weekday.mon,
    start_date: int | None = None,
) -> int:
    return to_epoch_ms(period_start(now, period, start_day, start_date))

"""Tests for the period calculator."""

from datetime import datetime, timedelta, timezone

import pytest

from tracker.engine.models import Period, Weekday
from tracker.engine.periods import (
    from_epoch_ms,
    next_period_start,
    parse_weekday,
    period_start,
    period_start_ms,
    to_epoch_ms,
)

UTC = timezone.utc


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=UTC)


class TestDaily:
    def test_truncates_to_midnight(self):
        assert period_start(_utc(2026, 10, 14, 15, 30, 12), "daily") == _utc(2026, 10, 14)

    def test_midnight_is_its_own_start(self):
        assert period_start(_utc(2026, 10, 14), Period.daily) == _utc(2026, 10, 14)

    def test_uses_local_timezone_of_now(self):
        tz = timezone(timedelta(hours=-5))
        now = datetime(2026, 10, 14, 22, 0, tzinfo=tz)  # 03:00 UTC next day
        start = period_start(now, "daily")
        assert start == datetime(2026, 10, 14, tzinfo=tz)
        assert start.tzinfo is tz


class TestWeekly:
    def test_wednesday_rolls_back_to_monday(self):
        now = _utc(2026, 10, 14, 9, 0)
        assert period_start(now, "weekly", "Mon") == _utc(2026, 10, 12)

    def test_anchor_day_is_today(self):
        now = _utc(2026, 10, 12, 23, 59)
        assert period_start(now, "weekly", "Mon") == _utc(2026, 10, 12)

    def test_anchor_later_in_week_wraps_back(self):
        # Wednesday with Thursday anchor → previous Thursday
        now = _utc(2026, 10, 14, 9, 0)
        assert period_start(now, "weekly", "Thu") == _utc(2026, 10, 8)

    def test_sunday_anchor(self):
        now = _utc(2026, 10, 14, 9, 0)
        assert period_start(now, "weekly", Weekday.sun) == _utc(2026, 10, 11)

    def test_stable_within_same_day(self):
        starts = {
            period_start(_utc(2026, 10, 14, h, 0), "weekly", "Mon")
            for h in range(24)
        }
        assert starts == {_utc(2026, 10, 12)}

    def test_full_day_names_accepted(self):
        now = _utc(2026, 10, 14, 9, 0)
        assert period_start(now, "weekly", "monday") == _utc(2026, 10, 12)


class TestMonthly:
    def test_before_start_date_goes_to_previous_month(self):
        now = _utc(2026, 10, 10, 12, 0)
        assert period_start(now, "monthly", start_date=15) == _utc(2026, 9, 15)

    def test_on_start_date(self):
        assert period_start(_utc(2026, 10, 15, 0, 1), "monthly", start_date=15) == _utc(2026, 10, 15)

    def test_after_start_date(self):
        assert period_start(_utc(2026, 10, 20), "monthly", start_date=15) == _utc(2026, 10, 15)

    def test_default_start_date_is_first(self):
        assert period_start(_utc(2026, 10, 20, 8), "monthly") == _utc(2026, 10, 1)
        assert period_start(_utc(2026, 10, 20, 8), "monthly", start_date=None) == _utc(2026, 10, 1)

    def test_january_wraps_to_previous_december(self):
        now = _utc(2027, 1, 3, 12, 0)
        assert period_start(now, "monthly", start_date=10) == _utc(2026, 12, 10)


class TestMonthEndClamp:
    """start_date beyond a month's length clamps to the month's last day."""

    def test_last_day_of_short_month_starts_period(self):
        assert period_start(_utc(2026, 4, 30, 10), "monthly", start_date=31) == _utc(2026, 4, 30)

    def test_before_clamped_day_uses_previous_month(self):
        assert period_start(_utc(2026, 4, 29, 10), "monthly", start_date=31) == _utc(2026, 3, 31)

    def test_february_non_leap(self):
        assert period_start(_utc(2026, 2, 28, 10), "monthly", start_date=30) == _utc(2026, 2, 28)
        assert period_start(_utc(2026, 2, 27, 10), "monthly", start_date=30) == _utc(2026, 1, 30)

    def test_february_leap_year(self):
        assert period_start(_utc(2028, 2, 29, 10), "monthly", start_date=31) == _utc(2028, 2, 29)

    def test_previous_month_is_clamped_too(self):
        # March 5 with start 31 → previous month is February → Feb 28
        assert period_start(_utc(2026, 3, 5), "monthly", start_date=31) == _utc(2026, 2, 28)

    def test_next_period_after_clamped_start(self):
        assert next_period_start(_utc(2026, 2, 28, 10), "monthly", start_date=31) == _utc(2026, 3, 31)


class TestPeriodBoundaries:
    @pytest.mark.parametrize(
        "period,start_day,start_date",
        [
            ("daily", "Mon", None),
            ("weekly", "Mon", None),
            ("weekly", "Sat", None),
            ("monthly", "Mon", 1),
            ("monthly", "Mon", 15),
            ("monthly", "Mon", 31),
        ],
    )
    def test_start_never_after_now_and_stable_until_next(self, period, start_day, start_date):
        t = _utc(2026, 1, 1, 7, 45)
        for _ in range(80):
            start = period_start(t, period, start_day, start_date)
            end = next_period_start(t, period, start_day, start_date)
            assert start <= t < end
            assert period_start(end - timedelta(milliseconds=1), period, start_day, start_date) == start
            assert period_start(end, period, start_day, start_date) == end
            t += timedelta(days=5, hours=7)


class TestEpochHelpers:
    def test_period_start_ms(self):
        ms = period_start_ms(_utc(2026, 10, 14, 15, 30), "daily")
        assert ms == to_epoch_ms(_utc(2026, 10, 14))
        assert ms % 1000 == 0

    def test_from_epoch_ms_with_zone_name(self):
        dt = from_epoch_ms(to_epoch_ms(_utc(2026, 10, 14, 12)), "UTC")
        assert dt.hour == 12
        assert dt.utcoffset() == timedelta(0)

    def test_parse_weekday(self):
        assert parse_weekday("tue") == Weekday.tue
        assert parse_weekday("Saturday") == Weekday.sat
        assert parse_weekday(Weekday.fri) == Weekday.fri

    @pytest.mark.parametrize("raw", ["nonsense", "Monkey", "Tues", ""])
    def test_parse_weekday_rejects_unknown_names(self, raw):
        with pytest.raises(ValueError):
            parse_weekday(raw)

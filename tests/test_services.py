"""
Tests for the reporting functions in services.py.

Covers per-log hours and earnings, aggregation over log sets, weekday
bucketing, the dashboard summary and the date-range helpers.
"""

import logging
import random
from datetime import date, datetime, time, timedelta, timezone

import pytest

from domain import Currency, TimeFormat, UserProfile, WorkLog
from services import (
    WEEKDAYS,
    average_daily_hours,
    bucket_by_weekday,
    build_dashboard_summary,
    days_worked,
    delta,
    elapsed_seconds,
    format_elapsed,
    log_hours,
    month_bounds,
    report_periods,
    resolve_rate,
    running_earnings,
    split_at_midnight,
    total_earnings,
    total_hours,
    week_bounds,
)

MONDAY = date(2024, 3, 4)


def make_log(start="09:00", end="17:00", day=MONDAY, default_rate=True, custom_rate=None, log_id=None):
    def parse(s):
        if s is None:
            return None
        hh, mm = s.split(":")
        return time(int(hh), int(mm))
    return WorkLog(
        id=log_id,
        user_id="u1",
        date=day,
        start_time=parse(start),
        end_time=parse(end),
        default_rate=default_rate,
        custom_rate=custom_rate,
    )


class TestHours:
    def test_empty_is_zero(self):
        assert total_hours([]) == 0

    def test_missing_start_contributes_nothing(self):
        logs = [make_log("09:00", "17:00"), make_log(None, "12:00")]
        assert total_hours(logs) == 8.0

    def test_missing_end_contributes_nothing(self):
        assert log_hours(make_log("09:00", None)) == 0.0

    def test_fractional_hours(self):
        assert log_hours(make_log("09:00", "16:30")) == 7.5

    def test_end_before_start_counts_zero(self):
        assert log_hours(make_log("22:00", "02:00")) == 0.0

    def test_undated_log_still_counts(self):
        assert log_hours(make_log("08:00", "10:00", day=None)) == 2.0

    def test_order_invariant(self):
        logs = [make_log("09:00", "12:15"), make_log("13:00", "17:45"), make_log("06:30", "07:00")]
        shuffled = list(logs)
        random.Random(7).shuffle(shuffled)
        assert total_hours(shuffled) == pytest.approx(total_hours(logs))


class TestEarnings:
    def test_default_rate_uses_profile_wage(self):
        assert total_earnings([make_log("09:00", "13:00")], 20) == 80.0

    def test_custom_rate(self):
        log = make_log("09:00", "11:00", default_rate=False, custom_rate=15)
        assert total_earnings([log], 20) == 30.0

    def test_mixed_rates(self):
        logs = [
            make_log("09:00", "13:00"),
            make_log("14:00", "16:00", default_rate=False, custom_rate=15),
        ]
        assert total_earnings(logs, 20) == 110.0

    def test_empty_is_zero(self):
        assert total_earnings([], 20) == 0

    def test_missing_default_wage_contributes_zero_and_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="services"):
            assert total_earnings([make_log("09:00", "13:00", log_id=42)], None) == 0.0
        assert any("42" in r.getMessage() for r in caplog.records)

    def test_missing_custom_rate_contributes_zero(self):
        log = make_log("09:00", "13:00", default_rate=False, custom_rate=None)
        assert total_earnings([log], 20) == 0.0

    def test_resolve_rate(self):
        assert resolve_rate(make_log(), 12.5) == 12.5
        assert resolve_rate(make_log(default_rate=False, custom_rate=30), 12.5) == 30


class TestDeltaAndAverages:
    @pytest.mark.parametrize("current, previous", [(10, 4), (4, 10), (0, 0), (-2.5, 3.25)])
    def test_delta_is_subtraction(self, current, previous):
        assert delta(current, previous) == current - previous

    def test_average_daily_hours(self):
        logs = [
            make_log("09:00", "13:00", day=MONDAY),
            make_log("14:00", "17:00", day=MONDAY),
            make_log("09:00", "12:00", day=MONDAY + timedelta(days=1)),
        ]
        assert days_worked(logs) == 2
        assert average_daily_hours(logs) == 5.0

    def test_average_of_nothing_is_zero(self):
        assert average_daily_hours([]) == 0

    def test_undated_logs_are_not_days(self):
        assert days_worked([make_log(day=None)]) == 0
        assert average_daily_hours([make_log(day=None)]) == 0


class TestWeekdayBuckets:
    def test_always_seven_in_order(self):
        buckets = bucket_by_weekday([])
        assert [b.day for b in buckets] == WEEKDAYS == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        assert all(b.hours == 0 for b in buckets)

    def test_hours_land_on_their_weekday(self):
        logs = [
            make_log("09:00", "17:00", day=MONDAY + timedelta(days=6)),
            make_log("09:00", "12:00", day=MONDAY),
            make_log("13:00", "14:00", day=MONDAY),
            make_log("10:00", "12:30", day=MONDAY + timedelta(days=2)),
        ]
        hours = {b.day: b.hours for b in bucket_by_weekday(logs)}
        assert hours == {"Mon": 4.0, "Tue": 0.0, "Wed": 2.5, "Thu": 0.0, "Fri": 0.0, "Sat": 0.0, "Sun": 8.0}

    def test_undated_logs_skipped(self):
        assert sum(b.hours for b in bucket_by_weekday([make_log(day=None)])) == 0


class TestDashboardSummary:
    profile = UserProfile(user_id="u1", default_wage=20, currency=Currency.EUR, time_format=TimeFormat.H24)

    def build(self, profile=profile):
        week = [make_log("09:00", "17:00", day=MONDAY), make_log("09:00", "19:00", day=MONDAY + timedelta(days=1))]
        last_week = [make_log("09:00", "13:00", day=MONDAY - timedelta(days=7))]
        month = week + [make_log("09:00", "12:00", day=date(2024, 3, 1), default_rate=False, custom_rate=30)]
        last_month = [make_log("09:00", "17:00", day=date(2024, 2, 12))]
        return build_dashboard_summary(profile, week, last_week, month, last_month, list(reversed(month)))

    def test_figures(self):
        s = self.build()
        assert s.week_hours == 18.0
        assert s.week_hours_delta == 14.0
        assert s.month_earnings == 18.0 * 20 + 3 * 30
        assert s.month_earnings_delta == s.month_earnings - 160.0
        assert s.days_worked == 3
        assert s.average_daily_hours == 7.0
        assert s.average_daily_hours_delta == -1.0
        assert s.currency == Currency.EUR
        assert s.time_format == TimeFormat.H24

    def test_chart_scale_and_buckets(self):
        s = self.build()
        assert len(s.weekly) == 7
        assert s.weekly[1].hours == 10.0
        assert s.chart_max_hours == 10.0

    def test_chart_scale_floor(self):
        s = build_dashboard_summary(None, [], [], [], [], [])
        assert s.chart_max_hours == 8.0

    def test_recent_logs_annotated(self):
        s = self.build()
        assert [(r.hours, r.earnings) for r in s.recent] == [(3.0, 90.0), (10.0, 200.0), (8.0, 160.0)]

    def test_no_profile_degrades_to_zero_earnings(self):
        s = self.build(profile=None)
        assert s.month_earnings == 90.0
        assert s.currency == Currency.GBP
        assert s.time_format == TimeFormat.H12

    def test_idempotent(self):
        assert self.build() == self.build()


class TestPeriods:
    def test_week_starts_on_monday(self):
        assert week_bounds(date(2024, 3, 6)) == (MONDAY, date(2024, 3, 10))
        assert week_bounds(MONDAY) == (MONDAY, date(2024, 3, 10))
        assert week_bounds(date(2024, 3, 10)) == (MONDAY, date(2024, 3, 10))

    def test_month_bounds(self):
        assert month_bounds(date(2024, 2, 14)) == (date(2024, 2, 1), date(2024, 2, 29))
        assert month_bounds(date(2023, 12, 31)) == (date(2023, 12, 1), date(2023, 12, 31))

    def test_report_periods(self):
        p = report_periods(date(2024, 3, 6))
        assert p.current_week == (MONDAY, date(2024, 3, 10))
        assert p.last_week == (date(2024, 2, 26), date(2024, 3, 3))
        assert p.current_month == (date(2024, 3, 1), date(2024, 3, 31))
        assert p.last_month == (date(2024, 2, 1), date(2024, 2, 29))

    def test_report_periods_across_year(self):
        p = report_periods(date(2024, 1, 15))
        assert p.last_month == (date(2023, 12, 1), date(2023, 12, 31))


class TestLiveClock:
    def test_elapsed_and_earnings(self):
        start = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)
        seconds = elapsed_seconds(start, start + timedelta(hours=1, minutes=30, seconds=5))
        assert seconds == 5405
        assert format_elapsed(seconds) == "01:30:05"
        assert running_earnings(3600, 20) == 20.0

    def test_clock_never_negative(self):
        start = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)
        assert elapsed_seconds(start, start - timedelta(seconds=3)) == 0

    def test_no_rate_earns_nothing(self):
        assert running_earnings(3600, None) == 0.0


class TestSplitAtMidnight:
    def test_same_day(self):
        start = datetime(2024, 3, 4, 9, 0)
        assert split_at_midnight(start, start.replace(hour=17)) == [(MONDAY, time(9), time(17))]

    def test_over_midnight(self):
        pieces = split_at_midnight(datetime(2024, 3, 4, 22, 0), datetime(2024, 3, 5, 2, 0))
        assert pieces == [(MONDAY, time(22), time.max), (MONDAY + timedelta(days=1), time(0), time(2))]

    def test_whole_days_in_between(self):
        pieces = split_at_midnight(datetime(2024, 3, 4, 20, 0), datetime(2024, 3, 6, 4, 0))
        assert [p[0] for p in pieces] == [MONDAY + timedelta(days=i) for i in range(3)]
        assert pieces[1][1:] == (time(0), time.max)
        logs = [WorkLog(user_id="u1", date=d, start_time=t0, end_time=t1) for d, t0, t1 in pieces]
        assert total_hours(logs) == pytest.approx(32.0, abs=1e-6)

    def test_ending_exactly_at_midnight(self):
        pieces = split_at_midnight(datetime(2024, 3, 4, 20, 0), datetime(2024, 3, 5, 0, 0))
        assert pieces == [(MONDAY, time(20), time.max)]

    def test_zero_length_session_kept(self):
        start = datetime(2024, 3, 4, 9, 0)
        assert split_at_midnight(start, start) == [(MONDAY, time(9), time(9))]

    def test_end_before_start(self):
        with pytest.raises(ValueError):
            split_at_midnight(datetime(2024, 3, 5, 1, 0), datetime(2024, 3, 4, 23, 0))

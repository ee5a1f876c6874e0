# services.py
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, Sequence

from domain import (
    DashboardSummary,
    RecentLog,
    ReportPeriods,
    UserProfile,
    WeekdayHours,
    WorkLog,
)

logger = logging.getLogger(__name__)

WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
CHART_FLOOR_HOURS = 8.0


# =========================
# Per-log rules
# =========================
def log_hours(log: WorkLog) -> float:
    """Elapsed hours of a single log. Incomplete logs count as 0.

    Sessions crossing midnight are not modelled, so an end before the start
    also yields 0.
    """
    if log.start_time is None or log.end_time is None:
        return 0.0
    base = log.date or date.min
    t0 = datetime.combine(base, log.start_time)
    t1 = datetime.combine(base, log.end_time)
    if t1 < t0:
        logger.warning("Work log %s ends before it starts; counted as 0 hours", log.id)
        return 0.0
    return (t1 - t0).total_seconds() / 3600.0


def resolve_rate(log: WorkLog, default_wage: float | None) -> float | None:
    return default_wage if log.default_rate else log.custom_rate


def log_earnings(log: WorkLog, default_wage: float | None) -> float:
    """Hours times the resolved rate. A missing rate contributes 0."""
    rate = resolve_rate(log, default_wage)
    if rate is None:
        logger.warning(
            "Work log %s has no resolvable rate (default_rate=%s); earnings counted as 0",
            log.id, log.default_rate,
        )
        return 0.0
    return log_hours(log) * float(rate)


# =========================
# Aggregates
# =========================
def total_hours(logs: Iterable[WorkLog]) -> float:
    return sum((log_hours(log) for log in logs), 0.0)


def total_earnings(logs: Iterable[WorkLog], default_wage: float | None) -> float:
    return sum((log_earnings(log, default_wage) for log in logs), 0.0)


def delta(current: float, previous: float) -> float:
    return current - previous


def days_worked(logs: Iterable[WorkLog]) -> int:
    """Number of distinct calendar dates among the logs (undated logs ignored)."""
    return len({log.date for log in logs if log.date is not None})


def average_daily_hours(logs: Sequence[WorkLog]) -> float:
    days = days_worked(logs)
    if days == 0:
        return 0.0
    return total_hours(logs) / days


def bucket_by_weekday(logs: Iterable[WorkLog]) -> list[WeekdayHours]:
    """Hours per weekday, always seven entries from Mon to Sun.

    The weekday comes straight from the stored calendar date, with no
    timezone conversion.
    """
    buckets: list[list[WorkLog]] = [[] for _ in WEEKDAYS]
    for log in logs:
        if log.date is None:
            continue
        buckets[log.date.weekday()].append(log)
    return [WeekdayHours(day=label, hours=total_hours(day_logs))
            for label, day_logs in zip(WEEKDAYS, buckets)]


def build_dashboard_summary(
    profile: UserProfile | None,
    current_week_logs: Sequence[WorkLog],
    last_week_logs: Sequence[WorkLog],
    current_month_logs: Sequence[WorkLog],
    last_month_logs: Sequence[WorkLog],
    recent_logs: Sequence[WorkLog],
) -> DashboardSummary:
    """Everything the dashboard shows, computed from already-fetched rows."""
    default_wage = profile.default_wage if profile else None

    week_hours = total_hours(current_week_logs)
    month_earnings = total_earnings(current_month_logs, default_wage)
    avg_hours = average_daily_hours(current_month_logs)
    weekly = bucket_by_weekday(current_week_logs)

    recent = [
        RecentLog(log=log, hours=log_hours(log), earnings=log_earnings(log, default_wage))
        for log in recent_logs
    ]

    extra = {}
    if profile is not None:
        extra = {"currency": profile.currency, "time_format": profile.time_format}

    return DashboardSummary(
        week_hours=week_hours,
        week_hours_delta=delta(week_hours, total_hours(last_week_logs)),
        month_earnings=month_earnings,
        month_earnings_delta=delta(month_earnings, total_earnings(last_month_logs, default_wage)),
        days_worked=days_worked(current_month_logs),
        average_daily_hours=avg_hours,
        average_daily_hours_delta=delta(avg_hours, average_daily_hours(last_month_logs)),
        weekly=weekly,
        chart_max_hours=max([w.hours for w in weekly] + [CHART_FLOOR_HOURS]),
        recent=recent,
        **extra,
    )


# =========================
# Date ranges (weeks start on Monday)
# =========================
def week_bounds(day: date) -> tuple[date, date]:
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def month_bounds(day: date) -> tuple[date, date]:
    first = day.replace(day=1)
    if first.month == 12:
        last = date(first.year + 1, 1, 1) - timedelta(days=1)
    else:
        last = date(first.year, first.month + 1, 1) - timedelta(days=1)
    return first, last


def report_periods(today: date) -> ReportPeriods:
    current_month = month_bounds(today)
    return ReportPeriods(
        current_week=week_bounds(today),
        last_week=week_bounds(today - timedelta(days=7)),
        current_month=current_month,
        last_month=month_bounds(current_month[0] - timedelta(days=1)),
    )


# =========================
# Live clock
# =========================
def elapsed_seconds(clock_in_at: datetime, now: datetime) -> int:
    return max(0, int((now - clock_in_at).total_seconds()))


def running_earnings(seconds: int, hourly_rate: float | None) -> float:
    if hourly_rate is None:
        return 0.0
    return seconds * float(hourly_rate) / 3600.0


def format_elapsed(seconds: int) -> str:
    h, rest = divmod(max(0, int(seconds)), 3600)
    m, s = divmod(rest, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def split_at_midnight(start: datetime, end: datetime) -> list[tuple[date, time, time]]:
    """(date, start, end) pieces of a session, one per calendar day.

    Days after the first start at 00:00, days before the last end at
    ``time.max``. A piece that would be empty at the very end (a session
    closing exactly at midnight) is dropped.
    """
    if end < start:
        raise ValueError("Session ends before it starts")
    pieces = []
    day = start.date()
    piece_start = start.time()
    while day < end.date():
        pieces.append((day, piece_start, time.max))
        day += timedelta(days=1)
        piece_start = time(0)
    if not pieces or end.time() > piece_start:
        pieces.append((day, piece_start, end.time()))
    return pieces

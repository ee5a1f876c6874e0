# domain.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum


class Currency(str, Enum):
    USD = "usd"
    EUR = "eur"
    GBP = "gbp"

    @classmethod
    def parse(cls, value: str | None) -> "Currency":
        """Unknown or missing values fall back to GBP."""
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.GBP


class TimeFormat(str, Enum):
    H12 = "12h"
    H24 = "24h"

    @classmethod
    def parse(cls, value: str | None) -> "TimeFormat":
        try:
            return cls(value or cls.H12.value)
        except ValueError:
            return cls.H12


class WorkWeek(str, Enum):
    MON_FRI = "mon-fri"
    MON_SAT = "mon-sat"
    MON_SUN = "mon-sun"

    @classmethod
    def parse(cls, value: str | None) -> "WorkWeek":
        try:
            return cls(value or cls.MON_FRI.value)
        except ValueError:
            return cls.MON_FRI


@dataclass(frozen=True)
class WorkLog:
    """One recorded work session. Every field but the owner may be missing."""
    user_id: str
    date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    default_rate: bool = True
    custom_rate: float | None = None
    notes: str | None = None
    id: int | None = None
    created_at: datetime | None = None

    @property
    def is_complete(self) -> bool:
        return self.start_time is not None and self.end_time is not None


@dataclass(frozen=True)
class UserProfile:
    user_id: str
    default_wage: float | None = None
    currency: Currency = Currency.GBP
    time_format: TimeFormat = TimeFormat.H12
    first_name: str | None = None
    last_name: str | None = None
    onboarding_completed: bool = False
    work_week: WorkWeek = WorkWeek.MON_FRI
    reminders: bool = False
    weekly_email: bool = False
    monthly_email: bool = False


@dataclass(frozen=True)
class WeekdayHours:
    day: str
    hours: float


@dataclass(frozen=True)
class RecentLog:
    """A log annotated with the figures shown next to it on the dashboard."""
    log: WorkLog
    hours: float
    earnings: float


@dataclass(frozen=True)
class DashboardSummary:
    week_hours: float
    week_hours_delta: float
    month_earnings: float
    month_earnings_delta: float
    days_worked: int
    average_daily_hours: float
    average_daily_hours_delta: float
    weekly: list[WeekdayHours] = field(default_factory=list)
    chart_max_hours: float = 8.0
    recent: list[RecentLog] = field(default_factory=list)
    currency: Currency = Currency.GBP
    time_format: TimeFormat = TimeFormat.H12


@dataclass(frozen=True)
class ReportPeriods:
    """Inclusive (start, end) date ranges queried for the dashboard."""
    current_week: tuple[date, date]
    last_week: tuple[date, date]
    current_month: tuple[date, date]
    last_month: tuple[date, date]


@dataclass(frozen=True)
class ClockStatus:
    user_id: str
    clock_in_at: datetime | None = None

    @property
    def clocked_in(self) -> bool:
        return self.clock_in_at is not None

# repository.py
from __future__ import annotations

import logging
from typing import List
from datetime import date, datetime, time, timezone
from uuid import uuid4

from sqlalchemy.pool import NullPool, StaticPool
from sqlalchemy import text
from sqlmodel import SQLModel, Field, Session, create_engine, select

from domain import ClockStatus, Currency, TimeFormat, UserProfile, WorkLog, WorkWeek
from services import split_at_midnight

logger = logging.getLogger(__name__)


# Timestamps are written timezone-aware in UTC. Backends that hand them back
# naive (SQLite without a UTC column type) are read as UTC.
def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(at: datetime | None) -> datetime | None:
    if at is None:
        return None
    if at.tzinfo is None:
        return at.replace(tzinfo=timezone.utc)
    return at.astimezone(timezone.utc)


class UserAccountDB(SQLModel, table=True):
    __tablename__ = "user_accounts"
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    created_at: datetime = Field(default_factory=_utcnow)


class UserProfileDB(SQLModel, table=True):
    __tablename__ = "user_profiles"
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, unique=True)
    default_wage: float | None = None
    currency: str | None = None
    time_format: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    onboarding_completed: bool = False
    work_week: str | None = None
    reminders: bool = False
    weekly_email: bool = False
    monthly_email: bool = False


class WorkLogDB(SQLModel, table=True):
    __tablename__ = "work_logs"
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    work_date: date | None = Field(default=None, index=True)
    start_time: time | None = None
    end_time: time | None = None
    default_rate: bool = True
    custom_rate: float | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class ClockEntryDB(SQLModel, table=True):
    __tablename__ = "clock_entries"
    user_id: str = Field(primary_key=True)
    clock_in_at: datetime


def build_engine(db_url: str, echo: bool = False):
    is_sqlite = db_url.startswith("sqlite")
    kwargs = {
        "echo": echo,
        "pool_pre_ping": True,
        "connect_args": {},
    }
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            # a single shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        # Serverless Postgres: no local pool, bounded connect time
        kwargs["poolclass"] = NullPool
        kwargs["connect_args"] = {"connect_timeout": 10}
        if "sslmode=" not in db_url:
            db_url += ("&" if "?" in db_url else "?") + "sslmode=require"
    return create_engine(db_url, **kwargs)


def _to_log(r: WorkLogDB) -> WorkLog:
    return WorkLog(
        id=r.id,
        user_id=r.user_id,
        date=r.work_date,
        start_time=r.start_time,
        end_time=r.end_time,
        default_rate=r.default_rate,
        custom_rate=r.custom_rate,
        notes=r.notes,
        created_at=_as_utc(r.created_at),
    )


def _to_profile(r: UserProfileDB) -> UserProfile:
    return UserProfile(
        user_id=r.user_id,
        default_wage=r.default_wage,
        currency=Currency.parse(r.currency),
        time_format=TimeFormat.parse(r.time_format),
        first_name=r.first_name,
        last_name=r.last_name,
        onboarding_completed=bool(r.onboarding_completed),
        work_week=WorkWeek.parse(r.work_week),
        reminders=bool(r.reminders),
        weekly_email=bool(r.weekly_email),
        monthly_email=bool(r.monthly_email),
    )


class TimeTrackerRepository:
    """Accounts, profiles, work logs and open clock-ins. Read-only for the dashboard."""
    def __init__(self, url: str = "sqlite:///workhours.db", echo: bool = False):
        self.primary_url = url
        self.engine = build_engine(url, echo=echo)

        # Fail fast when a remote database is unreachable
        if not url.startswith("sqlite"):
            try:
                with self.engine.connect() as conn:
                    conn.execute(text("select 1"))
            except Exception as e:
                raise RuntimeError(f"Could not connect to the database: {e}") from e

        SQLModel.metadata.create_all(self.engine)

    # ---- accounts ----
    def find_account(self, email: str) -> UserAccountDB | None:
        with Session(self.engine) as session:
            return session.exec(
                select(UserAccountDB).where(UserAccountDB.email == email.strip().lower())
            ).first()

    def create_account(self, email: str, password_hash: str) -> str:
        with Session(self.engine) as session:
            row = UserAccountDB(email=email.strip().lower(), password_hash=password_hash)
            session.add(row)
            session.commit()
            logger.info("Created account %s", row.id)
            return row.id

    # ---- profiles ----
    def get_profile(self, user_id: str) -> UserProfile | None:
        with Session(self.engine) as session:
            row = session.exec(
                select(UserProfileDB).where(UserProfileDB.user_id == user_id)
            ).first()
            return _to_profile(row) if row else None

    def save_profile(self, p: UserProfile) -> None:
        with Session(self.engine) as session:
            row = session.exec(
                select(UserProfileDB).where(UserProfileDB.user_id == p.user_id)
            ).first() or UserProfileDB(user_id=p.user_id)
            row.default_wage = p.default_wage
            row.currency = p.currency.value
            row.time_format = p.time_format.value
            row.first_name = p.first_name
            row.last_name = p.last_name
            row.onboarding_completed = p.onboarding_completed
            row.work_week = p.work_week.value
            row.reminders = p.reminders
            row.weekly_email = p.weekly_email
            row.monthly_email = p.monthly_email
            session.add(row)
            session.commit()
        logger.info("Saved profile for %s", p.user_id)

    # ---- work logs ----
    def add_log(self, log: WorkLog) -> WorkLog:
        with Session(self.engine) as session:
            row = WorkLogDB(
                user_id=log.user_id,
                work_date=log.date,
                start_time=log.start_time,
                end_time=log.end_time,
                default_rate=log.default_rate,
                custom_rate=log.custom_rate,
                notes=log.notes,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            logger.info("Added work log %s for %s on %s", row.id, row.user_id, row.work_date)
            return _to_log(row)

    def delete_log(self, user_id: str, log_id: int) -> bool:
        with Session(self.engine) as session:
            row = session.get(WorkLogDB, log_id)
            if row is None or row.user_id != user_id:
                return False
            session.delete(row)
            session.commit()
        logger.info("Deleted work log %s", log_id)
        return True

    def logs_between(self, user_id: str, start: date, end: date) -> List[WorkLog]:
        """Logs dated within [start, end], oldest first."""
        with Session(self.engine) as session:
            rows = session.exec(
                select(WorkLogDB)
                .where(WorkLogDB.user_id == user_id, WorkLogDB.work_date >= start, WorkLogDB.work_date <= end)
                .order_by(WorkLogDB.work_date.asc(), WorkLogDB.start_time.asc())
            ).all()
            return [_to_log(r) for r in rows]

    def recent_logs(self, user_id: str, limit: int = 5) -> List[WorkLog]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(WorkLogDB)
                .where(WorkLogDB.user_id == user_id)
                .order_by(WorkLogDB.work_date.desc(), WorkLogDB.start_time.desc())
                .limit(limit)
            ).all()
            return [_to_log(r) for r in rows]

    # ---- clock ----
    def clock_status(self, user_id: str) -> ClockStatus:
        with Session(self.engine) as session:
            row = session.get(ClockEntryDB, user_id)
            return ClockStatus(user_id=user_id, clock_in_at=_as_utc(row.clock_in_at) if row else None)

    def clock_in(self, user_id: str, at: datetime) -> ClockStatus:
        with Session(self.engine) as session:
            if session.get(ClockEntryDB, user_id) is not None:
                raise ValueError("Already clocked in")
            session.add(ClockEntryDB(user_id=user_id, clock_in_at=_as_utc(at)))
            session.commit()
        logger.info("%s clocked in at %s", user_id, at.isoformat())
        return self.clock_status(user_id)

    def clock_out(self, user_id: str, at: datetime) -> List[WorkLog]:
        """Closes the open clock-in and records it as default-rate work logs.

        Dates and times are taken in ``at``'s timezone, with one log per
        calendar day the session touches.
        """
        at = _as_utc(at).astimezone(at.tzinfo or timezone.utc).replace(microsecond=0)
        with Session(self.engine) as session:
            entry = session.get(ClockEntryDB, user_id)
            if entry is None:
                raise ValueError("Not clocked in")
            started = _as_utc(entry.clock_in_at).astimezone(at.tzinfo).replace(microsecond=0)
            rows = [
                WorkLogDB(user_id=user_id, work_date=day, start_time=t0, end_time=t1, default_rate=True)
                for day, t0, t1 in split_at_midnight(started, max(at, started))
            ]
            session.delete(entry)
            session.add_all(rows)
            session.commit()
            for row in rows:
                session.refresh(row)
            logger.info("%s clocked out at %s, %d work log(s)", user_id, at.isoformat(), len(rows))
            return [_to_log(r) for r in rows]


__all__ = [
    "UserAccountDB", "UserProfileDB", "WorkLogDB", "ClockEntryDB",
    "TimeTrackerRepository", "build_engine",
]

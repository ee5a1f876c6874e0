# config.py
import logging
import os
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo


def _writable(path: Path) -> bool:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    return os.access(path, os.W_OK)


def pick_data_dir() -> Path:
    """First writable of $DATA_DIR, /data and ./data; the cwd otherwise."""
    env = os.getenv("DATA_DIR")
    candidates = ([Path(env)] if env else []) + [Path("/data"), Path.cwd() / "data"]
    return next((p for p in candidates if _writable(p)), Path.cwd())


DATA_DIR = pick_data_dir()
DEFAULT_SQLITE = f"sqlite:///{(DATA_DIR / 'workhours.db').as_posix()}"
DB_URL = os.getenv("DATABASE_URL", DEFAULT_SQLITE)
SQL_ECHO = os.getenv("SQL_ECHO", "").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
TZ = ZoneInfo(os.getenv("APP_TIMEZONE", "UTC"))

APP_TITLE = "Work Hours Tracker"
RECENT_LOGS_LIMIT = 5


def now_local() -> datetime:
    return datetime.now(TZ)


def today_local() -> date:
    return now_local().date()


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

# utils.py
from datetime import time
from typing import Iterable

import pandas as pd

from domain import Currency, RecentLog, TimeFormat, WorkLog
from services import log_earnings, log_hours

CURRENCY_SYMBOLS = {Currency.USD: "$", Currency.EUR: "€", Currency.GBP: "£"}


def currency_symbol(currency: Currency | str | None) -> str:
    if not isinstance(currency, Currency):
        currency = Currency.parse(currency)
    return CURRENCY_SYMBOLS[currency]


def format_time_string(t: time | None, time_format: TimeFormat = TimeFormat.H12) -> str:
    if t is None:
        return "--:--"
    if time_format == TimeFormat.H24:
        return t.strftime("%H:%M")
    suffix = "AM" if t.hour < 12 else "PM"
    return f"{t.hour % 12 or 12}:{t.minute:02d} {suffix}"


def format_signed(value: float, digits: int = 1, prefix: str = "") -> str:
    """'+1.5' / '-0.5' style deltas, as shown under the dashboard figures."""
    sign = "+" if value >= 0 else "-"
    return f"{sign}{prefix}{abs(value):.{digits}f}"


def format_money(value: float, currency: Currency | str | None) -> str:
    return f"{currency_symbol(currency)}{value:,.2f}"


def recent_log_label(entry: RecentLog, time_format: TimeFormat) -> str:
    log = entry.log
    day = log.date.strftime("%A, %B %d").replace(" 0", " ") if log.date else "Undated"
    span = f"{format_time_string(log.start_time, time_format)} - {format_time_string(log.end_time, time_format)}"
    return f"{day} · {span}"


def logs_to_dataframe(logs: Iterable[WorkLog], default_wage: float | None = None,
                      time_format: TimeFormat = TimeFormat.H12) -> pd.DataFrame:
    rows = []
    for log in logs:
        rows.append({
            "Date": log.date.isoformat() if log.date else "",
            "Day": log.date.strftime("%a") if log.date else "",
            "Start": format_time_string(log.start_time, time_format),
            "End": format_time_string(log.end_time, time_format),
            "Rate": "Default" if log.default_rate else (log.custom_rate if log.custom_rate is not None else ""),
            "Hours": round(log_hours(log), 2),
            "Earnings": round(log_earnings(log, default_wage), 2),
            "Notes": log.notes or ""
        })
    df = pd.DataFrame(rows)
    if not df.empty:
        df = df.sort_values(["Date"], ascending=False, kind="stable").reset_index(drop=True)
    return df

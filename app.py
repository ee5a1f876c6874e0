# -----------------------------------------------
# ⏱️ Work Hours Tracker (Streamlit)
# -----------------------------------------------
# Requires: streamlit, sqlmodel, pandas, reportlab, werkzeug,
# psycopg2-binary (when DATABASE_URL points to Postgres).
# Run with: streamlit run app.py

from datetime import time

import streamlit as st

import config
from auth import AuthError, sign_in, sign_up
from domain import Currency, TimeFormat, UserProfile, WorkLog, WorkWeek
from reports import build_month_pdf, month_title
from repository import TimeTrackerRepository
from services import (
    build_dashboard_summary,
    elapsed_seconds,
    format_elapsed,
    month_bounds,
    report_periods,
    running_earnings,
)
from utils import (
    currency_symbol,
    format_money,
    format_signed,
    format_time_string,
    logs_to_dataframe,
    recent_log_label,
)

config.configure_logging()

st.set_page_config(page_title=config.APP_TITLE, page_icon="⏱️", layout="wide")


@st.cache_resource
def get_repo(url: str):
    return TimeTrackerRepository(url, echo=config.SQL_ECHO)


try:
    repo = get_repo(config.DB_URL)
except RuntimeError as e:
    st.error(str(e))
    st.stop()


# =========================
# State helpers
# =========================
def _flash_if_any():
    msg = st.session_state.pop("_flash_success", None)
    if msg:
        st.success(msg)
    msg = st.session_state.pop("_flash_warning", None)
    if msg:
        st.warning(msg)


def _sign_out():
    for k in ("user_id", "email"):
        st.session_state.pop(k, None)


# =========================
# Sign in / sign up
# =========================
def auth_page():
    st.title(f"⏱️ {config.APP_TITLE}")
    tab_in, tab_up = st.tabs(["Sign in", "Sign up"])
    with tab_in:
        with st.form("sign_in"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign in", use_container_width=True):
                try:
                    st.session_state["user_id"] = sign_in(repo, email, password)
                    st.session_state["email"] = email.strip().lower()
                    st.rerun()
                except AuthError as e:
                    st.error(str(e))
    with tab_up:
        with st.form("sign_up"):
            email = st.text_input("Email", key="signup_email")
            password = st.text_input("Password", type="password", key="signup_password")
            if st.form_submit_button("Create account", use_container_width=True):
                try:
                    sign_up(repo, email, password)
                    st.success("Account created. You can sign in now.")
                except AuthError as e:
                    st.error(str(e))


# =========================
# ⚙️ Settings / onboarding
# =========================
def settings_page(user_id: str, profile: UserProfile | None, onboarding: bool = False):
    st.header("👋 Welcome! Set up your profile" if onboarding else "⚙️ Settings")
    p = profile or UserProfile(user_id=user_id)
    currencies = [c.value for c in Currency]
    formats = [f.value for f in TimeFormat]
    weeks = [w.value for w in WorkWeek]
    with st.form("profile"):
        first = st.text_input("First name", value=p.first_name or "")
        last = st.text_input("Last name", value=p.last_name or "")
        wage = st.number_input("Default hourly wage", min_value=0.0, step=0.5, value=float(p.default_wage or 0.0))
        currency = st.selectbox("Currency", currencies, index=currencies.index(p.currency.value),
                                format_func=lambda c: f"{c.upper()} ({currency_symbol(c)})")
        time_format = st.radio("Time format", formats, index=formats.index(p.time_format.value), horizontal=True)
        work_week = st.selectbox("Work week", weeks, index=weeks.index(p.work_week.value),
                                 format_func=lambda w: w.replace("-", " – ").title())
        reminders = st.checkbox("Remind me to log my hours", value=p.reminders)
        weekly_email = st.checkbox("Weekly summary email", value=p.weekly_email)
        monthly_email = st.checkbox("Monthly summary email", value=p.monthly_email)
        if st.form_submit_button("Save", use_container_width=True):
            repo.save_profile(UserProfile(
                user_id=user_id,
                default_wage=wage,
                currency=Currency(currency),
                time_format=TimeFormat(time_format),
                first_name=first.strip() or None,
                last_name=last.strip() or None,
                onboarding_completed=True,
                work_week=WorkWeek(work_week),
                reminders=reminders,
                weekly_email=weekly_email,
                monthly_email=monthly_email,
            ))
            st.session_state["_flash_success"] = "Profile saved."
            st.rerun()


# =========================
# 📊 Dashboard
# =========================
def dashboard_page(user_id: str, profile: UserProfile | None):
    st.header("📊 Dashboard")
    periods = report_periods(config.today_local())
    summary = build_dashboard_summary(
        profile,
        repo.logs_between(user_id, *periods.current_week),
        repo.logs_between(user_id, *periods.last_week),
        repo.logs_between(user_id, *periods.current_month),
        repo.logs_between(user_id, *periods.last_month),
        repo.recent_logs(user_id, limit=config.RECENT_LOGS_LIMIT),
    )
    symbol = currency_symbol(summary.currency)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Hours This Week", f"{summary.week_hours:.1f}h",
              f"{format_signed(summary.week_hours_delta)}h from last week")
    c2.metric("This Month's Earnings", format_money(summary.month_earnings, summary.currency),
              f"{format_signed(summary.month_earnings_delta, 2, symbol)} from last month")
    c3.metric("Days Worked", summary.days_worked, help="This month")
    c4.metric("Average Daily Hours", f"{summary.average_daily_hours:.1f}h",
              f"{format_signed(summary.average_daily_hours_delta)}h from last month")

    left, right = st.columns([4, 3])
    with left:
        st.subheader("Recent Work Logs")
        if not summary.recent:
            st.info("No work logged yet.")
        for entry in summary.recent:
            a, b = st.columns([3, 2])
            a.markdown(recent_log_label(entry, summary.time_format))
            b.markdown(f"**{entry.hours:.1f} hours • {symbol}{entry.earnings:.2f}**")
    with right:
        st.subheader("Weekly Overview")
        for bucket in summary.weekly:
            a, b = st.columns([1, 5])
            a.markdown(f"**{bucket.day}**")
            b.progress(min(1.0, bucket.hours / summary.chart_max_hours), text=f"{bucket.hours:.1f}h")


# =========================
# ⏰ Clock in / out
# =========================
@st.fragment(run_every=1)
def _live_clock(clock_in_at, hourly_rate, currency, time_format):
    # Re-rendered every second only while this page is shown
    seconds = elapsed_seconds(clock_in_at, config.now_local())
    local_in = clock_in_at.astimezone(config.TZ)
    st.markdown(f"Clocked in at **{format_time_string(local_in.time(), time_format)}**")
    a, b = st.columns(2)
    a.metric("Time Worked", format_elapsed(seconds))
    b.metric("Earnings", format_money(running_earnings(seconds, hourly_rate), currency))


def clock_page(user_id: str, profile: UserProfile | None):
    st.header("⏰ Clock")
    status = repo.clock_status(user_id)
    wage = profile.default_wage if profile else None
    currency = profile.currency if profile else Currency.GBP
    time_format = profile.time_format if profile else TimeFormat.H12

    if status.clocked_in:
        _live_clock(status.clock_in_at, wage, currency, time_format)
        if st.button("Clock out", type="primary", use_container_width=True):
            try:
                logs = repo.clock_out(user_id, config.now_local())
            except ValueError as e:
                st.session_state["_flash_warning"] = str(e)
            else:
                st.session_state["_flash_success"] = "Logged " + ", ".join(
                    f"{format_time_string(log.start_time, time_format)} - "
                    f"{format_time_string(log.end_time, time_format)}"
                    for log in logs
                )
            st.rerun()
    else:
        st.caption("You are currently clocked out")
        if st.button("Clock in", type="primary", use_container_width=True):
            try:
                repo.clock_in(user_id, config.now_local())
            except ValueError as e:
                st.session_state["_flash_warning"] = str(e)
            st.rerun()


# =========================
# ➕ Log hours
# =========================
def log_hours_page(user_id: str, profile: UserProfile | None):
    st.header("➕ Log hours")
    wage = profile.default_wage if profile else None
    symbol = currency_symbol(profile.currency if profile else None)
    with st.form("log_hours", clear_on_submit=True):
        work_date = st.date_input("Date", value=config.today_local(), max_value=config.today_local())
        start = st.time_input("Start", value=time(9, 0), step=300)
        end = st.time_input("End", value=time(17, 0), step=300)
        use_default = st.checkbox(f"Use default rate ({symbol}{wage or 0:.2f}/h)", value=True)
        custom = st.number_input("Custom hourly rate", min_value=0.0, step=0.5, value=float(wage or 0.0))
        notes = st.text_input("Notes (optional)")
        if st.form_submit_button("Save log", use_container_width=True):
            if end < start:
                st.warning("End time must be after start time.")
            else:
                repo.add_log(WorkLog(
                    user_id=user_id, date=work_date, start_time=start, end_time=end,
                    default_rate=use_default, custom_rate=None if use_default else custom,
                    notes=notes.strip() or None,
                ))
                st.session_state["_flash_success"] = f"Saved {work_date.strftime('%d/%m/%Y')}."
                st.rerun()

    st.subheader("🗓️ This month")
    today = config.today_local()
    d1, d2 = month_bounds(today)
    logs = repo.logs_between(user_id, d1, d2)
    time_format = profile.time_format if profile else TimeFormat.H12
    df = logs_to_dataframe(logs, default_wage=wage, time_format=time_format)
    if df.empty:
        st.info("No logs this month.")
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)
    pdf_bytes = build_month_pdf(logs, profile, title=f"{config.APP_TITLE} — {month_title(d1)}")
    st.download_button(
        "Download this month as PDF",
        data=pdf_bytes,
        file_name=f"report_{d1:%Y-%m}.pdf",
        mime="application/pdf",
        disabled=df.empty,
        use_container_width=True,
    )


# =========================
# Router
# =========================
user_id = st.session_state.get("user_id")
if not user_id:
    auth_page()
    st.stop()

profile = repo.get_profile(user_id)
st.sidebar.caption(st.session_state.get("email", ""))
st.sidebar.button("Sign out", on_click=_sign_out, use_container_width=True)

if profile is None or not profile.onboarding_completed:
    settings_page(user_id, profile, onboarding=True)
    st.stop()

pages = {
    "Dashboard": dashboard_page,
    "Clock": clock_page,
    "Log hours": log_hours_page,
    "Settings": settings_page,
}
choice = st.sidebar.radio("Navigate", list(pages), label_visibility="collapsed")
_flash_if_any()
pages[choice](user_id, profile)

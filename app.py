"""
Life Tracker - Streamlit entry point.

Run with:
    streamlit run app.py
"""
from __future__ import annotations
from datetime import date

import streamlit as st

from tracker_core.analytics import (
    attendance_summary,
    clamp_percentage,
    consecutive_day_streak,
    current_streak,
    daily_counts,
    monthly_consistency,
    percentage_progress,
    sleep_summary,
    total_for_day,
    weekly_totals,
)
from tracker_core.config import load_settings
from tracker_core.errors import ErrorContext, safe_execute
from tracker_core.logging import setup_logging
from tracker_core.offline import OperationKind, get_tracker_service
from tracker_core.ui import render_offline_indicator, render_weekly_chart

PRAYERS = ["Fajr", "Dhuhr", "Asr", "Maghrib", "Isha"]
DAILY_STUDY_GOAL = 6.0
SLEEP_GOAL_HOURS = 8.0

# ============================================================================
# PAGE CONFIGURATION
# ============================================================================
st.set_page_config(page_title="Life Tracker", page_icon="📘", layout="wide")

if "_logging_ready" not in st.session_state:
    setup_logging(load_settings().log_level)
    st.session_state["_logging_ready"] = True

service = get_tracker_service()

# ============================================================================
# SIDEBAR: user + sync status
# ============================================================================
with st.sidebar:
    st.header("Life Tracker")
    user_id = st.text_input("User ID", value=st.session_state.get("user_id", ""))
    if user_id and user_id != service.current_user:
        st.session_state["user_id"] = user_id
        service.sign_in(user_id)

    render_offline_indicator(service.is_online, service.pending_count)
    if st.button("Sync now", disabled=not service.is_online or service.pending_count == 0):
        if service.sync_pending_data():
            st.success("Offline data synced")
        else:
            st.warning("Sync did not finish; queued writes are kept")

    sync_status = service.sync_engine.get_status_display()
    if sync_status["last_error"]:
        st.caption(f"Sync attempt {sync_status['drains']} failed: {sync_status['last_error']}")

if not service.current_user:
    st.info("Enter a user ID in the sidebar to start tracking.")
    st.stop()

study_tab, prayer_tab, sleep_tab, attendance_tab = st.tabs(["📚 Study", "🕌 Prayer", "😴 Sleep", "🎓 Attendance"])

# ============================================================================
# STUDY SESSIONS
# ============================================================================
with study_tab:
    with st.form("study_form", clear_on_submit=True):
        cols = st.columns(3)
        subject = cols[0].text_input("Subject")
        duration = cols[1].number_input("Hours", min_value=0.25, max_value=12.0, value=1.0, step=0.25)
        session_date = cols[2].date_input("Date", value=date.today())
        submitted = st.form_submit_button("Log session")

    if submitted and subject:
        result = service.write(
            "study_sessions",
            OperationKind.INSERT,
            {"subject": subject, "duration": float(duration), "date": session_date.isoformat()},
        )
        if not result:
            st.error(f"Could not save session: {result.error}")
        elif result.metadata and result.metadata.get("queued"):
            st.info("Saved offline; it will sync when you're back online.")
        else:
            st.success("Session logged")

    sessions = []
    with ErrorContext("Loading study sessions"):
        sessions = service.fetch("study_sessions")

    studied_today = total_for_day(sessions, "duration")
    c1, c2, c3 = st.columns(3)
    c1.metric("Today", f"{studied_today}h")
    c2.metric("Daily goal", f"{percentage_progress(studied_today, DAILY_STUDY_GOAL)}%")
    c3.metric("Study streak", f"{current_streak(sessions)} days", f"{monthly_consistency(sessions)}% of days this month")
    st.progress(clamp_percentage(percentage_progress(studied_today, DAILY_STUDY_GOAL)) / 100)

    render_weekly_chart(weekly_totals(sessions, "duration"), goal=DAILY_STUDY_GOAL, chart_key="study_week")

# ============================================================================
# PRAYER RECORDS
# ============================================================================
with prayer_tab:
    prayer_records = []
    with ErrorContext("Loading prayer records"):
        prayer_records = service.fetch("prayer_records")

    today_str = date.today().isoformat()
    done_today = {r.get("prayer_name") for r in prayer_records if str(r.get("date", ""))[:10] == today_str}

    cols = st.columns(len(PRAYERS))
    for col, prayer in zip(cols, PRAYERS):
        if prayer in done_today:
            col.success(f"✅ {prayer}")
        elif col.button(f"Mark {prayer}", key=f"prayer_{prayer}"):
            result = service.write(
                "prayer_records",
                OperationKind.INSERT,
                {"prayer_name": prayer, "prayer_type": "individual", "date": today_str},
            )
            if result:
                st.rerun()
            else:
                st.error(f"Could not save prayer: {result.error}")

    counts = daily_counts(prayer_records)
    p1, p2, p3 = st.columns(3)
    p1.metric("Today", f"{len(done_today)}/{len(PRAYERS)}")
    p2.metric("Current streak", f"{current_streak(prayer_records, min_per_day=5)} days")
    p3.metric("Personal best", f"{consecutive_day_streak(prayer_records, min_per_day=5)} days")

    days_so_far = date.today().day
    month_total = sum(n for d, n in counts.items() if d.year == date.today().year and d.month == date.today().month)
    st.caption(f"Monthly progress: {percentage_progress(month_total, days_so_far * len(PRAYERS))}%")

# ============================================================================
# SLEEP
# ============================================================================
with sleep_tab:
    with st.form("sleep_form", clear_on_submit=True):
        cols = st.columns(3)
        hours = cols[0].number_input("Hours slept", min_value=0.0, max_value=16.0, value=8.0, step=0.5)
        quality = cols[1].slider("Quality", min_value=1, max_value=5, value=3)
        night = cols[2].date_input("Night of", value=date.today())
        logged = st.form_submit_button("Log sleep")

    if logged:
        result = service.write(
            "sleep_records",
            OperationKind.INSERT,
            {"duration": float(hours), "quality": int(quality), "date": night.isoformat()},
        )
        if not result:
            st.error(f"Could not save sleep: {result.error}")

    sleep_records = safe_execute(
        service.fetch, "sleep_records", default=[], error_message="Could not load sleep records"
    )

    summary = sleep_summary(sleep_records, goal_hours=SLEEP_GOAL_HOURS)
    s1, s2, s3 = st.columns(3)
    s1.metric("Average", f"{summary['avg_duration']}h")
    s2.metric("Quality", f"{summary['avg_quality']}/5")
    s3.metric("Goal nights", f"{summary['goal_achieved']}/{summary['total_nights']}", summary["trend"])
    render_weekly_chart(weekly_totals(sleep_records, "duration"), goal=SLEEP_GOAL_HOURS, chart_key="sleep_week")

# ============================================================================
# ATTENDANCE
# ============================================================================
with attendance_tab:
    attendance = safe_execute(
        service.fetch, "attendance_records", default=[], error_message="Could not load attendance"
    )

    overview = attendance_summary(attendance)
    st.metric("Attendance", f"{overview['percentage']}%", f"{overview['present']}/{overview['total']} present")
    for subject, stats in overview["by_subject"].items():
        st.progress(clamp_percentage(stats["percentage"]) / 100, text=f"{subject}: {stats['percentage']}%")

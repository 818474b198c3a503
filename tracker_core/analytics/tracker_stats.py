# =============================================================================
# tracker_core/analytics/tracker_stats.py
# Per-Tracker Summary Statistics
# =============================================================================
"""
Summary numbers shown on the tracker pages.

Every function takes plain record dicts (as returned by
TrackerDataService.fetch) and returns plain Python values, so pages can
feed them straight into st.metric / st.progress.
"""

from __future__ import annotations
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from tracker_core.analytics.streaks import percentage_progress, round_half_up


def _frame(records: Iterable[Mapping[str, Any]], date_field: str = "date") -> pd.DataFrame:
    """Records as a DataFrame with a `day` column of local dates."""
    df = pd.DataFrame(list(records))
    if df.empty or date_field not in df.columns:
        return pd.DataFrame(columns=["day"])
    df["day"] = pd.to_datetime(df[date_field].astype(str).str[:10], errors="coerce").dt.date
    return df.dropna(subset=["day"])


def _numeric_column(df: pd.DataFrame, column: str) -> pd.Series:
    if column not in df.columns:
        return pd.Series(0.0, index=df.index)
    return pd.to_numeric(df[column], errors="coerce").fillna(0)


def daily_totals(
    records: Iterable[Mapping[str, Any]],
    value_field: str,
    date_field: str = "date",
) -> pd.Series:
    """
    Sum of `value_field` per day (e.g. study hours, Quran pages).

    Returns:
        Series indexed by date, ascending; empty if there are no records
    """
    df = _frame(records, date_field)
    if df.empty or value_field not in df.columns:
        return pd.Series(dtype=float)
    return _numeric_column(df, value_field).groupby(df["day"]).sum().sort_index()


def total_for_day(
    records: Iterable[Mapping[str, Any]],
    value_field: str,
    day: Optional[date] = None,
    date_field: str = "date",
) -> float:
    """Total of `value_field` on one day (default today), to one decimal."""
    day = day or date.today()
    totals = daily_totals(records, value_field, date_field)
    return round_half_up(float(totals.get(day, 0.0)), 1)


def weekly_totals(
    records: Iterable[Mapping[str, Any]],
    value_field: str,
    today: Optional[date] = None,
    date_field: str = "date",
) -> List[Tuple[date, float]]:
    """Per-day totals for the 7 days ending today, zero-filled, to one decimal."""
    today = today or date.today()
    days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    totals = daily_totals(records, value_field, date_field)
    return [(day, round_half_up(float(totals.get(day, 0.0)), 1)) for day in days]


def monthly_summary(
    records: Iterable[Mapping[str, Any]],
    value_field: str,
    today: Optional[date] = None,
    date_field: str = "date",
) -> Dict[str, Any]:
    """
    Month-to-date summary (Quran reading card).

    consistency is sessions / day-of-month as a percentage, so two
    sessions on one day count twice.
    """
    today = today or date.today()
    df = _frame(records, date_field)
    month_start = today.replace(day=1)
    if not df.empty:
        df = df[(df["day"] >= month_start) & (df["day"] <= today)]

    days_so_far = today.day
    if df.empty or value_field not in df.columns:
        total = 0.0
        sessions = 0
    else:
        total = float(_numeric_column(df, value_field).sum())
        sessions = int(len(df))

    return {
        "total": total,
        "sessions": sessions,
        "average_per_day": round_half_up(total / days_so_far, 1),
        "consistency": percentage_progress(sessions, days_so_far),
    }


def monthly_consistency(
    records: Iterable[Mapping[str, Any]],
    today: Optional[date] = None,
    date_field: str = "date",
) -> int:
    """Distinct active days this month so far, as a percentage of day-of-month."""
    today = today or date.today()
    df = _frame(records, date_field)
    if df.empty:
        return 0
    month_start = today.replace(day=1)
    active_days = df.loc[(df["day"] >= month_start) & (df["day"] <= today), "day"].nunique()
    return percentage_progress(int(active_days), today.day)


def attendance_summary(records: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Present/late/absent counts and present-percentage, overall and by subject.

    Only `present` counts toward the percentage; `late` does not.
    """
    df = pd.DataFrame(list(records))
    if df.empty or "status" not in df.columns:
        return {"total": 0, "present": 0, "absent": 0, "late": 0, "percentage": 0, "by_subject": {}}

    def _summarize(frame: pd.DataFrame) -> Dict[str, int]:
        total = int(len(frame))
        present = int((frame["status"] == "present").sum())
        return {
            "total": total,
            "present": present,
            "absent": int((frame["status"] == "absent").sum()),
            "late": int((frame["status"] == "late").sum()),
            "percentage": percentage_progress(present, total) if total else 0,
        }

    summary: Dict[str, Any] = _summarize(df)
    by_subject: Dict[str, Dict[str, int]] = {}
    if "subject" in df.columns:
        for subject, frame in df.groupby("subject", sort=True):
            by_subject[str(subject)] = _summarize(frame)
    summary["by_subject"] = by_subject
    return summary


def sleep_summary(records: Iterable[Mapping[str, Any]], goal_hours: float = 8.0) -> Dict[str, Any]:
    """
    Averages over all sleep records plus the share of nights meeting the goal.

    `trend` compares the 7 most recent records with the 7 before them
    (records are expected newest-first, as fetched): "improving" or
    "declining" past half an hour either way, otherwise "stable".
    """
    rows = list(records)
    if not rows:
        return {
            "avg_duration": 0,
            "avg_quality": 0,
            "goal_achieved": 0,
            "total_nights": 0,
            "goal_percentage": 0,
            "trend": "stable",
        }

    df = pd.DataFrame(rows)
    duration = _numeric_column(df, "duration")
    quality = _numeric_column(df, "quality")
    goal_achieved = int((duration >= goal_hours).sum())
    total = int(len(df))

    trend = "stable"
    recent, older = duration.iloc[:7], duration.iloc[7:14]
    if len(recent) and len(older):
        if recent.mean() > older.mean() + 0.5:
            trend = "improving"
        elif recent.mean() < older.mean() - 0.5:
            trend = "declining"

    return {
        "avg_duration": round_half_up(float(duration.mean()), 1),
        "avg_quality": round_half_up(float(quality.mean()), 1),
        "goal_achieved": goal_achieved,
        "total_nights": total,
        "goal_percentage": percentage_progress(goal_achieved, total),
        "trend": trend,
    }

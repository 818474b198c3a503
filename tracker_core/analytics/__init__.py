# =============================================================================
# tracker_core/analytics/__init__.py
# Streaks, consistency and per-tracker statistics
# =============================================================================

from .streaks import (
    to_local_date,
    daily_counts,
    consecutive_day_streak,
    current_streak,
    is_done_today,
    round_half_up,
    percentage_progress,
    clamp_percentage,
)

from .tracker_stats import (
    daily_totals,
    total_for_day,
    weekly_totals,
    monthly_consistency,
    monthly_summary,
    attendance_summary,
    sleep_summary,
)

__all__ = [
    "to_local_date",
    "daily_counts",
    "consecutive_day_streak",
    "current_streak",
    "is_done_today",
    "round_half_up",
    "percentage_progress",
    "clamp_percentage",
    "daily_totals",
    "total_for_day",
    "weekly_totals",
    "monthly_summary",
    "monthly_consistency",
    "attendance_summary",
    "sleep_summary",
]

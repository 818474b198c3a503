# =============================================================================
# tracker_core/analytics/streaks.py
# Streak and Consistency Calculations
# Shared by the prayer, Quran, attendance and sleep trackers
# =============================================================================
"""
Streak / consistency helpers.

All day arithmetic uses local calendar dates: `today` defaults to
`date.today()`, and a record's day is the date part of its `date` field.
No UTC conversion and no 24-hour windows, so results can shift around
midnight or a timezone change.
"""

from __future__ import annotations
import math
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union
import logging

logger = logging.getLogger(__name__)

DateLike = Union[str, date, datetime]
Predicate = Callable[[Mapping[str, Any]], bool]


def to_local_date(value: DateLike) -> date:
    """
    Calendar date of a record value.

    Accepts `date`, naive `datetime` (taken as local wall-clock time) and
    ISO strings; only the leading YYYY-MM-DD of a string is used.

    Raises:
        ValueError: If the value cannot be read as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Not a date: {value!r}")


def daily_counts(
    records: Iterable[Mapping[str, Any]],
    predicate: Optional[Predicate] = None,
    date_field: str = "date",
) -> Dict[date, int]:
    """Number of qualifying records per calendar date."""
    counts: Counter = Counter()
    for record in records:
        if predicate is not None and not predicate(record):
            continue
        try:
            counts[to_local_date(record[date_field])] += 1
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Skipping record without a usable {date_field!r}: {record!r}")
    return dict(counts)


def consecutive_day_streak(
    records: Iterable[Mapping[str, Any]],
    min_per_day: int = 1,
    predicate: Optional[Predicate] = None,
    today: Optional[date] = None,
    date_field: str = "date",
) -> int:
    """
    Longest run of consecutive calendar days, ending at or before today,
    on which at least `min_per_day` qualifying records exist.

    A day below the threshold ends the run, and so does a missing day.

    Args:
        records: Records with a `date_field`, in any order
        min_per_day: Qualifying records needed for a day to count
        predicate: Decides whether a record qualifies (default: all do)
        today: Reference date (default: local today)

    Returns:
        Length of the longest run, 0 if none
    """
    today = today or date.today()
    counts = daily_counts(records, predicate, date_field)

    best = 0
    run = 0
    last_hit: Optional[date] = None
    for day in sorted(d for d in counts if d <= today):
        if counts[day] >= min_per_day:
            run = run + 1 if last_hit == day - timedelta(days=1) else 1
            last_hit = day
            best = max(best, run)
        else:
            run = 0
            last_hit = None
    return best


def current_streak(
    records: Iterable[Mapping[str, Any]],
    min_per_day: int = 1,
    predicate: Optional[Predicate] = None,
    today: Optional[date] = None,
    date_field: str = "date",
) -> int:
    """
    Days in a row, counting back from today, that meet `min_per_day`.

    0 when today itself is not met yet. This is the "Day Streak" card;
    consecutive_day_streak() gives the personal best.
    """
    day = today or date.today()
    counts = daily_counts(records, predicate, date_field)

    streak = 0
    while counts.get(day, 0) >= min_per_day:
        streak += 1
        day -= timedelta(days=1)
    return streak


def is_done_today(
    records: Iterable[Mapping[str, Any]],
    today: Optional[date] = None,
    date_field: str = "date",
) -> bool:
    """True if any record falls on today's local date."""
    today = today or date.today()
    for record in records:
        try:
            if to_local_date(record[date_field]) == today:
                return True
        except (KeyError, TypeError, ValueError):
            continue
    return False


def round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 away from zero for positives (Python's round() rounds to even)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def percentage_progress(count: float, goal: float) -> int:
    """
    round(100 * count / goal), halves rounded up.

    Not clamped: 7 of 5 gives 140. Callers guard goal == 0, which raises
    ZeroDivisionError here.
    """
    return int(round_half_up(100 * count / goal))


def clamp_percentage(value: float, low: float = 0, high: float = 100) -> float:
    """Clamp a percentage for progress-bar display."""
    return max(low, min(high, value))

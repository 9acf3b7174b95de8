"""Training consistency metrics over logged session dates."""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta
from typing import Iterable

from pawcoach.models.progress import LEVELS, ProgressRecord

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def current_streak(training_days: Iterable[date], today: date) -> int:
    """Count consecutive training days ending today.

    A streak stays alive through the current day: if the dog trained
    yesterday but not yet today, the run ending yesterday is reported.

    Args:
        training_days: Days with at least one completed session.
        today: Reference day.

    Returns:
        int: Length of the active streak in days.
    """

    days = set(training_days)
    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_streak(training_days: Iterable[date]) -> int:
    """Return the longest run of consecutive training days."""

    days = sorted(set(training_days))
    best = 0
    run = 0
    previous: date | None = None
    for day in days:
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        best = max(best, run)
        previous = day
    return best


def has_perfect_week(training_days: Iterable[date]) -> bool:
    """Return whether any Monday-to-Sunday week was trained every single day."""

    days = set(training_days)
    for day in days:
        if day.weekday() != 0:
            continue
        if all(day + timedelta(days=offset) in days for offset in range(1, 7)):
            return True
    return False


def sessions_by_weekday(completed_at: Iterable[datetime], today: date) -> dict[str, int]:
    """Count sessions per day for the seven days ending today.

    Args:
        completed_at: Session completion timestamps.
        today: Last day of the window.

    Returns:
        dict[str, int]: Weekday label to count, oldest day first.
    """

    window = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    counts = Counter(stamp.date() for stamp in completed_at)
    return {WEEKDAY_LABELS[day.weekday()]: counts.get(day, 0) for day in window}


def level_counts(progress: Iterable[ProgressRecord]) -> dict[str, int]:
    """Tally records per mastery level; unknown levels are not counted."""

    counts = dict.fromkeys(LEVELS, 0)
    for record in progress:
        if record.level in counts:
            counts[record.level] += 1
    return counts


def mastery_percentage(progress: Iterable[ProgressRecord], catalog_size: int) -> float:
    """Share of the full catalog that is mastered, 0-100."""

    if catalog_size <= 0:
        return 0.0
    mastered = level_counts(progress)["mastered"]
    return max(0.0, min(100.0, mastered / catalog_size * 100))

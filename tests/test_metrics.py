from datetime import date, datetime, timedelta

from pawcoach.models.metrics import (
    current_streak,
    has_perfect_week,
    level_counts,
    longest_streak,
    mastery_percentage,
    sessions_by_weekday,
)
from pawcoach.models.progress import ProgressRecord


def test_current_streak_counts_back_from_today() -> None:
    today = date(2024, 3, 10)
    days = {today, today - timedelta(days=1), today - timedelta(days=2), today - timedelta(days=5)}
    assert current_streak(days, today) == 3


def test_current_streak_survives_until_end_of_day() -> None:
    today = date(2024, 3, 10)
    days = {today - timedelta(days=1), today - timedelta(days=2)}
    assert current_streak(days, today) == 2
    assert current_streak({today - timedelta(days=2)}, today) == 0
    assert current_streak(set(), today) == 0


def test_longest_streak() -> None:
    start = date(2024, 1, 1)
    days = [start + timedelta(days=i) for i in (0, 1, 2, 3, 7, 8, 20)]
    assert longest_streak(days) == 4
    assert longest_streak([]) == 0


def test_perfect_week_needs_monday_to_sunday() -> None:
    monday = date(2024, 1, 1)
    assert has_perfect_week(monday + timedelta(days=i) for i in range(7)) is True
    assert has_perfect_week(monday + timedelta(days=i) for i in range(1, 8)) is False
    assert has_perfect_week(monday + timedelta(days=i) for i in range(6)) is False


def test_sessions_by_weekday_window() -> None:
    today = date(2024, 1, 7)
    stamps = [
        datetime(2024, 1, 1, 8, 0),
        datetime(2024, 1, 3, 9, 0),
        datetime(2024, 1, 3, 18, 30),
        datetime(2024, 1, 7, 7, 15),
        datetime(2023, 12, 31, 10, 0),
    ]
    counts = sessions_by_weekday(stamps, today)
    assert list(counts) == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    assert counts == {"Mon": 1, "Tue": 0, "Wed": 2, "Thu": 0, "Fri": 0, "Sat": 0, "Sun": 1}


def test_level_counts_and_mastery_percentage() -> None:
    progress = [
        ProgressRecord("sit", "mastered"),
        ProgressRecord("down", "mastered"),
        ProgressRecord("stay", "learning"),
        ProgressRecord("come", "expert"),
    ]
    assert level_counts(progress) == {"not_started": 0, "learning": 1, "practicing": 0, "mastered": 2}
    assert mastery_percentage(progress, 8) == 25.0
    assert mastery_percentage(progress, 0) == 0.0

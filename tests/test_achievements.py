from pawcoach.decision.achievements import (
    ACHIEVEMENTS,
    AchievementStats,
    evaluate_unlocked,
    get_achievement_progress,
)
from pawcoach.models.progress import ProgressRecord


def test_goal_progress_starts_at_zero() -> None:
    entries = get_achievement_progress([], 0, 0)
    assert [entry.name for entry in entries] == ["Week Warrior", "Month Master", "Centennial", "Command Expert"]
    assert [entry.target for entry in entries] == [7, 30, 100, 5]
    for entry in entries:
        assert entry.current == 0
        assert entry.progress == 0
        assert entry.remaining == entry.target


def test_goal_progress_caps_at_hundred() -> None:
    entries = get_achievement_progress([], 100, 7)
    week, month, sessions, _ = entries
    assert (week.progress, week.remaining) == (100, 0)
    assert (sessions.progress, sessions.remaining) == (100, 0)
    assert round(month.progress, 2) == 23.33
    assert month.remaining == 23

    beyond = get_achievement_progress([], 250, 45)
    assert all(entry.progress <= 100 for entry in beyond)
    assert all(entry.remaining >= 0 for entry in beyond)


def test_command_expert_counts_mastered_records() -> None:
    progress = [
        ProgressRecord("sit", "mastered"),
        ProgressRecord("down", "mastered"),
        ProgressRecord("stay", "practicing"),
    ]
    expert = get_achievement_progress(progress, 20, 2)[3]
    assert expert.current == 2
    assert expert.progress == 40
    assert expert.remaining == 3


def test_evaluate_unlocked_in_definition_order() -> None:
    assert evaluate_unlocked(AchievementStats()) == []
    stats = AchievementStats(
        sessions_completed=120,
        current_streak=8,
        mastered_commands=5,
        all_basic_mastered=True,
        dogs_count=1,
        perfect_week=True,
    )
    assert evaluate_unlocked(stats) == [
        "first_training",
        "week_warrior",
        "command_expert",
        "all_master",
        "hundred_sessions",
        "perfect_week",
    ]


def test_every_achievement_has_display_fields() -> None:
    assert len(ACHIEVEMENTS) == 8
    for achievement_id, definition in ACHIEVEMENTS.items():
        assert definition.id == achievement_id
        assert definition.name
        assert definition.icon

"""Achievement definitions, goal progress, and unlock conditions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from pawcoach.models.progress import ProgressRecord, records_at_level


@dataclass(frozen=True)
class AchievementProgressEntry:
    """Progress toward one goal, ready for display."""

    name: str
    description: str
    icon: str
    current: float
    target: float
    progress: float
    remaining: float


@dataclass(frozen=True)
class AchievementStats:
    """Aggregate counters that unlock conditions are evaluated against."""

    sessions_completed: int = 0
    current_streak: int = 0
    mastered_commands: int = 0
    all_basic_mastered: bool = False
    dogs_count: int = 0
    perfect_week: bool = False


@dataclass(frozen=True)
class AchievementDefinition:
    """Unlockable badge."""

    id: str
    name: str
    description: str
    icon: str
    condition: Callable[[AchievementStats], bool]


ACHIEVEMENTS: dict[str, AchievementDefinition] = {
    definition.id: definition
    for definition in (
        AchievementDefinition(
            "first_training", "First Step", "Complete your first training session", "🐾",
            lambda s: s.sessions_completed >= 1,
        ),
        AchievementDefinition(
            "week_warrior", "Week Warrior", "Maintain a 7-day training streak", "🔥",
            lambda s: s.current_streak >= 7,
        ),
        AchievementDefinition(
            "month_master", "Month Master", "Maintain a 30-day training streak", "⭐",
            lambda s: s.current_streak >= 30,
        ),
        AchievementDefinition(
            "command_expert", "Command Expert", "Master 5 different commands", "🎓",
            lambda s: s.mastered_commands >= 5,
        ),
        AchievementDefinition(
            "all_master", "All Master", "Master all basic commands", "👑",
            lambda s: s.all_basic_mastered,
        ),
        AchievementDefinition(
            "multi_dog", "Pack Leader", "Train 3 or more dogs", "🐕‍🦺",
            lambda s: s.dogs_count >= 3,
        ),
        AchievementDefinition(
            "hundred_sessions", "Centennial", "Complete 100 training sessions", "💯",
            lambda s: s.sessions_completed >= 100,
        ),
        AchievementDefinition(
            "perfect_week", "Perfect Week", "Train every day for a week", "✨",
            lambda s: s.perfect_week,
        ),
    )
}

# (name, icon, description, target, source of ``current``)
_GOALS: tuple[tuple[str, str, str, int, str], ...] = (
    ("Week Warrior", "🔥", "Train for 7 consecutive days", 7, "streak"),
    ("Month Master", "⭐", "Train for 30 consecutive days", 30, "streak"),
    ("Centennial", "💯", "Complete 100 training sessions", 100, "sessions"),
    ("Command Expert", "🎓", "Master 5 different commands", 5, "mastered"),
)


def get_achievement_progress(
    progress: Sequence[ProgressRecord],
    total_sessions_completed: int,
    current_streak: int,
) -> list[AchievementProgressEntry]:
    """Return progress toward the four headline goals, always in the same order.

    Args:
        progress: Snapshot of per-command progress.
        total_sessions_completed: Lifetime session count.
        current_streak: Consecutive training days.

    Returns:
        list[AchievementProgressEntry]: Week, month, sessions, commands.
    """

    sources = {
        "streak": current_streak,
        "sessions": total_sessions_completed,
        "mastered": len(records_at_level(list(progress), "mastered")),
    }
    entries: list[AchievementProgressEntry] = []
    for name, icon, description, target, source in _GOALS:
        current = sources[source]
        entries.append(
            AchievementProgressEntry(
                name=name,
                description=description,
                icon=icon,
                current=current,
                target=target,
                progress=min(current / target * 100, 100),
                remaining=max(target - current, 0),
            )
        )
    return entries


def evaluate_unlocked(stats: AchievementStats) -> list[str]:
    """Return ids of every achievement whose condition ``stats`` satisfies, in definition order."""

    return [achievement_id for achievement_id, definition in ACHIEVEMENTS.items() if definition.condition(stats)]

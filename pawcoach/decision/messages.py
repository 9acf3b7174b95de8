"""Hardcoded insight and summary copy helpers."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from pawcoach.data.catalog import Command, default_catalog
from pawcoach.models.progress import ProgressRecord, records_at_level


def _fixed(value: float, digits: int) -> str:
    """Format with ``digits`` decimals, rounding the exact binary value half up."""

    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def get_training_insights(
    progress: Sequence[ProgressRecord],
    total_sessions_completed: int,
    catalog: Iterable[Command] | None = None,
) -> list[str]:
    """Describe notable training patterns.

    Args:
        progress: Snapshot of per-command progress.
        total_sessions_completed: Lifetime session count.
        catalog: Command catalog; defaults to the bundled one.

    Returns:
        list[str]: Observations in a fixed check order; empty when nothing applies.
    """

    progress = list(progress)
    insights: list[str] = []

    mastered = len(records_at_level(progress, "mastered"))
    learning = len(records_at_level(progress, "learning"))

    if mastered > 0:
        mastery_rate = _fixed(mastered / len(progress) * 100, 0)
        insights.append(f"🏆 You've mastered {mastered} commands ({mastery_rate}% mastery rate)!")

    if learning > 0 and learning > mastered:
        insights.append(f"📈 Great momentum! You're actively learning {learning} commands. Keep it up!")

    # An empty snapshot has no per-command average to report.
    if total_sessions_completed > 0 and progress:
        per_command = _fixed(total_sessions_completed / len(progress), 1)
        insights.append(f"⚡ Average {per_command} sessions per command. You're an efficient trainer!")

    if mastered == 5:
        insights.append("🌟 You've reached 5 mastered commands! Advanced training awaits.")

    if total_sessions_completed == 50:
        insights.append("💪 50 sessions complete! You're a dedicated trainer.")

    index: dict[str, Command] = {}
    for command in default_catalog() if catalog is None else catalog:
        index.setdefault(command.id, command)
    categories = [index[record.command_id].category for record in progress if record.command_id in index]
    basic_count = categories.count("basic")
    manners_count = categories.count("manners")
    advanced_count = categories.count("advanced")

    if basic_count > 0 and manners_count == 0:
        insights.append('🎯 Next step: Try some manners commands like "Leave It"')
    elif basic_count > 0 and manners_count > 0 and advanced_count == 0:
        insights.append('🚀 Ready for advanced commands? Try "Shake" or "Spin"')

    return insights


def weekly_summary_text(sessions_by_day: dict[str, int]) -> str:
    """Build compact weekly narrative summary.

    Example:
        "This week: 4 sessions across 3 days, busiest on Tue (2)."
    """

    total = sum(sessions_by_day.values())
    if total == 0:
        return "This week: no training sessions yet. A five-minute Sit session is a great start."

    active_days = sum(1 for count in sessions_by_day.values() if count > 0)
    busiest_day, busiest_count = max(sessions_by_day.items(), key=lambda item: item[1])
    session_word = "session" if total == 1 else "sessions"
    day_word = "day" if active_days == 1 else "days"
    return (
        f"This week: {total} {session_word} across {active_days} {day_word}, "
        f"busiest on {busiest_day} ({busiest_count})."
    )

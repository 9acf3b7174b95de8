"""Rule-based recommendation engine: what to train next."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from pawcoach.data.catalog import CATEGORIES, Command, default_catalog
from pawcoach.models.progress import ProgressRecord, records_at_level

MAX_RECOMMENDATIONS = 5
PRIORITY_WEIGHTS = {"high": 3, "medium": 2, "low": 1}


@dataclass(frozen=True)
class RecommendationItem:
    """One ranked suggestion."""

    command: Command
    reason: str
    priority: str
    score: float
    icon: str


def priority_weight(priority: str) -> int:
    return PRIORITY_WEIGHTS.get(priority, 0)


def _rank_key(item: RecommendationItem) -> tuple[int, float]:
    return (-priority_weight(item.priority), -item.score)


def _resolve(records: Iterable[ProgressRecord], index: dict[str, Command]) -> list[Command]:
    """Map records onto catalog commands, skipping ids the catalog does not know."""

    commands: list[Command] = []
    for record in records:
        command = index.get(record.command_id)
        if command is not None:
            commands.append(command)
    return commands


def generate_recommendations(
    progress: Sequence[ProgressRecord],
    total_sessions_completed: int,
    catalog: Iterable[Command] | None = None,
) -> list[RecommendationItem]:
    """Suggest up to five commands to train next.

    Args:
        progress: Snapshot of per-command progress for one dog.
        total_sessions_completed: Lifetime session count for the dog.
        catalog: Command catalog; defaults to the bundled one.

    Rules, each evaluated independently:
        1) Finish commands in ``learning`` (high, earlier sessions score higher).
        2) Reinforce commands in ``practicing`` (medium).
        3) Step up one difficulty level above the hardest mastered command (high).
        4) Cold start with a difficulty-1 command when nothing is underway (high).
        5) Fill categories missing from the mastered set once 3+ are mastered (medium).
        6) A quick mastered command on every fifth session (high).

    Returns:
        list[RecommendationItem]: Ranked by priority then score, unique per command.
    """

    index: dict[str, Command] = {}
    for command in default_catalog() if catalog is None else catalog:
        index.setdefault(command.id, command)

    progress = list(progress)
    not_started = records_at_level(progress, "not_started")
    learning = records_at_level(progress, "learning")
    practicing = records_at_level(progress, "practicing")
    mastered = records_at_level(progress, "mastered")

    candidates: list[RecommendationItem] = []

    for record in learning:
        command = index.get(record.command_id)
        if command is None:
            continue
        candidates.append(
            RecommendationItem(
                command=command,
                reason=f'You\'re almost there! Keep training "{command.name}" to master it.',
                priority="high",
                score=90 - record.sessions_completed * 5,
                icon="🎓",
            )
        )

    for record in practicing:
        command = index.get(record.command_id)
        if command is None:
            continue
        candidates.append(
            RecommendationItem(
                command=command,
                reason=f'Great progress! A few more sessions will master "{command.name}".',
                priority="medium",
                score=70 - record.sessions_completed,
                icon="✨",
            )
        )

    not_started_commands = _resolve(not_started, index)
    mastered_commands = _resolve(mastered, index)

    if not_started and mastered:
        difficulties = [command.difficulty for command in mastered_commands if command.difficulty > 0]
        # No resolvable mastered difficulty means there is no level to step up from.
        if difficulties:
            next_difficulty = min(max(difficulties) + 1, 3)
            eligible = sorted(
                (command for command in not_started_commands if command.difficulty <= next_difficulty),
                key=lambda command: command.difficulty,
            )
            if eligible:
                command = eligible[0]
                candidates.append(
                    RecommendationItem(
                        command=command,
                        reason=f'Time to level up! Try "{command.name}" to expand your dog\'s skills.',
                        priority="high",
                        score=85,
                        icon="🚀",
                    )
                )

    if not mastered and not learning and not_started:
        starter = next((command for command in not_started_commands if command.difficulty == 1), None)
        if starter is not None:
            candidates.append(
                RecommendationItem(
                    command=starter,
                    reason=f'Perfect starting point! "{starter.name}" is an essential command.',
                    priority="high",
                    score=95,
                    icon="🐾",
                )
            )

    if len(mastered) >= 3:
        covered = {command.category for command in mastered_commands}
        for category in CATEGORIES:
            if category in covered:
                continue
            pick = next((command for command in not_started_commands if command.category == category), None)
            if pick is not None:
                candidates.append(
                    RecommendationItem(
                        command=pick,
                        reason=f'Diversify! Try a {category} command like "{pick.name}".',
                        priority="medium",
                        score=75,
                        icon="🎯",
                    )
                )

    if total_sessions_completed > 0 and total_sessions_completed % 5 == 0:
        quick = next((command for command in mastered_commands if command.estimated_minutes <= 10), None)
        if quick is not None:
            candidates.append(
                RecommendationItem(
                    command=quick,
                    reason=f'Keep the streak alive! Do a quick "{quick.name}" session.',
                    priority="high",
                    score=80,
                    icon="🔥",
                )
            )

    candidates.sort(key=_rank_key)

    unique: dict[str, RecommendationItem] = {}
    for item in candidates:
        current = unique.get(item.command.id)
        if current is None or current.score < item.score:
            unique[item.command.id] = item

    return sorted(unique.values(), key=_rank_key)[:MAX_RECOMMENDATIONS]

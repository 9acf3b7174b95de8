"""Achievement unlock tracking."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pawcoach.data.catalog import commands_by_category
from pawcoach.data.database import AchievementUnlock, CommandProgress, Dog
from pawcoach.data.sessions import training_days
from pawcoach.decision.achievements import AchievementStats, evaluate_unlocked
from pawcoach.models.metrics import has_perfect_week

LOGGER = logging.getLogger(__name__)


def collect_stats(db: Session, dog: Dog) -> AchievementStats:
    """Gather the counters achievement conditions are evaluated against.

    Args:
        db: Database session.
        dog: Dog whose record is evaluated.

    Returns:
        AchievementStats: Snapshot of counters.
    """

    mastered_ids = set(
        db.scalars(
            select(CommandProgress.command_id).where(
                CommandProgress.dog_id == dog.id,
                CommandProgress.level == "mastered",
            )
        ).all()
    )
    basic_ids = {command.id for command in commands_by_category("basic")}
    dogs_count = db.scalar(select(func.count(Dog.id)).where(Dog.user_id == dog.user_id)) or 0

    return AchievementStats(
        sessions_completed=dog.total_sessions_completed or 0,
        current_streak=dog.current_streak or 0,
        mastered_commands=len(mastered_ids),
        all_basic_mastered=bool(basic_ids) and basic_ids <= mastered_ids,
        dogs_count=int(dogs_count),
        perfect_week=has_perfect_week(training_days(db, dog.id)),
    )


def list_unlocks(db: Session, dog_id: int) -> list[AchievementUnlock]:
    return list(
        db.scalars(
            select(AchievementUnlock)
            .where(AchievementUnlock.dog_id == dog_id)
            .order_by(AchievementUnlock.unlocked_at.asc(), AchievementUnlock.id.asc())
        ).all()
    )


def record_unlocks(db: Session, dog: Dog, now: datetime | None = None) -> list[str]:
    """Persist newly earned achievements.

    Args:
        db: Database session.
        dog: Dog to evaluate.
        now: Unlock timestamp, defaults to now.

    Returns:
        list[str]: Achievement ids unlocked by this call; already-held ones are skipped.
    """

    earned = evaluate_unlocked(collect_stats(db, dog))
    held = {row.achievement_id for row in list_unlocks(db, dog.id)}
    fresh = [achievement_id for achievement_id in earned if achievement_id not in held]
    stamp = now or datetime.utcnow()
    for achievement_id in fresh:
        db.add(AchievementUnlock(dog_id=dog.id, achievement_id=achievement_id, unlocked_at=stamp))
    if fresh:
        db.flush()
        LOGGER.info("record_unlocks dog=%s unlocked=%s", dog.id, fresh)
    return fresh

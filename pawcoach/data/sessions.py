"""Dogs, progress snapshots, and training session logging."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from pawcoach.data.catalog import Command, default_catalog, get_command_by_id
from pawcoach.data.database import AchievementUnlock, CommandProgress, Dog, Schedule, TrainingSession, User
from pawcoach.models.metrics import current_streak, longest_streak
from pawcoach.models.progress import LEVELS, ProgressRecord

LOGGER = logging.getLogger(__name__)


@dataclass
class SessionLogResult:
    """Outcome of logging one training session."""

    session_id: int
    command_id: str
    level: str
    sessions_completed: int
    total_sessions_completed: int
    current_streak: int
    longest_streak: int


def create_user(db: Session, email: str, display_name: str = "") -> User:
    """Create a user account record.

    Args:
        db: Database session.
        email: Unique login email.
        display_name: Name shown in the app.

    Returns:
        User: Stored row with id assigned.
    """

    email = email.strip().lower()
    if not email:
        raise ValueError("Email is required")
    if db.scalar(select(User).where(User.email == email)) is not None:
        raise ValueError(f"User with email {email} already exists")
    user = User(email=email, display_name=display_name.strip())
    db.add(user)
    db.flush()
    return user


def get_dog(db: Session, dog_id: int) -> Dog:
    dog = db.get(Dog, dog_id)
    if dog is None:
        raise ValueError(f"Dog {dog_id} not found")
    return dog


def list_dogs(db: Session, user_id: int) -> list[Dog]:
    return list(db.scalars(select(Dog).where(Dog.user_id == user_id).order_by(Dog.id.asc())).all())


def create_dog(
    db: Session,
    user_id: int,
    name: str,
    breed: str = "",
    age: int = 0,
    catalog: Iterable[Command] | None = None,
) -> Dog:
    """Create a dog profile and seed one not-started record per catalog command.

    Args:
        db: Database session.
        user_id: Owning user id.
        name: Dog name.
        breed: Breed label.
        age: Age in years.
        catalog: Command catalog; defaults to the bundled one.

    Returns:
        Dog: Stored dog row.
    """

    user = db.get(User, user_id)
    if user is None:
        raise ValueError(f"User {user_id} not found")
    if not name.strip():
        raise ValueError("Dog name is required")
    if age < 0:
        raise ValueError("Dog age cannot be negative")

    dog = Dog(
        user_id=user_id,
        name=name.strip(),
        breed=breed.strip(),
        age=age,
        total_sessions_completed=0,
        current_streak=0,
        longest_streak=0,
    )
    db.add(dog)
    db.flush()

    commands = default_catalog() if catalog is None else tuple(catalog)
    db.add_all(
        CommandProgress(dog_id=dog.id, command_id=command.id, level="not_started", sessions_completed=0, notes="")
        for command in commands
    )
    if user.active_dog_id is None:
        user.active_dog_id = dog.id
    db.flush()
    LOGGER.info("create_dog user=%s dog=%s seeded=%s", user_id, dog.id, len(commands))
    return dog


def delete_dog(db: Session, dog_id: int) -> bool:
    """Delete a dog and everything recorded for it."""

    dog = db.get(Dog, dog_id)
    if dog is None:
        return False
    db.execute(delete(TrainingSession).where(TrainingSession.dog_id == dog_id))
    db.execute(delete(CommandProgress).where(CommandProgress.dog_id == dog_id))
    db.execute(delete(AchievementUnlock).where(AchievementUnlock.dog_id == dog_id))
    db.execute(delete(Schedule).where(Schedule.dog_id == dog_id))
    user = db.get(User, dog.user_id)
    if user is not None and user.active_dog_id == dog_id:
        user.active_dog_id = None
    db.delete(dog)
    db.flush()
    return True


def progress_snapshot(db: Session, dog_id: int, catalog: Iterable[Command] | None = None) -> list[ProgressRecord]:
    """Load the dog's progress rows as core input, in catalog order.

    Rows whose command is not in the catalog are kept, after the known ones,
    so downstream rules can skip them the same way they skip any unknown id.
    """

    commands = default_catalog() if catalog is None else tuple(catalog)
    position = {command.id: idx for idx, command in enumerate(commands)}
    rows = db.scalars(select(CommandProgress).where(CommandProgress.dog_id == dog_id)).all()
    rows = sorted(rows, key=lambda row: (position.get(row.command_id, len(position)), row.command_id))
    return [
        ProgressRecord(
            command_id=row.command_id,
            level=row.level,
            sessions_completed=row.sessions_completed or 0,
            last_practiced=row.last_practiced,
            notes=row.notes or "",
        )
        for row in rows
    ]


def progress_revision(db: Session, dog_id: int) -> str:
    """Opaque token that changes whenever the dog's sessions or progress change."""

    dog = get_dog(db, dog_id)
    latest = db.scalar(select(func.max(CommandProgress.updated_at)).where(CommandProgress.dog_id == dog_id))
    stamp = latest.isoformat() if latest is not None else "-"
    return f"{dog.total_sessions_completed}:{dog.current_streak}:{stamp}"


def training_days(db: Session, dog_id: int) -> set[date]:
    stamps = db.scalars(select(TrainingSession.completed_at).where(TrainingSession.dog_id == dog_id)).all()
    return {stamp.date() for stamp in stamps}


def _get_or_create_progress(db: Session, dog_id: int, command_id: str) -> CommandProgress:
    row = db.scalar(
        select(CommandProgress).where(CommandProgress.dog_id == dog_id, CommandProgress.command_id == command_id)
    )
    if row is None:
        row = CommandProgress(dog_id=dog_id, command_id=command_id, level="not_started", sessions_completed=0, notes="")
        db.add(row)
    return row


def log_training_session(
    db: Session,
    dog_id: int,
    command_id: str,
    duration_seconds: int = 0,
    notes: str = "",
    completed_at: datetime | None = None,
    today: date | None = None,
    catalog: Iterable[Command] | None = None,
) -> SessionLogResult:
    """Record a completed session and roll it into progress and dog counters.

    Args:
        db: Database session.
        dog_id: Dog that trained.
        command_id: Catalog command practiced.
        duration_seconds: Session length.
        notes: Free-form trainer notes.
        completed_at: Completion time, defaults to now.
        today: Reference day for the current streak, defaults to the current UTC day.
        catalog: Command catalog; defaults to the bundled one.

    Returns:
        SessionLogResult: Updated counters.
    """

    t0 = time.perf_counter()
    dog = get_dog(db, dog_id)
    command = get_command_by_id(command_id, catalog)
    if command is None:
        raise ValueError(f"Command {command_id} not found in catalog")
    if duration_seconds < 0:
        raise ValueError("Session duration cannot be negative")

    completed_at = completed_at or datetime.utcnow()
    today = today or max(datetime.utcnow().date(), completed_at.date())

    session_row = TrainingSession(
        dog_id=dog.id,
        command_id=command.id,
        duration_seconds=duration_seconds,
        completed_at=completed_at,
        notes=notes,
    )
    db.add(session_row)

    progress = _get_or_create_progress(db, dog.id, command.id)
    progress.sessions_completed = (progress.sessions_completed or 0) + 1
    if progress.last_practiced is None or completed_at > progress.last_practiced:
        progress.last_practiced = completed_at
    if progress.level in (None, "not_started"):
        progress.level = "learning"
    if notes:
        progress.notes = notes
    db.flush()

    days = training_days(db, dog.id)
    dog.total_sessions_completed = (dog.total_sessions_completed or 0) + 1
    dog.current_streak = current_streak(days, today)
    dog.longest_streak = max(dog.longest_streak or 0, longest_streak(days))
    if dog.last_training_date is None or completed_at.date() > dog.last_training_date:
        dog.last_training_date = completed_at.date()
    db.flush()

    LOGGER.info(
        "log_training_session dog=%s command=%s level=%s total=%s streak=%s elapsed=%.3fs",
        dog.id,
        command.id,
        progress.level,
        dog.total_sessions_completed,
        dog.current_streak,
        time.perf_counter() - t0,
    )
    return SessionLogResult(
        session_id=session_row.id,
        command_id=command.id,
        level=progress.level,
        sessions_completed=progress.sessions_completed,
        total_sessions_completed=dog.total_sessions_completed,
        current_streak=dog.current_streak,
        longest_streak=dog.longest_streak,
    )


def update_progress_level(
    db: Session,
    dog_id: int,
    command_id: str,
    level: str,
    notes: str | None = None,
    catalog: Iterable[Command] | None = None,
) -> CommandProgress:
    """Set a command's mastery level explicitly."""

    if level not in LEVELS:
        raise ValueError(f"Unknown level {level!r}; expected one of {', '.join(LEVELS)}")
    get_dog(db, dog_id)
    if get_command_by_id(command_id, catalog) is None:
        raise ValueError(f"Command {command_id} not found in catalog")

    row = _get_or_create_progress(db, dog_id, command_id)
    row.level = level
    if notes is not None:
        row.notes = notes
    db.flush()
    LOGGER.info("update_progress_level dog=%s command=%s level=%s", dog_id, command_id, level)
    return row


def refresh_streak(db: Session, dog_id: int, today: date | None = None) -> Dog:
    """Recompute the dog's current streak, e.g. after a day without training."""

    dog = get_dog(db, dog_id)
    days = training_days(db, dog_id)
    dog.current_streak = current_streak(days, today or datetime.utcnow().date())
    dog.longest_streak = max(dog.longest_streak or 0, longest_streak(days))
    db.flush()
    return dog

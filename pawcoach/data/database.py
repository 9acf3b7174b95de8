"""Database models and SQLAlchemy session utilities."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from typing import Generator

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from pawcoach.config import settings


class Base(DeclarativeBase):
    """Base declarative class for all models."""


engine = create_engine(settings.database_url, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


class User(Base):
    """Account owning one or more dogs."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    display_name: Mapped[str] = mapped_column(String(128), default="")
    active_dog_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Dog(Base):
    """Dog profile with denormalized training counters."""

    __tablename__ = "dogs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    name: Mapped[str] = mapped_column(String(128))
    breed: Mapped[str] = mapped_column(String(128), default="")
    age: Mapped[int] = mapped_column(Integer, default=0)
    photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_sessions_completed: Mapped[int] = mapped_column(Integer, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_training_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class CommandProgress(Base):
    """Per-dog mastery state of one catalog command."""

    __tablename__ = "command_progress"
    __table_args__ = (UniqueConstraint("dog_id", "command_id", name="uq_progress_dog_command"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    dog_id: Mapped[int] = mapped_column(ForeignKey("dogs.id"), index=True)
    command_id: Mapped[str] = mapped_column(String(64), index=True)
    level: Mapped[str] = mapped_column(String(16), default="not_started")
    sessions_completed: Mapped[int] = mapped_column(Integer, default=0)
    last_practiced: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    notes: Mapped[str] = mapped_column(Text, default="")
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class TrainingSession(Base):
    """One completed training session."""

    __tablename__ = "training_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    dog_id: Mapped[int] = mapped_column(ForeignKey("dogs.id"), index=True)
    command_id: Mapped[str] = mapped_column(String(64), index=True)
    duration_seconds: Mapped[int] = mapped_column(Integer, default=0)
    completed_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    notes: Mapped[str] = mapped_column(Text, default="")


class Schedule(Base):
    """Recurring training reminder definition."""

    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    dog_id: Mapped[int] = mapped_column(ForeignKey("dogs.id"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    days: Mapped[list[str]] = mapped_column(JSON, default=list)
    time: Mapped[str] = mapped_column(String(5))
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    notification_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    program_id: Mapped[str | None] = mapped_column(String(64), nullable=True)


class AchievementUnlock(Base):
    """Achievement earned by a dog."""

    __tablename__ = "achievement_unlocks"
    __table_args__ = (UniqueConstraint("dog_id", "achievement_id", name="uq_unlock_dog_achievement"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    dog_id: Mapped[int] = mapped_column(ForeignKey("dogs.id"), index=True)
    achievement_id: Mapped[str] = mapped_column(String(64))
    unlocked_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


def init_db() -> None:
    """Create all tables.

    Returns:
        None
    """

    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Yield a managed SQLAlchemy session.

    Yields:
        Session: Active database session.
    """

    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

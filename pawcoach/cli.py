"""CLI entrypoint for PawCoach."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from datetime import datetime

import click

from pawcoach.config import settings
from pawcoach.data.catalog import CATEGORIES, default_catalog
from pawcoach.data.database import init_db, session_scope
from pawcoach.data.schedules import create_schedule, list_schedules, next_occurrence
from pawcoach.data.sessions import (
    create_dog,
    create_user,
    get_dog,
    log_training_session,
    progress_snapshot,
    refresh_streak,
    update_progress_level,
)
from pawcoach.decision.achievements import get_achievement_progress
from pawcoach.decision.messages import get_training_insights
from pawcoach.decision.recommender import generate_recommendations
from pawcoach.feedback.tracker import record_unlocks
from pawcoach.models.progress import LEVELS

logging.basicConfig(level=settings.log_level)
LOGGER = logging.getLogger(__name__)


def _echo(payload: object) -> None:
    click.echo(json.dumps(payload, indent=2, default=str, ensure_ascii=False))


@click.group()
def cli() -> None:
    """Dog training coach CLI."""


@cli.command("init")
def init_cmd() -> None:
    """Initialize database schema."""

    init_db()
    click.echo("Database initialized")


@cli.command("catalog")
@click.option("--category", type=click.Choice(CATEGORIES), default=None)
def catalog_cmd(category: str | None) -> None:
    """List trainable commands."""

    rows = [
        {
            "id": command.id,
            "name": command.name,
            "category": command.category,
            "difficulty": command.difficulty,
            "estimated_minutes": command.estimated_minutes,
        }
        for command in default_catalog()
        if category is None or command.category == category
    ]
    _echo(rows)


@cli.command("add-user")
@click.option("--email", required=True)
@click.option("--name", "display_name", default="")
def add_user_cmd(email: str, display_name: str) -> None:
    """Create a user."""

    try:
        with session_scope() as db:
            user = create_user(db, email, display_name)
            user_id = user.id
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Created user_id={user_id}")


@cli.command("add-dog")
@click.option("--user-id", required=True, type=int)
@click.option("--name", required=True)
@click.option("--breed", default="")
@click.option("--age", default=0, type=click.IntRange(min=0))
def add_dog_cmd(user_id: int, name: str, breed: str, age: int) -> None:
    """Create a dog profile with every catalog command not started."""

    try:
        with session_scope() as db:
            dog = create_dog(db, user_id, name, breed, age)
            dog_id = dog.id
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Created dog_id={dog_id}")


@cli.command("log-session")
@click.option("--dog-id", required=True, type=int)
@click.option("--command", "command_id", required=True, help="Catalog command id, e.g. sit")
@click.option("--minutes", default=0.0, type=click.FloatRange(min=0), help="Session length in minutes")
@click.option("--notes", default="")
def log_session_cmd(dog_id: int, command_id: str, minutes: float, notes: str) -> None:
    """Record a completed training session."""

    try:
        with session_scope() as db:
            result = log_training_session(db, dog_id, command_id, duration_seconds=round(minutes * 60), notes=notes)
            unlocked = record_unlocks(db, get_dog(db, dog_id))
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo({**asdict(result), "unlocked_achievements": unlocked})


@cli.command("set-level")
@click.option("--dog-id", required=True, type=int)
@click.option("--command", "command_id", required=True)
@click.option("--level", required=True, type=click.Choice(LEVELS))
@click.option("--notes", default=None)
def set_level_cmd(dog_id: int, command_id: str, level: str, notes: str | None) -> None:
    """Set a command's mastery level."""

    try:
        with session_scope() as db:
            update_progress_level(db, dog_id, command_id, level, notes)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"{command_id} is now {level}")


@cli.command("recommend")
@click.option("--dog-id", required=True, type=int)
def recommend_cmd(dog_id: int) -> None:
    """Suggest what to train next."""

    try:
        with session_scope() as db:
            dog = refresh_streak(db, dog_id)
            items = generate_recommendations(progress_snapshot(db, dog_id), dog.total_sessions_completed or 0)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo(
        [
            {
                "command_id": item.command.id,
                "command": item.command.name,
                "priority": item.priority,
                "score": item.score,
                "reason": f"{item.icon} {item.reason}",
            }
            for item in items
        ]
    )


@cli.command("achievements")
@click.option("--dog-id", required=True, type=int)
def achievements_cmd(dog_id: int) -> None:
    """Show progress toward headline goals."""

    try:
        with session_scope() as db:
            dog = refresh_streak(db, dog_id)
            entries = get_achievement_progress(
                progress_snapshot(db, dog_id),
                dog.total_sessions_completed or 0,
                dog.current_streak or 0,
            )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo([asdict(entry) for entry in entries])


@cli.command("insights")
@click.option("--dog-id", required=True, type=int)
def insights_cmd(dog_id: int) -> None:
    """Print training insights."""

    try:
        with session_scope() as db:
            dog = get_dog(db, dog_id)
            lines = get_training_insights(progress_snapshot(db, dog_id), dog.total_sessions_completed or 0)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    if not lines:
        click.echo("No insights yet. Log a few sessions first.")
    for line in lines:
        click.echo(line)


@cli.command("add-schedule")
@click.option("--user-id", required=True, type=int)
@click.option("--dog-id", required=True, type=int)
@click.option("--title", required=True)
@click.option("--days", required=True, help="Comma separated day codes, e.g. mon,wed,fri")
@click.option("--time", "time_of_day", required=True, help="HH:MM")
@click.option("--program", "program_id", default=None, help="Catalog command id to practice")
def add_schedule_cmd(user_id: int, dog_id: int, title: str, days: str, time_of_day: str, program_id: str | None) -> None:
    """Create a training reminder."""

    day_list = [part for part in days.split(",") if part.strip()]
    try:
        with session_scope() as db:
            row = create_schedule(db, user_id, dog_id, title, day_list, time_of_day, program_id=program_id)
            upcoming = next_occurrence(row, datetime.now())
            schedule_id = row.id
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo({"schedule_id": schedule_id, "next_occurrence": upcoming})


@cli.command("schedules")
@click.option("--user-id", required=True, type=int)
@click.option("--dog-id", default=None, type=int)
def schedules_cmd(user_id: int, dog_id: int | None) -> None:
    """List training reminders."""

    now = datetime.now()
    with session_scope() as db:
        rows = [
            {
                "id": row.id,
                "title": row.title,
                "days": list(row.days),
                "time": row.time,
                "enabled": row.enabled,
                "next_occurrence": next_occurrence(row, now),
            }
            for row in list_schedules(db, user_id, dog_id)
        ]
    _echo(rows)


if __name__ == "__main__":
    cli()

"""Training reminder schedules.

Only the reminder definitions live here: which days, what time, which
command. Delivering the notification is left to the client.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from pawcoach.data.catalog import get_command_by_id
from pawcoach.data.database import Dog, Schedule, User

LOGGER = logging.getLogger(__name__)

DAY_CODES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_UPDATABLE = {"title", "days", "time", "enabled", "notification_id", "program_id"}


def normalize_days(days: Iterable[str]) -> list[str]:
    """Validate day codes and return them de-duplicated in week order."""

    cleaned = {str(day).strip().lower()[:3] for day in days}
    unknown = sorted(cleaned - set(DAY_CODES))
    if unknown:
        raise ValueError(f"Unknown day code(s): {', '.join(unknown)}")
    return [day for day in DAY_CODES if day in cleaned]


def parse_time(value: str) -> tuple[int, int]:
    """Parse ``HH:MM`` into ``(hour, minute)``."""

    match = _TIME_RE.match(value.strip())
    if match is None:
        raise ValueError(f"Invalid time {value!r}; expected HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time {value!r}; expected HH:MM")
    return hour, minute


def _validate_program(program_id: str | None) -> str | None:
    if program_id is None:
        return None
    if get_command_by_id(program_id) is None:
        raise ValueError(f"Command {program_id} not found in catalog")
    return program_id


def create_schedule(
    db: Session,
    user_id: int,
    dog_id: int,
    title: str,
    days: Iterable[str],
    time: str,
    enabled: bool = True,
    program_id: str | None = None,
) -> Schedule:
    """Create a reminder schedule for one of the user's dogs."""

    if db.get(User, user_id) is None:
        raise ValueError(f"User {user_id} not found")
    dog = db.get(Dog, dog_id)
    if dog is None or dog.user_id != user_id:
        raise ValueError(f"Dog {dog_id} not found")
    if not title.strip():
        raise ValueError("Schedule title is required")

    hour, minute = parse_time(time)
    row = Schedule(
        user_id=user_id,
        dog_id=dog_id,
        title=title.strip(),
        days=normalize_days(days),
        time=f"{hour:02d}:{minute:02d}",
        enabled=enabled,
        notification_id=None,
        program_id=_validate_program(program_id),
    )
    db.add(row)
    db.flush()
    LOGGER.info("create_schedule user=%s dog=%s schedule=%s days=%s", user_id, dog_id, row.id, row.days)
    return row


def list_schedules(db: Session, user_id: int, dog_id: int | None = None) -> list[Schedule]:
    query = select(Schedule).where(Schedule.user_id == user_id)
    if dog_id is not None:
        query = query.where(Schedule.dog_id == dog_id)
    return list(db.scalars(query.order_by(Schedule.id.asc())).all())


def get_schedule(db: Session, schedule_id: int) -> Schedule:
    row = db.get(Schedule, schedule_id)
    if row is None:
        raise ValueError(f"Schedule {schedule_id} not found")
    return row


def update_schedule(db: Session, schedule_id: int, updates: dict[str, Any]) -> Schedule:
    """Apply a partial update; unknown fields are rejected."""

    row = get_schedule(db, schedule_id)
    unknown = sorted(set(updates) - _UPDATABLE)
    if unknown:
        raise ValueError(f"Cannot update field(s): {', '.join(unknown)}")

    if "title" in updates:
        if not str(updates["title"]).strip():
            raise ValueError("Schedule title is required")
        row.title = str(updates["title"]).strip()
    if "days" in updates:
        row.days = normalize_days(updates["days"])
    if "time" in updates:
        hour, minute = parse_time(str(updates["time"]))
        row.time = f"{hour:02d}:{minute:02d}"
    if "enabled" in updates:
        row.enabled = bool(updates["enabled"])
    if "notification_id" in updates:
        row.notification_id = updates["notification_id"]
    if "program_id" in updates:
        row.program_id = _validate_program(updates["program_id"])
    db.flush()
    return row


def delete_schedule(db: Session, schedule_id: int) -> bool:
    row = db.get(Schedule, schedule_id)
    if row is None:
        return False
    db.delete(row)
    db.flush()
    return True


def next_occurrence(schedule: Schedule, now: datetime) -> datetime | None:
    """Return the next time this reminder should fire after ``now``.

    Args:
        schedule: Reminder definition.
        now: Reference time (same timezone convention as the schedule).

    Returns:
        datetime | None: Next fire time, or ``None`` when disabled or without days.
    """

    if not schedule.enabled or not schedule.days:
        return None
    hour, minute = parse_time(schedule.time)
    wanted = {DAY_CODES.index(day) for day in schedule.days if day in DAY_CODES}
    # Eight days covers "same weekday next week" when today's slot has passed.
    for offset in range(8):
        candidate = (now + timedelta(days=offset)).replace(hour=hour, minute=minute, second=0, microsecond=0)
        if candidate.weekday() in wanted and candidate > now:
            return candidate
    return None

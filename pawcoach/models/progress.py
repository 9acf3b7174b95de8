"""Read-only progress snapshot types consumed by the decision modules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

LEVELS: tuple[str, ...] = ("not_started", "learning", "practicing", "mastered")


@dataclass(frozen=True)
class ProgressRecord:
    """Mastery state of one command for one dog.

    ``level`` is expected to be one of ``LEVELS``; any other value is carried
    through untouched and simply matches no rule downstream.
    """

    command_id: str
    level: str = "not_started"
    sessions_completed: int = 0
    last_practiced: datetime | None = None
    notes: str = ""


def records_at_level(progress: list[ProgressRecord], level: str) -> list[ProgressRecord]:
    """Return records at ``level`` in snapshot order."""

    return [record for record in progress if record.level == level]

"""Static catalog of trainable commands."""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

CATEGORIES: tuple[str, ...] = ("basic", "manners", "advanced")
CATALOG_PATH = Path(__file__).resolve().parent / "commands.json"


@dataclass(frozen=True)
class Command:
    """One catalog entry describing a trainable behavior."""

    id: str
    name: str
    description: str
    category: str
    difficulty: int
    estimated_minutes: int
    steps: tuple[str, ...] = ()
    tips: tuple[str, ...] = ()
    common_mistakes: tuple[str, ...] = ()


def _command_from_dict(raw: dict[str, Any]) -> Command:
    command_id = str(raw.get("id", "")).strip()
    if not command_id:
        raise ValueError("Catalog entry is missing an id.")

    category = str(raw.get("category", ""))
    if category not in CATEGORIES:
        raise ValueError(f"Command '{command_id}' has unknown category '{category}'.")

    difficulty = int(raw.get("difficulty", 0))
    if difficulty not in (1, 2, 3):
        raise ValueError(f"Command '{command_id}' has difficulty {difficulty}; expected 1-3.")

    minutes = int(raw.get("estimated_minutes", 0))
    if minutes <= 0:
        raise ValueError(f"Command '{command_id}' needs a positive estimated_minutes.")

    return Command(
        id=command_id,
        name=str(raw.get("name", command_id)),
        description=str(raw.get("description", "")),
        category=category,
        difficulty=difficulty,
        estimated_minutes=minutes,
        steps=tuple(str(item) for item in raw.get("steps", [])),
        tips=tuple(str(item) for item in raw.get("tips", [])),
        common_mistakes=tuple(str(item) for item in raw.get("common_mistakes", [])),
    )


def load_catalog(path: Path | str = CATALOG_PATH) -> tuple[Command, ...]:
    """Load commands from a JSON catalog file, preserving file order.

    Args:
        path: Catalog file with a top-level ``commands`` list.

    Returns:
        tuple[Command, ...]: Ordered, validated commands.
    """

    raw = json.loads(Path(path).read_text(encoding="utf-8-sig"))
    commands = [_command_from_dict(item) for item in raw.get("commands", [])]
    seen: set[str] = set()
    for command in commands:
        if command.id in seen:
            raise ValueError(f"Duplicate command id: {command.id}")
        seen.add(command.id)
    return tuple(commands)


@lru_cache(maxsize=1)
def default_catalog() -> tuple[Command, ...]:
    """Return the bundled catalog, loaded once per process."""

    return load_catalog()


def get_command_by_id(command_id: str, catalog: Iterable[Command] | None = None) -> Command | None:
    """Find a command by id; ``None`` when the id is not in the catalog."""

    for command in default_catalog() if catalog is None else catalog:
        if command.id == command_id:
            return command
    return None


def commands_by_category(category: str, catalog: Iterable[Command] | None = None) -> list[Command]:
    return [c for c in (default_catalog() if catalog is None else catalog) if c.category == category]

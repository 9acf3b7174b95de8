import json
from pathlib import Path

import pytest

from pawcoach.data.catalog import (
    CATEGORIES,
    commands_by_category,
    default_catalog,
    get_command_by_id,
    load_catalog,
)


def _write(tmp_path: Path, commands: list[dict]) -> Path:
    path = tmp_path / "commands.json"
    path.write_text(json.dumps({"commands": commands}), encoding="utf-8")
    return path


def _entry(command_id: str, **overrides) -> dict:
    entry = {"id": command_id, "name": command_id.title(), "category": "basic", "difficulty": 1, "estimated_minutes": 5}
    entry.update(overrides)
    return entry


def test_bundled_catalog_shape() -> None:
    catalog = default_catalog()
    assert len(catalog) == 15
    assert catalog[0].id == "sit"
    for category in CATEGORIES:
        assert len(commands_by_category(category)) == 5
    assert {command.difficulty for command in catalog} == {1, 2, 3}
    assert all(command.steps for command in catalog)


def test_lookup_by_id() -> None:
    leave_it = get_command_by_id("leave_it")
    assert leave_it is not None
    assert leave_it.name == "Leave It"
    assert leave_it.category == "manners"
    assert get_command_by_id("moonwalk") is None
    assert get_command_by_id("sit", catalog=()) is None


def test_load_catalog_preserves_file_order(tmp_path: Path) -> None:
    path = _write(tmp_path, [_entry("b"), _entry("a", category="advanced", difficulty=3)])
    catalog = load_catalog(path)
    assert [command.id for command in catalog] == ["b", "a"]
    assert catalog[1].difficulty == 3


def test_load_catalog_rejects_duplicates(tmp_path: Path) -> None:
    path = _write(tmp_path, [_entry("sit"), _entry("sit")])
    with pytest.raises(ValueError, match="Duplicate command id"):
        load_catalog(path)


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"category": "tricks"}, "unknown category"),
        ({"difficulty": 4}, "expected 1-3"),
        ({"estimated_minutes": 0}, "positive estimated_minutes"),
        ({"id": ""}, "missing an id"),
    ],
)
def test_load_catalog_validates_entries(tmp_path: Path, overrides: dict, message: str) -> None:
    path = _write(tmp_path, [_entry("sit", **overrides)])
    with pytest.raises(ValueError, match=message):
        load_catalog(path)

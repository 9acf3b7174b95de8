from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import func, select

from pawcoach.data.database import CommandProgress, TrainingSession, User
from pawcoach.data.sessions import (
    create_dog,
    create_user,
    delete_dog,
    get_dog,
    list_dogs,
    log_training_session,
    progress_revision,
    progress_snapshot,
    refresh_streak,
    update_progress_level,
)


def _dog(db, email: str = "ann@example.com"):
    user = create_user(db, email, "Ann")
    return create_dog(db, user.id, "Rex", "Collie", 3)


def test_create_user_normalizes_and_rejects_duplicates(db) -> None:
    user = create_user(db, "  Ann@Example.COM ", " Ann ")
    assert user.email == "ann@example.com"
    assert user.display_name == "Ann"
    with pytest.raises(ValueError, match="already exists"):
        create_user(db, "ann@example.com")
    with pytest.raises(ValueError, match="Email is required"):
        create_user(db, "   ")


def test_create_dog_seeds_catalog_progress(db) -> None:
    dog = _dog(db)
    snapshot = progress_snapshot(db, dog.id)
    assert len(snapshot) == 15
    assert snapshot[0].command_id == "sit"
    assert {record.level for record in snapshot} == {"not_started"}
    assert db.get(User, dog.user_id).active_dog_id == dog.id
    assert [row.id for row in list_dogs(db, dog.user_id)] == [dog.id]


def test_create_dog_validation(db) -> None:
    user = create_user(db, "bo@example.com")
    with pytest.raises(ValueError, match="User 99 not found"):
        create_dog(db, 99, "Rex")
    with pytest.raises(ValueError, match="name is required"):
        create_dog(db, user.id, "  ")
    with pytest.raises(ValueError, match="negative"):
        create_dog(db, user.id, "Rex", age=-1)


def test_log_session_promotes_and_counts(db) -> None:
    dog = _dog(db)
    stamp = datetime(2024, 5, 6, 8, 30)
    result = log_training_session(db, dog.id, "sit", 300, "good focus", completed_at=stamp, today=stamp.date())

    assert result.level == "learning"
    assert result.sessions_completed == 1
    assert result.total_sessions_completed == 1
    assert result.current_streak == 1
    assert result.longest_streak == 1

    sit = next(record for record in progress_snapshot(db, dog.id) if record.command_id == "sit")
    assert sit.last_practiced == stamp
    assert sit.notes == "good focus"
    assert get_dog(db, dog.id).last_training_date == stamp.date()


def test_log_session_keeps_explicit_levels(db) -> None:
    dog = _dog(db)
    update_progress_level(db, dog.id, "down", "practicing")
    result = log_training_session(db, dog.id, "down", completed_at=datetime(2024, 5, 6, 9), today=date(2024, 5, 6))
    assert result.level == "practicing"


def test_streaks_follow_training_days(db) -> None:
    dog = _dog(db)
    start = date(2024, 5, 1)
    for offset in (0, 1, 2, 5, 6):
        day = start + timedelta(days=offset)
        result = log_training_session(
            db, dog.id, "sit", completed_at=datetime.combine(day, datetime.min.time()), today=day
        )
    assert result.current_streak == 2
    assert result.longest_streak == 3

    later = refresh_streak(db, dog.id, today=start + timedelta(days=9))
    assert later.current_streak == 0
    assert later.longest_streak == 3


def test_log_session_rejects_bad_input(db) -> None:
    dog = _dog(db)
    with pytest.raises(ValueError, match="Dog 404 not found"):
        log_training_session(db, 404, "sit")
    with pytest.raises(ValueError, match="Command moonwalk not found"):
        log_training_session(db, dog.id, "moonwalk")
    with pytest.raises(ValueError, match="negative"):
        log_training_session(db, dog.id, "sit", duration_seconds=-5)
    assert db.scalar(select(func.count(TrainingSession.id))) == 0


def test_update_progress_level_validates(db) -> None:
    dog = _dog(db)
    row = update_progress_level(db, dog.id, "heel", "mastered", notes="solid")
    assert (row.level, row.notes) == ("mastered", "solid")
    with pytest.raises(ValueError, match="Unknown level"):
        update_progress_level(db, dog.id, "heel", "expert")
    with pytest.raises(ValueError, match="not found in catalog"):
        update_progress_level(db, dog.id, "moonwalk", "learning")


def test_snapshot_puts_unknown_commands_last(db) -> None:
    dog = _dog(db)
    db.add(CommandProgress(dog_id=dog.id, command_id="legacy_trick", level="learning", sessions_completed=2, notes=""))
    db.flush()
    snapshot = progress_snapshot(db, dog.id)
    assert snapshot[-1].command_id == "legacy_trick"
    assert [record.command_id for record in snapshot[:3]] == ["sit", "down", "stay"]


def test_revision_changes_after_session(db) -> None:
    dog = _dog(db)
    before = progress_revision(db, dog.id)
    log_training_session(db, dog.id, "sit")
    assert progress_revision(db, dog.id) != before


def test_delete_dog_removes_related_rows(db) -> None:
    dog = _dog(db)
    log_training_session(db, dog.id, "sit")
    dog_id, user_id = dog.id, dog.user_id

    assert delete_dog(db, dog_id) is True
    assert db.scalar(select(func.count(CommandProgress.id))) == 0
    assert db.scalar(select(func.count(TrainingSession.id))) == 0
    assert db.get(User, user_id).active_dog_id is None
    assert delete_dog(db, dog_id) is False

"""FastAPI server exposing dog-training progress endpoints."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Literal

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from pawcoach.config import settings
from pawcoach.data.catalog import Command, default_catalog, get_command_by_id
from pawcoach.data.database import Dog, Schedule, SessionLocal, TrainingSession, User, init_db
from pawcoach.data.schedules import (
    create_schedule,
    delete_schedule,
    list_schedules,
    next_occurrence,
    update_schedule,
)
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
from pawcoach.decision.achievements import ACHIEVEMENTS, get_achievement_progress
from pawcoach.decision.messages import get_training_insights, weekly_summary_text
from pawcoach.decision.recommender import generate_recommendations
from pawcoach.feedback.tracker import list_unlocks, record_unlocks
from pawcoach.models.metrics import level_counts, mastery_percentage, sessions_by_weekday
from pawcoach.models.progress import ProgressRecord

LOGGER = logging.getLogger(__name__)
logging.basicConfig(level=settings.log_level)

app = FastAPI(title="PawCoach", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

Level = Literal["not_started", "learning", "practicing", "mastered"]
DayCode = Literal["mon", "tue", "wed", "thu", "fri", "sat", "sun"]


class UserCreateRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    display_name: str = Field(default="", max_length=128)


class DogCreateRequest(BaseModel):
    user_id: int = Field(gt=0)
    name: str = Field(min_length=1, max_length=128)
    breed: str = Field(default="", max_length=128)
    age: int = Field(default=0, ge=0, le=40)


class ProgressUpdateRequest(BaseModel):
    level: Level
    notes: str | None = Field(default=None, max_length=4096)


class SessionRequest(BaseModel):
    command_id: str = Field(min_length=1, max_length=64)
    duration_seconds: int = Field(default=0, ge=0, le=24 * 60 * 60)
    notes: str = Field(default="", max_length=4096)
    completed_at: datetime | None = None


class ScheduleCreateRequest(BaseModel):
    user_id: int = Field(gt=0)
    dog_id: int = Field(gt=0)
    title: str = Field(min_length=1, max_length=255)
    days: list[DayCode] = Field(min_length=1)
    time: str = Field(pattern=r"^\d{1,2}:\d{2}$")
    enabled: bool = True
    program_id: str | None = None


class ScheduleUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    days: list[DayCode] | None = None
    time: str | None = Field(default=None, pattern=r"^\d{1,2}:\d{2}$")
    enabled: bool | None = None
    notification_id: str | None = None
    program_id: str | None = None


@dataclass
class CachedRecommendation:
    payload: dict[str, Any]
    created_at: datetime


class RecommendationCache:
    """Simple in-memory TTL cache for recommendation responses.

    Entries are keyed by dog and progress revision, so any logged session or
    level change produces a new key and the stale entry ages out.
    """

    def __init__(self, ttl_seconds: int = 3600, max_items: int = 1024) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_items = max_items
        self._store: "OrderedDict[tuple[int, str], CachedRecommendation]" = OrderedDict()

    def get(self, dog_id: int, revision: str) -> dict[str, Any] | None:
        key = (dog_id, revision)
        item = self._store.get(key)
        if item is None:
            return None
        if (datetime.utcnow() - item.created_at).total_seconds() > self.ttl_seconds:
            self._store.pop(key, None)
            return None
        self._store.move_to_end(key)
        return item.payload

    def set(self, dog_id: int, revision: str, payload: dict[str, Any]) -> None:
        key = (dog_id, revision)
        self._store[key] = CachedRecommendation(payload=payload, created_at=datetime.utcnow())
        self._store.move_to_end(key)
        while len(self._store) > self.max_items:
            self._store.popitem(last=False)

    def clear(self) -> None:
        self._store.clear()


_REC_CACHE = RecommendationCache(
    ttl_seconds=settings.recommendation_cache_ttl_seconds,
    max_items=settings.recommendation_cache_max_items,
)


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _http_error(exc: ValueError) -> HTTPException:
    message = str(exc)
    status = 404 if "not found" in message.lower() else 400
    return HTTPException(status_code=status, detail=message)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    """Attach baseline security headers and normalized error response."""

    try:
        response = await call_next(request)
    except HTTPException:
        raise
    except Exception as exc:
        LOGGER.exception("Unhandled server error: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if request.url.scheme == "https":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


@app.on_event("startup")
def startup() -> None:
    try:
        init_db()
    except Exception as exc:
        LOGGER.exception("Database initialization failed during startup: %s", exc)
    LOGGER.info("startup complete commands=%s", len(default_catalog()))


def _command_payload(command: Command) -> dict[str, Any]:
    return asdict(command)


def _dog_payload(dog: Dog) -> dict[str, Any]:
    return {
        "id": dog.id,
        "user_id": dog.user_id,
        "name": dog.name,
        "breed": dog.breed,
        "age": dog.age,
        "photo_url": dog.photo_url,
        "total_sessions_completed": dog.total_sessions_completed,
        "current_streak": dog.current_streak,
        "longest_streak": dog.longest_streak,
        "last_training_date": dog.last_training_date.isoformat() if dog.last_training_date else None,
    }


def _schedule_payload(row: Schedule, now: datetime) -> dict[str, Any]:
    upcoming = next_occurrence(row, now)
    return {
        "id": row.id,
        "user_id": row.user_id,
        "dog_id": row.dog_id,
        "title": row.title,
        "days": list(row.days),
        "time": row.time,
        "enabled": row.enabled,
        "notification_id": row.notification_id,
        "program_id": row.program_id,
        "next_occurrence": upcoming.isoformat() if upcoming else None,
    }


def _progress_payload(record: ProgressRecord) -> dict[str, Any]:
    command = get_command_by_id(record.command_id)
    return {
        "command_id": record.command_id,
        "command_name": command.name if command else None,
        "level": record.level,
        "sessions_completed": record.sessions_completed,
        "last_practiced": record.last_practiced.isoformat() if record.last_practiced else None,
        "notes": record.notes,
    }


def build_recommendation_payload(
    progress: list[ProgressRecord],
    total_sessions_completed: int,
    current_streak: int,
) -> dict[str, Any]:
    """Bundle recommendations, goal progress, and insights for one dog."""

    recommendations = generate_recommendations(progress, total_sessions_completed)
    return {
        "recommendations": [asdict(item) for item in recommendations],
        "achievement_progress": [
            asdict(entry) for entry in get_achievement_progress(progress, total_sessions_completed, current_streak)
        ],
        "insights": get_training_insights(progress, total_sessions_completed),
        "has_recommendations": bool(recommendations),
    }


@app.get("/catalog")
def catalog() -> list[dict[str, Any]]:
    return [_command_payload(command) for command in default_catalog()]


@app.get("/catalog/{command_id}")
def catalog_command(command_id: str) -> dict[str, Any]:
    command = get_command_by_id(command_id)
    if command is None:
        raise HTTPException(status_code=404, detail=f"Command {command_id} not found")
    return _command_payload(command)


@app.post("/users", status_code=201)
def users_create(payload: UserCreateRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        user = create_user(db, payload.email, payload.display_name)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return {"id": user.id, "email": user.email, "display_name": user.display_name}


@app.get("/users")
def users_list(db: Session = Depends(get_db)) -> list[dict[str, Any]]:
    rows = db.scalars(select(User).order_by(User.id.asc())).all()
    return [
        {"id": row.id, "email": row.email, "display_name": row.display_name, "active_dog_id": row.active_dog_id}
        for row in rows
    ]


@app.post("/dogs", status_code=201)
def dogs_create(payload: DogCreateRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        dog = create_dog(db, payload.user_id, payload.name, payload.breed, payload.age)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return _dog_payload(dog)


@app.get("/users/{user_id}/dogs")
def dogs_list(user_id: int, db: Session = Depends(get_db)) -> list[dict[str, Any]]:
    return [_dog_payload(dog) for dog in list_dogs(db, user_id)]


@app.get("/dogs/{dog_id}")
def dogs_get(dog_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        return _dog_payload(refresh_streak(db, dog_id))
    except ValueError as exc:
        raise _http_error(exc) from exc


@app.delete("/dogs/{dog_id}")
def dogs_delete(dog_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    if not delete_dog(db, dog_id):
        raise HTTPException(status_code=404, detail=f"Dog {dog_id} not found")
    return {"deleted": True}


@app.get("/dogs/{dog_id}/progress")
def progress_list(dog_id: int, db: Session = Depends(get_db)) -> list[dict[str, Any]]:
    try:
        get_dog(db, dog_id)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return [_progress_payload(record) for record in progress_snapshot(db, dog_id)]


@app.put("/dogs/{dog_id}/progress/{command_id}")
def progress_update(
    dog_id: int,
    command_id: str,
    payload: ProgressUpdateRequest,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    try:
        row = update_progress_level(db, dog_id, command_id, payload.level, payload.notes)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return {
        "command_id": row.command_id,
        "level": row.level,
        "sessions_completed": row.sessions_completed,
        "notes": row.notes,
    }


@app.post("/dogs/{dog_id}/sessions", status_code=201)
def sessions_create(dog_id: int, payload: SessionRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    t0 = time.perf_counter()
    completed_at = payload.completed_at
    if completed_at is not None and completed_at.tzinfo is not None:
        completed_at = completed_at.replace(tzinfo=None) - (completed_at.utcoffset() or timedelta(0))
    try:
        result = log_training_session(
            db,
            dog_id,
            payload.command_id,
            duration_seconds=payload.duration_seconds,
            notes=payload.notes,
            completed_at=completed_at,
        )
        unlocked = record_unlocks(db, get_dog(db, dog_id))
    except ValueError as exc:
        raise _http_error(exc) from exc

    LOGGER.info("/sessions dog=%s elapsed=%.3fs", dog_id, time.perf_counter() - t0)
    return {**asdict(result), "unlocked_achievements": unlocked}


@app.get("/dogs/{dog_id}/recommendations")
def recommendations(dog_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    """Recommendations, goal progress and insights, cached per progress revision."""

    t0 = time.perf_counter()
    try:
        dog = refresh_streak(db, dog_id)
        revision = progress_revision(db, dog_id)
    except ValueError as exc:
        raise _http_error(exc) from exc

    cache_hit = _REC_CACHE.get(dog_id=dog_id, revision=revision)
    if cache_hit is not None:
        LOGGER.info("/recommendations dog=%s cache_hit=true elapsed=%.3fs", dog_id, time.perf_counter() - t0)
        return cache_hit

    response = build_recommendation_payload(
        progress_snapshot(db, dog_id),
        dog.total_sessions_completed or 0,
        dog.current_streak or 0,
    )
    _REC_CACHE.set(dog_id=dog_id, revision=revision, payload=response)
    LOGGER.info("/recommendations dog=%s cache_hit=false elapsed=%.3fs", dog_id, time.perf_counter() - t0)
    return response


@app.get("/dogs/{dog_id}/achievements")
def achievements(dog_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        dog = refresh_streak(db, dog_id)
    except ValueError as exc:
        raise _http_error(exc) from exc

    snapshot = progress_snapshot(db, dog_id)
    unlocked = []
    for row in list_unlocks(db, dog_id):
        definition = ACHIEVEMENTS.get(row.achievement_id)
        unlocked.append(
            {
                "id": row.achievement_id,
                "name": definition.name if definition else row.achievement_id,
                "icon": definition.icon if definition else "",
                "unlocked_at": row.unlocked_at.isoformat(),
            }
        )
    return {
        "progress": [
            asdict(entry)
            for entry in get_achievement_progress(snapshot, dog.total_sessions_completed or 0, dog.current_streak or 0)
        ],
        "unlocked": unlocked,
    }


@app.get("/dogs/{dog_id}/dashboard")
def dashboard(dog_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        dog = refresh_streak(db, dog_id)
    except ValueError as exc:
        raise _http_error(exc) from exc

    today = datetime.utcnow().date()
    week_start = datetime.combine(today - timedelta(days=6), datetime.min.time())
    stamps = db.scalars(
        select(TrainingSession.completed_at).where(
            TrainingSession.dog_id == dog_id,
            TrainingSession.completed_at >= week_start,
        )
    ).all()
    weekly = sessions_by_weekday(stamps, today)
    snapshot = progress_snapshot(db, dog_id)

    return {
        "today": today.isoformat(),
        "dog": _dog_payload(dog),
        "weekly": {
            "sessions_by_day": weekly,
            "summary": weekly_summary_text(weekly),
        },
        "levels": level_counts(snapshot),
        "mastery_percentage": round(mastery_percentage(snapshot, len(default_catalog())), 1),
        "insights": get_training_insights(snapshot, dog.total_sessions_completed or 0),
    }


@app.post("/schedules", status_code=201)
def schedules_create(payload: ScheduleCreateRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        row = create_schedule(
            db,
            user_id=payload.user_id,
            dog_id=payload.dog_id,
            title=payload.title,
            days=payload.days,
            time=payload.time,
            enabled=payload.enabled,
            program_id=payload.program_id,
        )
    except ValueError as exc:
        raise _http_error(exc) from exc
    return _schedule_payload(row, datetime.now())


@app.get("/users/{user_id}/schedules")
def schedules_list(user_id: int, dog_id: int | None = None, db: Session = Depends(get_db)) -> list[dict[str, Any]]:
    now = datetime.now()
    return [_schedule_payload(row, now) for row in list_schedules(db, user_id, dog_id)]


@app.patch("/schedules/{schedule_id}")
def schedules_update(
    schedule_id: int,
    payload: ScheduleUpdateRequest,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    # Null clears the nullable references; for every other field it means "leave as is".
    updates = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key in {"notification_id", "program_id"}
    }
    try:
        row = update_schedule(db, schedule_id, updates)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return _schedule_payload(row, datetime.now())


@app.delete("/schedules/{schedule_id}")
def schedules_delete(schedule_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    if not delete_schedule(db, schedule_id):
        raise HTTPException(status_code=404, detail=f"Schedule {schedule_id} not found")
    return {"deleted": True}

from __future__ import annotations

from datetime import date as Date, datetime
from typing import Any

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.calculations import day_bounds
from domain.errors import ExerciseNotFoundError, WorkoutNotFoundError
from infra.db.models import Exercise, Workout
from infra.db.repositories.base import as_utc, iso, pick, utcnow


log = structlog.get_logger(__name__)

WORKOUT_FIELDS = {"program_name", "workout_name", "duration", "warmup", "cooldown", "notes"}
EXERCISE_FIELDS = {
    "name",
    "sets",
    "reps",
    "weight",
    "rest_time",
    "video_url",
    "description",
    "completed",
    "feeling",
    "notes",
}


class WorkoutRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _get_owned(self, *, workout_id: int, user_id: int) -> Workout | None:
        res = await self.session.execute(
            select(Workout)
            .where(Workout.id == workout_id, Workout.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return res.scalar_one_or_none()

    async def list_recent(self, *, user_id: int, limit: int = 30) -> list[dict[str, Any]]:
        stmt = (
            select(Workout)
            .where(Workout.user_id == user_id)
            .order_by(Workout.date.desc(), Workout.id.desc())
            .limit(limit)
        )
        res = await self.session.execute(stmt)
        return [self._row_to_dict(w) for w in res.scalars().all()]

    async def get_for_day(self, *, user_id: int, on_date: Date) -> dict[str, Any] | None:
        start, end = day_bounds(on_date)
        res = await self.session.execute(
            select(Workout)
            .where(Workout.user_id == user_id, Workout.date >= start, Workout.date < end)
            .order_by(Workout.date.asc(), Workout.id.asc())
            .limit(1)
        )
        w = res.scalar_one_or_none()
        return self._row_to_dict(w) if w else None

    async def get_by_id(self, *, workout_id: int, user_id: int) -> dict[str, Any] | None:
        w = await self._get_owned(workout_id=workout_id, user_id=user_id)
        return self._row_to_dict(w) if w else None

    async def create(
        self,
        *,
        user_id: int,
        telegram_id: int,
        data: dict[str, Any],
        exercises: list[dict[str, Any]],
        at: datetime | None = None,
    ) -> dict[str, Any]:
        w = Workout(
            user_id=user_id,
            telegram_id=telegram_id,
            date=as_utc(at),
            exercises=[Exercise(**pick(e, EXERCISE_FIELDS)) for e in exercises],
            **pick(data, WORKOUT_FIELDS),
        )
        self.session.add(w)
        await self.session.commit()
        await self.session.refresh(w, attribute_names=["exercises"])
        return self._row_to_dict(w)

    async def update_exercise(
        self,
        *,
        workout_id: int,
        exercise_id: int,
        user_id: int,
        completed: bool,
        feeling: str | None,
        notes: str | None,
        user_video: str | None = None,
    ) -> dict[str, Any]:
        """Update one exercise of an owned workout.

        Raises WorkoutNotFoundError for an unknown (or foreign) workout and
        ExerciseNotFoundError when the workout has no such exercise.
        """
        w = await self._get_owned(workout_id=workout_id, user_id=user_id)
        if w is None:
            raise WorkoutNotFoundError("Workout not found")
        exercise = next((e for e in w.exercises if e.id == exercise_id), None)
        if exercise is None:
            raise ExerciseNotFoundError("Exercise not found")
        exercise.completed = completed
        exercise.feeling = feeling
        exercise.notes = notes
        if user_video:
            exercise.user_video = user_video
        await self.session.commit()
        return self._row_to_dict(w)

    async def complete(
        self,
        *,
        workout_id: int,
        user_id: int,
        rating: int | None,
        notes: str | None,
    ) -> dict[str, Any]:
        res = await self.session.execute(
            update(Workout)
            .where(Workout.id == workout_id, Workout.user_id == user_id)
            .values(completed=True, completed_at=utcnow(), rating=rating, notes=notes)
            .returning(Workout.id)
        )
        if res.first() is None:
            await self.session.rollback()
            raise WorkoutNotFoundError("Workout not found")
        await self.session.commit()
        log.info("workout_completed", workout_id=workout_id, rating=rating)
        w = await self._get_owned(workout_id=workout_id, user_id=user_id)
        return self._row_to_dict(w)

    async def count_completed_since(self, *, user_id: int, since: datetime) -> int:
        res = await self.session.execute(
            select(func.count(Workout.id)).where(
                Workout.user_id == user_id,
                Workout.completed.is_(True),
                Workout.date >= since,
            )
        )
        return int(res.scalar_one())

    def _row_to_dict(self, w: Workout) -> dict[str, Any]:
        return {
            "id": w.id,
            "user_id": w.user_id,
            "telegram_id": w.telegram_id,
            "date": iso(w.date),
            "program_name": w.program_name,
            "workout_name": w.workout_name,
            "duration": w.duration,
            "warmup": w.warmup,
            "cooldown": w.cooldown,
            "completed": bool(w.completed),
            "completed_at": iso(w.completed_at),
            "rating": w.rating,
            "notes": w.notes,
            "exercises": [
                dict(
                    id=e.id,
                    name=e.name,
                    sets=e.sets,
                    reps=e.reps,
                    weight=e.weight,
                    rest_time=e.rest_time,
                    video_url=e.video_url,
                    description=e.description,
                    completed=bool(e.completed),
                    user_video=e.user_video,
                    feeling=e.feeling,
                    notes=e.notes,
                )
                for e in w.exercises
            ],
        }

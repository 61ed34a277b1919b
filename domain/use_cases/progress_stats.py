from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from domain.calculations import (
    STATS_SAMPLE_SIZE,
    STATS_WINDOW_DAYS,
    weight_progress,
    window_start,
)


@dataclass
class ProgressStatsInput:
    user_id: int
    now: datetime | None = None
    window_days: int = STATS_WINDOW_DAYS
    sample_size: int = STATS_SAMPLE_SIZE


@dataclass
class ProgressStats:
    workout_count: int
    measurements: list[dict[str, Any]] = field(default_factory=list)
    conditions: list[dict[str, Any]] = field(default_factory=list)
    weight_progress: float = 0.0


async def collect_progress_stats(
    workouts: "CompletedWorkoutCounter",
    measurements: "RecentReader",
    conditions: "RecentReader",
    inp: ProgressStatsInput,
) -> ProgressStats:
    now = inp.now or datetime.now(timezone.utc)

    # 1) Завершённые тренировки за окно
    count = await workouts.count_completed_since(
        user_id=inp.user_id, since=window_start(now, inp.window_days)
    )

    # 2) Последние замеры и состояния (не окно, а N последних записей)
    recent_measurements = await measurements.list_recent(user_id=inp.user_id, limit=inp.sample_size)
    recent_conditions = await conditions.list_recent(user_id=inp.user_id, limit=inp.sample_size)

    # 3) Динамика веса по выборке замеров
    return ProgressStats(
        workout_count=count,
        measurements=recent_measurements,
        conditions=recent_conditions,
        weight_progress=weight_progress(recent_measurements),
    )


class CompletedWorkoutCounter:
    async def count_completed_since(self, *, user_id: int, since: datetime) -> int:  # pragma: no cover - интерфейс
        raise NotImplementedError


class RecentReader:
    async def list_recent(self, *, user_id: int, limit: int) -> list[dict[str, Any]]:  # pragma: no cover - интерфейс
        raise NotImplementedError

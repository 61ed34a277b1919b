from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from infra.db.models import Measurement
from infra.db.repositories.base import as_utc, iso, pick


CIRCUMFERENCES = (
    "chest",
    "waist",
    "hips",
    "bicep_left",
    "bicep_right",
    "thigh_left",
    "thigh_right",
    "calf_left",
    "calf_right",
)


class MeasurementRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_recent(self, *, user_id: int, limit: int = 30) -> list[dict[str, Any]]:
        stmt = (
            select(Measurement)
            .where(Measurement.user_id == user_id)
            .order_by(Measurement.date.desc(), Measurement.id.desc())
            .limit(limit)
        )
        res = await self.session.execute(stmt)
        return [self._row_to_dict(m) for m in res.scalars().all()]

    async def get_latest(self, *, user_id: int) -> dict[str, Any] | None:
        items = await self.list_recent(user_id=user_id, limit=1)
        return items[0] if items else None

    async def create(
        self,
        *,
        user_id: int,
        telegram_id: int,
        weight: float | None,
        measurements: dict[str, Any],
        notes: str | None = None,
        photos: list[str] | None = None,
        at: datetime | None = None,
        autocommit: bool = True,
    ) -> dict[str, Any]:
        res = await self.session.execute(
            insert(Measurement)
            .values(
                user_id=user_id,
                telegram_id=telegram_id,
                date=as_utc(at),
                weight=weight,
                photos=list(photos or []),
                notes=notes,
                **pick(measurements, set(CIRCUMFERENCES)),
            )
            .returning(Measurement.id)
        )
        measurement_id = int(res.scalar_one())
        if autocommit:
            await self.session.commit()
        row = await self.session.get(Measurement, measurement_id)
        return self._row_to_dict(row)

    def _row_to_dict(self, m: Measurement) -> dict[str, Any]:
        return {
            "id": m.id,
            "user_id": m.user_id,
            "telegram_id": m.telegram_id,
            "date": iso(m.date),
            "weight": m.weight,
            "measurements": {k: getattr(m, k) for k in CIRCUMFERENCES},
            "photos": list(m.photos or []),
            "notes": m.notes,
        }

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from infra.db.models import Condition
from infra.db.repositories.base import as_utc, iso, pick


CONDITION_FIELDS = {
    "sleep",
    "stress",
    "energy",
    "mood",
    "motivation",
    "pain",
    "heart_rate",
    "blood_pressure",
    "menstrual_cycle",
}


class ConditionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_recent(self, *, user_id: int, limit: int = 30) -> list[dict[str, Any]]:
        stmt = (
            select(Condition)
            .where(Condition.user_id == user_id)
            .order_by(Condition.date.desc(), Condition.id.desc())
            .limit(limit)
        )
        res = await self.session.execute(stmt)
        return [self._row_to_dict(c) for c in res.scalars().all()]

    async def get_latest(self, *, user_id: int) -> dict[str, Any] | None:
        items = await self.list_recent(user_id=user_id, limit=1)
        return items[0] if items else None

    async def create(
        self,
        *,
        user_id: int,
        telegram_id: int,
        data: dict[str, Any],
        at: datetime | None = None,
    ) -> dict[str, Any]:
        res = await self.session.execute(
            insert(Condition)
            .values(user_id=user_id, telegram_id=telegram_id, date=as_utc(at), **pick(data, CONDITION_FIELDS))
            .returning(Condition.id)
        )
        condition_id = int(res.scalar_one())
        await self.session.commit()
        row = await self.session.get(Condition, condition_id)
        return self._row_to_dict(row)

    def _row_to_dict(self, c: Condition) -> dict[str, Any]:
        return {
            "id": c.id,
            "user_id": c.user_id,
            "telegram_id": c.telegram_id,
            "date": iso(c.date),
            **{k: getattr(c, k) for k in sorted(CONDITION_FIELDS)},
        }

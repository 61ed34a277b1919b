from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from infra.db.models import Profile
from infra.db.repositories.base import pick


log = structlog.get_logger(__name__)


PROFILE_FIELDS = {
    "age",
    "gender",
    "height",
    "current_weight",
    "target_weight",
    "goal",
    "level",
    "equipment",
}


class ProfileRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_user_id(self, user_id: int) -> dict[str, Any] | None:
        stmt = select(
            Profile.age,
            Profile.gender,
            Profile.height,
            Profile.current_weight,
            Profile.target_weight,
            Profile.goal,
            Profile.level,
            Profile.equipment,
        ).where(Profile.user_id == user_id)
        res = await self.session.execute(stmt)
        row = res.mappings().first()
        if not row:
            return None
        out = dict(row)
        out["equipment"] = list(out.get("equipment") or [])
        return out

    async def upsert_profile(self, *, user_id: int, data: dict[str, Any], autocommit: bool = True) -> None:
        # частичное обновление: трогаем только переданные поля
        values = pick(data, PROFILE_FIELDS)
        if not await self._has_profile(user_id):
            try:
                # savepoint: проигрыш гонки не откатывает остальную транзакцию
                async with self.session.begin_nested():
                    await self.session.execute(insert(Profile).values(user_id=user_id, **{"equipment": [], **values}))
            except IntegrityError:
                log.info("profile_create_conflict", user_id=user_id)
            else:
                values = {}
        if values:
            await self.session.execute(update(Profile).where(Profile.user_id == user_id).values(**values))
        if autocommit:
            await self.session.commit()

    async def _has_profile(self, user_id: int) -> bool:
        res = await self.session.execute(select(Profile.id).where(Profile.user_id == user_id))
        return res.first() is not None

    async def set_current_weight(self, *, user_id: int, weight: float, autocommit: bool = True) -> None:
        await self.upsert_profile(user_id=user_id, data={"current_weight": weight}, autocommit=autocommit)

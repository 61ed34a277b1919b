from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import func, select, insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities import Identity, User as UserEntity
from domain.errors import StorageUnavailableError
from infra.db.models import User
from infra.db.repositories.base import iso, pick


log = structlog.get_logger(__name__)

EDITABLE_FIELDS = {"username", "first_name", "last_name", "trainer_id"}


class UserRepo:
    # insert может проиграть гонку другому запросу; после конфликта перечитываем
    MAX_CREATE_ATTEMPTS = 3

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_telegram_id(self, telegram_id: int) -> UserEntity | None:
        stmt = select(User).where(User.telegram_id == telegram_id)
        res = await self.session.execute(stmt.execution_options(populate_existing=True))
        row = res.scalar_one_or_none()
        return self._to_entity(row) if row else None

    async def get_or_create(self, identity: Identity) -> UserEntity:
        """Find the user by Telegram id, creating it on first sight.

        An existing record is returned untouched: display names from the
        request are only used when the record is created. Concurrent first
        requests for the same id are resolved by the unique constraint on
        ``users.telegram_id``; the loser of the race re-reads the winner's row.
        """
        for attempt in range(1, self.MAX_CREATE_ATTEMPTS + 1):
            existing = await self.get_by_telegram_id(identity.telegram_id)
            if existing is not None:
                return existing
            try:
                res = await self.session.execute(
                    insert(User)
                    .values(
                        telegram_id=identity.telegram_id,
                        username=identity.username,
                        first_name=identity.first_name,
                        last_name=identity.last_name,
                    )
                    .returning(User.id)
                )
                user_id = int(res.scalar_one())
                await self.session.commit()
            except IntegrityError:
                await self.session.rollback()
                log.info("user_create_conflict", telegram_id=identity.telegram_id, attempt=attempt)
                continue
            log.info("user_created", user_id=user_id, telegram_id=identity.telegram_id)
            created = await self.get_by_telegram_id(identity.telegram_id)
            if created is not None:
                return created
        raise StorageUnavailableError(f"Could not resolve user {identity.telegram_id}")

    async def update_user(self, *, user_id: int, data: dict[str, Any]) -> None:
        values = pick(data, EDITABLE_FIELDS)
        if not values:
            return
        await self.session.execute(update(User).where(User.id == user_id).values(**values))
        await self.session.commit()

    async def get_by_id(self, user_id: int) -> UserEntity | None:
        res = await self.session.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        row = res.scalar_one_or_none()
        return self._to_entity(row) if row else None

    async def count_by_telegram_id(self, telegram_id: int) -> int:
        res = await self.session.execute(select(func.count(User.id)).where(User.telegram_id == telegram_id))
        return int(res.scalar_one())

    @staticmethod
    def _to_entity(u: User) -> UserEntity:
        return UserEntity(
            id=u.id,
            telegram_id=u.telegram_id,
            username=u.username,
            first_name=u.first_name,
            last_name=u.last_name,
            trainer_id=u.trainer_id,
            created_at=u.created_at,
        )

    @staticmethod
    def to_dict(u: UserEntity) -> dict[str, Any]:
        return {
            "id": u.id,
            "telegram_id": u.telegram_id,
            "username": u.username,
            "first_name": u.first_name,
            "last_name": u.last_name,
            "trainer_id": u.trainer_id,
            "created_at": iso(u.created_at),
        }

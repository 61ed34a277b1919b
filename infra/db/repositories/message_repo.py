from __future__ import annotations

from typing import Any

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities import MessageType, Sender
from infra.db.models import Message
from infra.db.repositories.base import enum_value, iso, utcnow


class MessageRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_recent(self, *, user_id: int, limit: int = 50) -> list[dict[str, Any]]:
        """Last ``limit`` messages of the user's chat, oldest first."""
        stmt = (
            select(Message)
            .where(Message.user_id == user_id)
            .order_by(Message.timestamp.desc(), Message.id.desc())
            .limit(limit)
        )
        res = await self.session.execute(stmt)
        rows = [self._row_to_dict(m) for m in res.scalars().all()]
        rows.reverse()
        return rows

    async def create(
        self,
        *,
        user_id: int,
        telegram_id: int,
        trainer_id: int | None,
        message_type: MessageType,
        content: str | None,
        file_url: str | None = None,
        sender: Sender = "user",
    ) -> dict[str, Any]:
        res = await self.session.execute(
            insert(Message)
            .values(
                user_id=user_id,
                telegram_id=telegram_id,
                trainer_id=trainer_id,
                sender=sender,
                message_type=message_type,
                content=content,
                file_url=file_url,
                timestamp=utcnow(),
                read=False,
            )
            .returning(Message.id)
        )
        message_id = int(res.scalar_one())
        await self.session.commit()
        row = await self.session.get(Message, message_id)
        return self._row_to_dict(row)

    def _row_to_dict(self, m: Message) -> dict[str, Any]:
        return {
            "id": m.id,
            "user_id": m.user_id,
            "telegram_id": m.telegram_id,
            "trainer_id": m.trainer_id,
            "sender": enum_value(m.sender),
            "message_type": enum_value(m.message_type),
            "content": m.content,
            "file_url": m.file_url,
            "timestamp": iso(m.timestamp),
            "read": bool(m.read),
        }

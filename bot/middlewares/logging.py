from __future__ import annotations

import structlog
from aiogram import BaseMiddleware
from aiogram.types import Update


log = structlog.get_logger(__name__)


def _sender_id(event: Update) -> int | None:
    inner = event.event
    user = getattr(inner, "from_user", None)
    return getattr(user, "id", None)


class LoggingMiddleware(BaseMiddleware):
    async def __call__(self, handler, event: Update, data):  # type: ignore[override]
        log.info("tg_update", type=event.event_type, user_id=_sender_id(event))
        return await handler(event, data)

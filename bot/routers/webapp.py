from __future__ import annotations

import json
from typing import Any

import structlog
from aiogram import F, Router
from aiogram.types import Message


log = structlog.get_logger(__name__)

webapp_router = Router()


def reply_for_event(data: dict[str, Any]) -> str:
    kind = data.get("type")
    if kind == "workout_completed":
        return (
            "✅ Тренировка завершена!\n\n"
            f"Отличная работа! Ты завершил тренировку \"{data.get('workoutName') or ''}\".\n"
            "Продолжай в том же духе! 💪"
        )
    if kind == "measurement_saved":
        return f"📏 Замер сохранен!\n\nВес: {data.get('weight')} кг\nПродолжай отслеживать прогресс! 📈"
    if kind == "message_to_trainer":
        return "📤 Сообщение отправлено тренеру!\n\nТренер ответит в ближайшее время."
    return "✅ Данные получены!"


def parse_event(raw: str) -> dict[str, Any]:
    try:
        data = json.loads(raw)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


@webapp_router.message(F.web_app_data)
async def on_web_app_data(message: Message) -> None:
    data = parse_event(message.web_app_data.data)
    log.info("web_app_data", type=data.get("type"), user_id=message.from_user.id if message.from_user else None)
    await message.answer(reply_for_event(data))

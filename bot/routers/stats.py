from __future__ import annotations

from typing import Any

import httpx
import structlog
from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message, User as TgUser

from bot.keyboards import START_WORKOUT_TEXT, webapp_cta_kb
from core.config import settings
from domain.entities import Identity
from domain.identity import identity_headers


log = structlog.get_logger(__name__)

stats_router = Router()


def headers_for(user: TgUser) -> dict[str, str]:
    return identity_headers(
        Identity(
            telegram_id=user.id,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
        )
    )


async def fetch_api(path: str, user: TgUser) -> Any:
    async with httpx.AsyncClient(base_url=settings.api_base_url, timeout=10.0) as client:
        resp = await client.get(path, headers=headers_for(user))
        resp.raise_for_status()
        return resp.json().get("data")


def format_stats(data: dict[str, Any]) -> str:
    delta = float(data.get("weight_progress") or 0.0)
    sign = "+" if delta > 0 else ""
    lines = [
        "📊 Твоя статистика",
        "",
        f"🏋️ Тренировок за месяц: {int(data.get('workout_count') or 0)}",
        f"📉 Изменение веса: {sign}{delta:g} кг",
    ]
    conditions = data.get("conditions") or []
    sleep = [c["sleep"]["duration"] for c in conditions if (c.get("sleep") or {}).get("duration") is not None]
    if sleep:
        lines.append(f"😴 Средний сон: {sum(sleep) / len(sleep):.1f} часов")
    lines += ["", "Подробности в приложении 👇"]
    return "\n".join(lines)


def format_today(workout: dict[str, Any] | None) -> str:
    if not workout:
        return "📅 На сегодня тренировка не запланирована.\n\nОткрой приложение, чтобы выбрать программу 👇"
    lines = [f"📅 Тренировка на сегодня: {workout.get('workout_name') or 'без названия'}"]
    if workout.get("duration"):
        lines.append(f"⏱️ Длительность: ~{workout['duration']} минут")
    exercises = workout.get("exercises") or []
    if exercises:
        lines += ["", "Упражнения:"]
        for i, e in enumerate(exercises, start=1):
            scheme = f" - {e['sets']}×{e['reps']}" if e.get("sets") and e.get("reps") else ""
            mark = "✅ " if e.get("completed") else ""
            lines.append(f"{i}. {mark}{e['name']}{scheme}")
    lines += ["", "Открой приложение для запуска тренировки 👇"]
    return "\n".join(lines)


@stats_router.message(Command("stats"))
async def cmd_stats(message: Message) -> None:
    if message.from_user is None:
        return
    try:
        data = await fetch_api("/api/stats", message.from_user)
    except httpx.HTTPError as e:
        log.error("stats_fetch_error", error=str(e))
        await message.answer("❌ Ошибка при получении статистики. Попробуйте позже.")
        return
    await message.answer(format_stats(data or {}), reply_markup=webapp_cta_kb(text="📱 Открыть приложение", screen="stats"))


@stats_router.message(Command("today"))
async def cmd_today(message: Message) -> None:
    if message.from_user is None:
        return
    try:
        workout = await fetch_api("/api/workouts/today", message.from_user)
    except httpx.HTTPError as e:
        log.error("today_fetch_error", error=str(e))
        await message.answer("❌ Не удалось загрузить тренировку. Попробуйте позже.")
        return
    await message.answer(format_today(workout), reply_markup=webapp_cta_kb(text=START_WORKOUT_TEXT, screen="workout"))

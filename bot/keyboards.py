from __future__ import annotations

import time

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup, WebAppInfo

from core.config import settings


OPEN_APP_TEXT = "🚀 Открыть приложение"
START_WORKOUT_TEXT = "▶️ Начать тренировку"


def webapp_cta_kb(text: str = OPEN_APP_TEXT, screen: str | None = None) -> InlineKeyboardMarkup | None:
    base = (settings.webapp_url or "").strip()
    # Требуем HTTPS для Telegram WebApp, иначе не возвращаем клавиатуру вовсе
    if not base or (not base.startswith("https://")):
        return None
    params = []
    if screen:
        params.append(f"screen={screen}")
    # bust cache param to force fresh WebApp load in Telegram mobile WebView
    params.append(f"v={int(time.time())}")
    sep = "&" if ("?" in base) else "?"
    url = f"{base}{sep}{'&'.join(params)}"
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text=text, web_app=WebAppInfo(url=url))]]
    )

from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import BotCommand

from core.config import settings
from core.logging import configure_logging
from bot.routers import make_root_router
from bot.middlewares.logging import LoggingMiddleware
from bot.middlewares.trace import TraceMiddleware


BOT_COMMANDS = [
    BotCommand(command="start", description="Открыть приложение"),
    BotCommand(command="help", description="Помощь"),
    BotCommand(command="stats", description="Статистика"),
    BotCommand(command="today", description="Тренировка дня"),
]


async def main() -> None:
    if not settings.telegram_bot_token:
        raise SystemExit(
            "TELEGRAM_BOT_TOKEN не задан. Укажите токен в .env и повторите."
        )

    configure_logging(settings.log_level)
    # Частые ошибки: лишние кавычки/пробелы вокруг токена. Подчистим.
    token = (settings.telegram_bot_token or "").strip().strip("'").strip('"')
    bot = Bot(token=token)
    dp = Dispatcher(storage=MemoryStorage())
    dp.update.middleware(TraceMiddleware())
    dp.update.middleware(LoggingMiddleware())
    dp.include_router(make_root_router())

    await bot.set_my_commands(BOT_COMMANDS)

    # Поллинг без вебхуков для простого запуска на VPS
    await bot.delete_webhook(drop_pending_updates=True)
    await dp.start_polling(bot)


if __name__ == "__main__":
    asyncio.run(main())

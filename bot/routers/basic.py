from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from bot.keyboards import webapp_cta_kb


basic_router = Router()
fallback_router = Router()


def welcome_text(first_name: str | None) -> str:
    return (
        f"👋 Привет, {first_name or 'друг'}!\n\n"
        "Добро пожаловать в Fitness Pro — твой персональный фитнес-помощник!\n\n"
        "🏋️ Что умеет приложение:\n"
        "• Отслеживание замеров и веса\n"
        "• Планирование питания и подсчет КБЖУ\n"
        "• Мониторинг состояния (сон, стресс, энергия)\n"
        "• Программы тренировок с видео\n"
        "• Чат с тренером\n\n"
        "📱 Нажми на кнопку ниже, чтобы открыть приложение!"
    )


HELP_TEXT = (
    "📖 Помощь по использованию\n\n"
    "🔹 /start - Открыть приложение\n"
    "🔹 /help - Показать эту справку\n"
    "🔹 /stats - Статистика прогресса\n"
    "🔹 /today - Сегодняшняя тренировка\n\n"
    "💡 Для полного функционала используйте приложение через кнопку ниже:"
)

UNKNOWN_TEXT = (
    "Я пока не понимаю обычные сообщения 😅\n\n"
    "Используй команды:\n"
    "/start - Открыть приложение\n"
    "/help - Помощь\n"
    "/stats - Статистика\n"
    "/today - Тренировка дня\n\n"
    "Или открой приложение:"
)


@basic_router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    first_name = message.from_user.first_name if message.from_user else None
    await message.answer(welcome_text(first_name), reply_markup=webapp_cta_kb(screen="dashboard"))


@basic_router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT, reply_markup=webapp_cta_kb())


# fallback_router подключается последним: ловит любой текст, кроме команд
@fallback_router.message(F.text & ~F.text.startswith("/"))
async def on_plain_text(message: Message) -> None:
    await message.answer(UNKNOWN_TEXT, reply_markup=webapp_cta_kb())

from urllib.parse import parse_qs, urlparse

from bot.keyboards import OPEN_APP_TEXT, webapp_cta_kb
from bot.routers.basic import welcome_text
from bot.routers import stats as stats_router_module
from bot.routers.stats import format_stats, format_today
from bot.routers.webapp import parse_event, reply_for_event
from core.config import settings


def test_keyboard_requires_https(monkeypatch):
    monkeypatch.setattr(settings, "webapp_url", "http://insecure.example")
    assert webapp_cta_kb() is None
    monkeypatch.setattr(settings, "webapp_url", None)
    assert webapp_cta_kb() is None


def test_keyboard_points_to_screen(monkeypatch):
    monkeypatch.setattr(settings, "webapp_url", "https://app.example/?lang=ru")
    kb = webapp_cta_kb(screen="stats")
    button = kb.inline_keyboard[0][0]
    assert button.text == OPEN_APP_TEXT
    query = parse_qs(urlparse(button.web_app.url).query)
    assert query["screen"] == ["stats"]
    assert query["lang"] == ["ru"]
    assert "v" in query


def test_welcome_text():
    assert "Привет, Маша!" in welcome_text("Маша")
    assert "Привет, друг!" in welcome_text(None)


def test_format_stats():
    text = format_stats(
        {"workout_count": 4, "weight_progress": -2.5, "conditions": [{"sleep": {"duration": 7}}, {"sleep": None}]}
    )
    assert "Тренировок за месяц: 4" in text
    assert "-2.5 кг" in text
    assert "7.0 часов" in text
    assert "+1.5 кг" in format_stats({"workout_count": 0, "weight_progress": 1.5})


def test_format_today():
    assert "не запланирована" in format_today(None)
    text = format_today(
        {
            "workout_name": "Push",
            "duration": 40,
            "exercises": [{"name": "Bench", "sets": 3, "reps": 8, "completed": True}, {"name": "Plank"}],
        }
    )
    assert "Push" in text
    assert "1. ✅ Bench - 3×8" in text
    assert "2. Plank" in text


def test_web_app_events():
    assert "Push" in reply_for_event({"type": "workout_completed", "workoutName": "Push"})
    assert "81.2 кг" in reply_for_event({"type": "measurement_saved", "weight": 81.2})
    assert "тренеру" in reply_for_event({"type": "message_to_trainer"})
    assert reply_for_event(parse_event("not json")) == "✅ Данные получены!"
    assert reply_for_event(parse_event("[1, 2]")) == "✅ Данные получены!"


class _AnonymousMessage:
    from_user = None

    def __init__(self):
        self.answers = []

    async def answer(self, text, **kwargs):
        self.answers.append(text)


async def test_commands_without_sender_are_ignored(monkeypatch):
    async def fail_fetch(path, user):
        raise AssertionError("API must not be called without a sender")

    monkeypatch.setattr(stats_router_module, "fetch_api", fail_fetch)
    message = _AnonymousMessage()
    await stats_router_module.cmd_stats(message)
    await stats_router_module.cmd_today(message)
    assert message.answers == []

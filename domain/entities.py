from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal


MealType = Literal["breakfast", "lunch", "dinner", "snack"]
MessageType = Literal["text", "photo", "video", "voice", "file"]
Sender = Literal["user", "trainer"]


@dataclass(frozen=True)
class Identity:
    """Caller identity taken from Telegram WebApp request headers."""

    telegram_id: int
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None


@dataclass
class User:
    id: int
    telegram_id: int
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    trainer_id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

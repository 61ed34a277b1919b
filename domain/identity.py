from __future__ import annotations

import re
from typing import Mapping

from domain.entities import Identity


HEADER_ID = "x-telegram-id"
HEADER_USERNAME = "x-telegram-username"
HEADER_FIRST_NAME = "x-telegram-firstname"
HEADER_LAST_NAME = "x-telegram-lastname"

# users.telegram_id is BIGINT
MAX_TELEGRAM_ID = 2**63 - 1

_DIGITS = re.compile(r"\d{1,19}")


def parse_telegram_id(raw: str | None) -> int | None:
    if raw is None:
        return None
    value = raw.strip()
    if not _DIGITS.fullmatch(value):
        return None
    tid = int(value)
    if tid <= 0 or tid > MAX_TELEGRAM_ID:
        return None
    return tid


def _text(raw: str | None) -> str | None:
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def resolve_identity(headers: Mapping[str, str]) -> Identity | None:
    """Extract the caller identity from request headers.

    Lookup is case-insensitive. A missing or malformed ``X-Telegram-Id``
    (anything but a positive integer) yields ``None``; rejecting the caller
    is left to the access guard. Empty display headers become ``None``.
    """
    lowered = {k.lower(): v for k, v in headers.items()}
    tid = parse_telegram_id(lowered.get(HEADER_ID))
    if tid is None:
        return None
    return Identity(
        telegram_id=tid,
        username=_text(lowered.get(HEADER_USERNAME)),
        first_name=_text(lowered.get(HEADER_FIRST_NAME)),
        last_name=_text(lowered.get(HEADER_LAST_NAME)),
    )


def identity_headers(identity: Identity) -> dict[str, str]:
    """Headers a client sends to act as ``identity`` (inverse of resolve_identity)."""
    headers = {"X-Telegram-Id": str(identity.telegram_id)}
    if identity.username:
        headers["X-Telegram-Username"] = identity.username
    if identity.first_name:
        headers["X-Telegram-Firstname"] = identity.first_name
    if identity.last_name:
        headers["X-Telegram-Lastname"] = identity.last_name
    return headers

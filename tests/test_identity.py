import pytest

from domain.entities import Identity
from domain.identity import identity_headers, parse_telegram_id, resolve_identity


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("111", 111),
        (" 42 ", 42),
        ("9223372036854775807", 2**63 - 1),
        ("0", None),
        ("-5", None),
        ("12abc", None),
        ("1.5", None),
        ("", None),
        ("9223372036854775808", None),
        ("99999999999999999999", None),
        (None, None),
    ],
)
def test_parse_telegram_id(raw, expected):
    assert parse_telegram_id(raw) == expected


def test_resolve_identity_is_case_insensitive():
    identity = resolve_identity({"x-TELEGRAM-id": "7", "X-Telegram-FirstName": "Ann"})
    assert identity == Identity(telegram_id=7, username=None, first_name="Ann", last_name=None)


def test_resolve_identity_without_id_header():
    assert resolve_identity({"X-Telegram-Username": "ann"}) is None


def test_empty_display_headers_become_none():
    identity = resolve_identity({"X-Telegram-Id": "7", "X-Telegram-Username": "  ", "X-Telegram-Lastname": ""})
    assert identity is not None
    assert identity.username is None
    assert identity.last_name is None


def test_identity_headers_are_understood_by_resolver():
    identity = Identity(telegram_id=555, username="neo", first_name="Thomas", last_name=None)
    headers = identity_headers(identity)
    assert "X-Telegram-Lastname" not in headers
    assert resolve_identity(headers) == identity

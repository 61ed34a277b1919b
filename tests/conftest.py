from __future__ import annotations

import os
import tempfile

# settings читаются при импорте модулей приложения
_TMP = tempfile.mkdtemp(prefix="fitness-pro-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(_TMP, 'import.db')}")
os.environ.setdefault("UPLOADS_DIR", os.path.join(_TMP, "uploads"))
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("WEBAPP_URL", "")

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import func, select  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

from infra.api.app import create_app  # noqa: E402
from infra.db.models import Base, User  # noqa: E402
from infra.db.session import get_session  # noqa: E402
from infra.storage.object_storage import UploadStorage  # noqa: E402


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def storage(tmp_path):
    return UploadStorage(base_dir=str(tmp_path / "uploads"))


@pytest.fixture
def app(session_maker, storage):
    application = create_app(storage)

    async def override_session():
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_session] = override_session
    return application


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def user_count(session_maker):
    async def count(telegram_id: int | None = None) -> int:
        stmt = select(func.count(User.id))
        if telegram_id is not None:
            stmt = stmt.where(User.telegram_id == telegram_id)
        async with session_maker() as session:
            return int((await session.execute(stmt)).scalar_one())

    return count


def as_user(telegram_id: int, first_name: str | None = None, username: str | None = None) -> dict[str, str]:
    headers = {"X-Telegram-Id": str(telegram_id)}
    if first_name is not None:
        headers["X-Telegram-Firstname"] = first_name
    if username is not None:
        headers["X-Telegram-Username"] = username
    return headers


ALICE = as_user(1001, first_name="Alice")
BOB = as_user(2002, first_name="Bob")

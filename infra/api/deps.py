from __future__ import annotations

import structlog
from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities import User
from domain.errors import StorageUnavailableError, UnauthenticatedError
from domain.identity import resolve_identity
from infra.db.repositories.user_repo import UserRepo
from infra.db.session import get_session


log = structlog.get_logger("api.auth")


async def current_user(request: Request, session: AsyncSession = Depends(get_session)) -> User:
    """Access guard for every protected route.

    No identity header means 401 before any database access. A first
    request from an unknown Telegram id creates the user. Database failures
    while resolving surface as 500, never as 401.
    """
    identity = resolve_identity(request.headers)
    if identity is None:
        log.info("auth_rejected", path=request.url.path)
        raise UnauthenticatedError("Unauthorized")
    try:
        user = await UserRepo(session).get_or_create(identity)
    except (SQLAlchemyError, OSError) as e:
        log.error("auth_storage_error", telegram_id=identity.telegram_id, error=str(e))
        raise StorageUnavailableError("Authentication failed") from e
    request.state.user = user
    structlog.contextvars.bind_contextvars(user_id=user.id)
    return user

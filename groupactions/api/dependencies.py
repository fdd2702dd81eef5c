"""
Dependencies used by the API.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger
from structlog.typing import FilteringBoundLogger

from groupactions.config.settings import Settings
from groupactions.core.errors import Unauthenticated
from groupactions.database.meta import ALL_TABLES
from groupactions.service import session as session_service

# Ensure ruff doesn't get rid of import
ALL_TABLES[1]


@lru_cache
def SETTINGS():
    return Settings()


DATABASE_MANAGER = SETTINGS().async_manager()


async def get_async_session():
    async with DATABASE_MANAGER.session() as session:
        async with session.begin():
            yield session


def logger():
    return get_logger()


SettingsDependency = Annotated[Settings, Depends(SETTINGS)]
DatabaseDependency = Annotated[AsyncSession, Depends(get_async_session)]
LoggerDependency = Annotated[FilteringBoundLogger, Depends(logger)]


class Caller(BaseModel):
    """
    The authenticated user behind a request, with the refreshed token that
    is handed back in the response.
    """

    user_id: int
    user_name: str
    token: str


async def handle_caller(
    request: Request,
    settings: SettingsDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> Caller | None:
    """
    Resolve the `Authorization: Bearer <token>` header. Returns None when no
    header was sent.

    Raises
    ------
    Unauthenticated
        If the header is malformed, the token is invalid or expired, or its
        user no longer exists.
    """
    authorization = request.headers.get("Authorization")

    if not authorization:
        return None

    scheme, _, encoded_token = authorization.partition(" ")

    if scheme.lower() != "bearer" or not encoded_token:
        await log.adebug("api.auth.bearer_not_found")
        raise session_service.InvalidToken

    user = await session_service.resolve_user(
        encoded_token=encoded_token.strip(),
        public_key=request.app.public_key,
        key_pair_type=request.app.key_pair_type,
        conn=conn,
        log=log,
    )

    return Caller(
        user_id=user.user_id,
        user_name=user.user_name,
        token=session_service.issue_token(
            user_id=user.user_id,
            private_key=request.app.private_key,
            settings=settings,
        ),
    )


async def handle_optional_caller(
    request: Request,
    settings: SettingsDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> Caller | None:
    """
    The same as `handle_caller`, but a bad token makes the caller anonymous
    instead of failing the request.
    """
    try:
        return await handle_caller(
            request=request, settings=settings, conn=conn, log=log
        )
    except Unauthenticated as e:
        await log.adebug("api.auth.anonymous", reason=e.kind, message=e.message)
        return None


async def handle_authenticated_caller(
    request: Request,
    settings: SettingsDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> Caller:
    """
    The same as `handle_caller` but raises `Unauthenticated` if no token was
    sent at all.
    """
    caller = await handle_caller(request=request, settings=settings, conn=conn, log=log)

    if caller is None:
        raise Unauthenticated("Authentication required")

    return caller


CallerDependency = Annotated[Caller | None, Depends(handle_optional_caller)]
AuthenticatedCallerDependency = Annotated[Caller, Depends(handle_authenticated_caller)]

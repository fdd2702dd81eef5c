"""
Bearer token sessions: issuing tokens and resolving them back to users.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupactions.config.settings import Settings
from groupactions.core.auth import decode_access_token
from groupactions.core.errors import Unauthenticated
from groupactions.core.tokens import (
    KeyDecodeError,
    KeyExpiredError,
    build_access_token_payload,
    sign_payload,
)
from groupactions.database.user import User

from . import user as user_service


class InvalidToken(Unauthenticated):
    """Your token is invalid."""


class TokenExpired(Unauthenticated):
    """Your token has expired."""


class UnknownUser(Unauthenticated):
    """The user for this token no longer exists."""


def issue_token(user_id: int, private_key: bytes, settings: Settings) -> str:
    """
    Sign a fresh access token for `user_id`, valid for
    `settings.access_key_expiry`.
    """
    payload = build_access_token_payload(
        user_id=user_id, validity=settings.access_key_expiry
    )

    return sign_payload(
        key_password=settings.key_password,
        private_key=private_key,
        key_pair_type=settings.key_pair_type,
        payload=payload,
    )


async def resolve_user(
    encoded_token: str,
    public_key: bytes,
    key_pair_type: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> User:
    """
    Decode a bearer token and load its user. The token is verified before the
    database is touched, and the user must still exist.

    Raises
    ------
    TokenExpired
        If the token has expired.
    InvalidToken
        If the token cannot be decoded.
    UnknownUser
        If the token's user has been removed.
    """
    try:
        subject = decode_access_token(
            encoded_access_token=encoded_token,
            public_key=public_key,
            key_pair_type=key_pair_type,
        )
    except KeyExpiredError:
        await log.adebug("session.token_expired")
        raise TokenExpired
    except KeyDecodeError:
        await log.adebug("session.token_invalid")
        raise InvalidToken

    log = log.bind(user_id=subject.user_id)

    try:
        user = await user_service.read_by_id(user_id=subject.user_id, conn=conn)
    except user_service.UserNotFound:
        await log.ainfo("session.user_missing")
        raise UnknownUser

    await log.adebug("session.resolved")
    return user

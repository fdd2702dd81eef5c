"""
Service layer for users
"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupactions.core.errors import Conflict, NotFound
from groupactions.database.user import User


class UserNotFound(NotFound):
    """User not found."""


class UserExistsError(Conflict):
    """A user with this name already exists."""


async def create(
    user_name: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    email: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
) -> User:
    """
    Creates a user.

    Raises
    ------
    UserExistsError
        If a user with this user name already exists.
    """

    user_name = user_name.strip().lower().replace(" ", "_")

    log = log.bind(user_name=user_name, email=email)

    user = User(
        user_name=user_name,
        email=email,
        first_name=first_name,
        last_name=last_name,
        created_at=datetime.now(timezone.utc),
    )

    try:
        async with conn.begin_nested():
            conn.add(user)
            await conn.flush()
    except IntegrityError:
        await log.ainfo("user.create.exists")
        raise UserExistsError(f"User with user name {user_name} already exists")

    log = log.bind(user_id=user.user_id)
    await log.ainfo("user.created")

    return user


async def read_by_id(user_id: int, conn: AsyncSession) -> User:
    res = await conn.get(User, user_id)

    if res is None:
        raise UserNotFound(f"User with ID {user_id} not found in the database")

    return res


async def read_by_name(user_name: str, conn: AsyncSession) -> User:
    user_name = user_name.strip().lower().replace(" ", "_")

    query = select(User).filter(User.user_name == user_name)
    res = (await conn.execute(query)).unique().scalar_one_or_none()

    if res is None:
        raise UserNotFound(f"User with name {user_name} not found in the database")

    return res

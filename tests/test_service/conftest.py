"""
Configuration variables and fixtures for the service layer tests.
"""

import pytest_asyncio

from groupactions.service import actions as actions_service
from groupactions.service import user as user_service


async def _create_user(session_manager, logger, user_name: str) -> int:
    async with session_manager.session() as conn:
        async with conn.begin():
            user = await user_service.create(
                user_name=user_name,
                email=f"{user_name}@example.org",
                first_name=user_name.capitalize(),
                conn=conn,
                log=logger,
            )

            return user.user_id


@pytest_asyncio.fixture(scope="session")
async def alice(session_manager, logger, admin):
    yield await _create_user(session_manager, logger, "alice")


@pytest_asyncio.fixture(scope="session")
async def bob(session_manager, logger, admin):
    yield await _create_user(session_manager, logger, "bob")


@pytest_asyncio.fixture(scope="session")
async def action_type(session_manager, logger):
    async with session_manager.session() as conn:
        async with conn.begin():
            action_type = await actions_service.create_action_type(
                name="Litter pick", default_points=10, conn=conn, log=logger
            )

            ACTION_TYPE_ID = action_type.action_type_id

    yield ACTION_TYPE_ID

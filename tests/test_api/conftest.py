"""
Fixtures for driving the FastAPI app in-process.
"""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from groupactions.service import actions as actions_service
from groupactions.service import session as session_service
from groupactions.service import user as user_service


@pytest_asyncio.fixture(scope="session")
async def client(server_settings, session_manager, key_pair, admin):
    from groupactions.api.app import app
    from groupactions.api.dependencies import SETTINGS, get_async_session

    async def get_test_session():
        async with session_manager.session() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[SETTINGS] = lambda: server_settings
    app.dependency_overrides[get_async_session] = get_test_session

    app.key_pair_type = server_settings.key_pair_type
    app.public_key, app.private_key = key_pair

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        yield client

    app.dependency_overrides.clear()


async def _user_headers(
    session_manager, logger, server_settings, key_pair, user_name: str
) -> dict[str, str]:
    async with session_manager.session() as conn:
        async with conn.begin():
            user = await user_service.create(user_name=user_name, conn=conn, log=logger)
            USER_ID = user.user_id

    token = session_service.issue_token(
        user_id=USER_ID, private_key=key_pair[1], settings=server_settings
    )

    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture(scope="session")
async def carol(session_manager, logger, server_settings, key_pair, admin):
    """Headers for a group owner."""
    yield await _user_headers(session_manager, logger, server_settings, key_pair, "carol")


@pytest_asyncio.fixture(scope="session")
async def dave(session_manager, logger, server_settings, key_pair, admin):
    """Headers for a second user."""
    yield await _user_headers(session_manager, logger, server_settings, key_pair, "dave")


@pytest_asyncio.fixture(scope="session")
async def tree_planting(session_manager, logger):
    async with session_manager.session() as conn:
        async with conn.begin():
            action_type = await actions_service.create_action_type(
                name="Tree planting", default_points=30, conn=conn, log=logger
            )

            ACTION_TYPE_ID = action_type.action_type_id

    yield ACTION_TYPE_ID

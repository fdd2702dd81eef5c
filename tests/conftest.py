"""
Core configuration
"""

import os

import pytest_asyncio
import structlog

from groupactions.config.settings import Settings
from groupactions.core.cryptography import generate_key_pair
from groupactions.database.meta import ALL_TABLES
from groupactions.service import groups as groups_service
from groupactions.service import user as user_service

# Ensure ruff doesn't get rid of import
ALL_TABLES[1]


@pytest_asyncio.fixture(scope="session")
def database_container(tmp_path_factory):
    if not os.environ.get("GROUPACTIONS_TEST_POSTGRES"):
        yield {
            "database_type": "sqlite",
            "database_db": str(tmp_path_factory.mktemp("db") / "groupactions.db"),
        }
        return

    from testcontainers.postgres import PostgresContainer

    with PostgresContainer() as container:
        yield {
            "database_type": "postgres",
            "database_user": container.username,
            "database_password": container.password,
            "database_port": container.get_exposed_port(container.port),
            "database_host": "localhost",
            "database_db": container.dbname,
            "database_echo": True,
        }


@pytest_asyncio.fixture(scope="session")
def server_settings(database_container, tmp_path_factory):
    yield Settings(
        **database_container,
        media_path=tmp_path_factory.mktemp("media"),
        hostname="http://testserver",
        initial_admin=None,
    )


@pytest_asyncio.fixture(scope="session")
def database(server_settings: Settings):
    server_settings.sync_manager().create_all()


@pytest_asyncio.fixture(scope="session")
def session_manager(server_settings: Settings, database):
    yield server_settings.async_manager()


@pytest_asyncio.fixture(scope="session")
def logger():
    yield structlog.get_logger()


@pytest_asyncio.fixture(scope="session")
def key_pair(server_settings: Settings):
    yield generate_key_pair(
        key_pair_type=server_settings.key_pair_type,
        key_password=server_settings.key_password,
    )


@pytest_asyncio.fixture(scope="session")
async def admin(session_manager, logger, server_settings):
    """
    The admin user, owner of the reserved group. The reserved group is created
    first so that it takes the reserved ID.
    """
    async with session_manager.session() as conn:
        async with conn.begin():
            user = await user_service.create(
                user_name="admin",
                email="admin@example.org",
                first_name="Admin",
                last_name="User",
                conn=conn,
                log=logger,
            )

            group = await groups_service.create(
                name="Everyone",
                created_by_user_id=user.user_id,
                settings=server_settings,
                conn=conn,
                log=logger,
                private=True,
            )

            assert group.group_id == server_settings.reserved_group_id

            USER_ID = user.user_id

    yield USER_ID

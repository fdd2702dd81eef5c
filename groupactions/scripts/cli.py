"""
A simple CLI for running and setting up the server.
"""

import asyncio
import os
import sys

import uvicorn

USAGE = (
    "Supported commands are groupactions run dev, groupactions run prod, "
    "groupactions setup, or groupactions token {user_name}"
)


def run_server(**kwargs):
    for k, v in kwargs.items():
        os.environ[k] = v

    uvicorn.run("groupactions.api.app:app", host="0.0.0.0")


def setup():
    from groupactions.api.setup import initial_setup
    from groupactions.config.settings import Settings

    asyncio.run(initial_setup(settings=Settings()))


async def mint_token(user_name: str) -> str:
    """
    Sign a token for `user_name`, creating the user if needed. The key files
    must already exist.
    """
    from structlog import get_logger

    from groupactions.api.setup import load_key_pair
    from groupactions.config.settings import Settings
    from groupactions.database.meta import ALL_TABLES
    from groupactions.service import session as session_service
    from groupactions.service import user as user_service

    ALL_TABLES[1]

    settings = Settings()
    _, private_key = load_key_pair(settings)
    manager = settings.async_manager()

    async with manager.session() as conn:
        async with conn.begin():
            try:
                user = await user_service.read_by_name(user_name=user_name, conn=conn)
            except user_service.UserNotFound:
                user = await user_service.create(
                    user_name=user_name, conn=conn, log=get_logger()
                )

            token = session_service.issue_token(
                user_id=user.user_id, private_key=private_key, settings=settings
            )

    await manager.dispose()

    return token


def main():
    try:
        command = sys.argv[1]
    except IndexError:
        print(USAGE)
        exit(1)

    if command == "run":
        try:
            mode = sys.argv[2]
        except IndexError:
            print(USAGE)
            exit(1)

        if mode == "dev":
            from testcontainers.postgres import PostgresContainer

            with PostgresContainer() as container:
                print(
                    f"Container details: username={container.username}, password={container.password}, port={container.get_exposed_port(container.port)}"
                )

                environment = {
                    "GROUPACTIONS_DATABASE_TYPE": "postgres",
                    "GROUPACTIONS_DATABASE_USER": container.username,
                    "GROUPACTIONS_DATABASE_PASSWORD": container.password,
                    "GROUPACTIONS_DATABASE_PORT": str(
                        container.get_exposed_port(container.port)
                    ),
                    "GROUPACTIONS_DATABASE_HOST": "localhost",
                    "GROUPACTIONS_DATABASE_DB": container.dbname,
                    "GROUPACTIONS_DATABASE_ECHO": "False",
                    "GROUPACTIONS_INITIAL_ADMIN": "example_user",
                    "GROUPACTIONS_CREATE_FILES": "True",
                    "GROUPACTIONS_PUBLIC_KEY_FILENAME": "./dev_keys/public_key.pem",
                    "GROUPACTIONS_PRIVATE_KEY_FILENAME": "./dev_keys/private_key.pem",
                }

                for k, v in environment.items():
                    os.environ[k] = v

                setup()
                print(f"Token for example_user: {asyncio.run(mint_token('example_user'))}")

                run_server(**environment)
        elif mode == "prod":
            setup()
            run_server()
        else:
            print(USAGE)
            exit(1)
    elif command == "setup":
        setup()
        print("Setup complete, please restart the container or application")
        exit(0)
    elif command == "token":
        try:
            user_name = sys.argv[2]
        except IndexError:
            print(USAGE)
            exit(1)

        print(asyncio.run(mint_token(user_name)))
    else:
        print(USAGE)
        exit(1)

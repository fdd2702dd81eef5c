"""
Database engines and session factories.
"""

from sqlalchemy import URL, Engine, event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel, create_engine


def enable_sqlite_savepoints(engine: Engine) -> None:
    """
    The sqlite drivers manage transactions themselves, which breaks
    SAVEPOINT (used when retrying group codes). Hand transaction control back
    to SQLAlchemy.
    """

    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


class SyncSessionManager:
    """
    A manager for synchronous sessions, used by the command line tools:

    manager = SyncSessionManager(conn_url)

    with manager.session() as conn:
        group = conn.get(Group, 1)
    """

    connection_url: URL
    engine: Engine
    session: sessionmaker

    def __init__(self, connection_url: URL, echo: bool = False):
        self.connection_url = connection_url
        self.engine = create_engine(self.connection_url, echo=echo)
        if self.engine.dialect.name == "sqlite":
            enable_sqlite_savepoints(self.engine)
        self.session = sessionmaker(self.engine)

    def create_all(self):
        """
        Run the `SQLModel.metadata.create_all` migration tool. Required
        to set up the table schema.
        """
        with self.engine.begin() as conn:
            SQLModel.metadata.create_all(conn)


class AsyncSessionManager:
    """
    A manager for asynchronous sessions, one per request:

    manager = AsyncSessionManager(conn_url)

    async with manager.session() as conn:
        async with conn.begin():
            group = await groups_service.read_by_id(group_id=2, conn=conn, log=log)
    """

    connection_url: URL
    engine: AsyncEngine
    session: async_sessionmaker

    def __init__(self, connection_url: URL, echo: bool = False):
        self.connection_url = connection_url
        self.engine = create_async_engine(self.connection_url, echo=echo)
        if self.engine.dialect.name == "sqlite":
            enable_sqlite_savepoints(self.engine.sync_engine)
        self.session = async_sessionmaker(self.engine)

    async def create_all(self):
        """
        Run the `SQLModel.metadata.create_all` migration tool. Required
        to set up the table schema.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def dispose(self):
        await self.engine.dispose()

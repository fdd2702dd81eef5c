"""
Main settings object.
"""

from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import URL

from .managers import AsyncSessionManager, SyncSessionManager


class Settings(BaseSettings):
    database_type: Literal["sqlite", "postgres"] = "sqlite"
    database_user: str | None = None
    database_password: str | None = None
    database_port: int | None = None
    database_host: str | None = None
    database_db: str = "groupactions.db"

    database_echo: bool = False

    # Public base URL, used to build banner image URLs
    hostname: str = "http://localhost:8000"
    # Uploaded files live under {media_path}/uploads and are served at /uploads
    media_path: Path = Path("./public")

    key_pair_type: str = "Ed25519"
    key_password: str = "CHANGEME"
    access_key_expiry: timedelta = timedelta(days=7)

    # If create_files is set, a signing key pair is generated and written to
    # these paths when they do not already exist.
    create_files: bool = False
    public_key_filename: Path | None = None  # Suggest /data/public_key.pem
    private_key_filename: Path | None = None  # Suggest /data/private_key.pem

    # User name of the owner of the reserved group, created during setup.
    initial_admin: str | None = None
    reserved_group_id: int = 1

    group_code_length: int = 9
    group_code_attempts: int = 5

    default_action_duration: timedelta = timedelta(days=7)
    recent_action_months: int = 2

    model_config = SettingsConfigDict(env_prefix="GROUPACTIONS_", env_file=".env")

    @property
    def sync_driver(self) -> str:
        match self.database_type:
            case "sqlite":
                return "sqlite"
            case "postgres":
                return "postgresql+psycopg"
            case _:
                raise ValueError

    @property
    def async_driver(self) -> str:
        match self.database_type:
            case "sqlite":
                return "sqlite+aiosqlite"
            case "postgres":
                return "postgresql+asyncpg"
            case _:
                raise ValueError

    @property
    def sync_uri(self) -> URL:
        return URL.create(
            drivername=self.sync_driver,
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_db,
        )

    def sync_manager(self) -> SyncSessionManager:
        return SyncSessionManager(connection_url=self.sync_uri, echo=self.database_echo)

    @property
    def async_uri(self) -> URL:
        return URL.create(
            drivername=self.async_driver,
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_db,
        )

    def async_manager(self) -> AsyncSessionManager:
        return AsyncSessionManager(
            connection_url=self.async_uri, echo=self.database_echo
        )

    @property
    def banner_directory(self) -> Path:
        return self.media_path / "uploads" / "groups" / "banners"

    @property
    def banner_url_prefix(self) -> str:
        return f"{self.hostname.rstrip('/')}/uploads/groups/banners/"

"""
Storage for group banner images.

Banners are written to `{media_path}/uploads/groups/banners/{group_id}{ext}`
and served from `{hostname}/uploads/groups/banners/{group_id}{ext}`.
"""

import os
import shutil
from pathlib import Path
from typing import BinaryIO

from starlette.concurrency import run_in_threadpool
from structlog.typing import FilteringBoundLogger

from groupactions.config.settings import Settings
from groupactions.core.errors import Internal, UnsupportedMediaType

SUPPORTED_BANNER_EXTENSIONS = {".jpg", ".png"}


class BannerUploadError(Internal):
    """Upload failed"""


def banner_extension(filename: str | None) -> str:
    """
    The lower-cased extension of an uploaded banner.

    Raises
    ------
    UnsupportedMediaType
        Unless the file is a .jpg or .png.
    """
    extension = os.path.splitext(filename or "")[1].lower()

    if extension not in SUPPORTED_BANNER_EXTENSIONS:
        raise UnsupportedMediaType

    return extension


def banner_path(group_id: int, extension: str, settings: Settings) -> Path:
    return settings.banner_directory / f"{group_id}{extension}"


def banner_url(group_id: int, extension: str, settings: Settings) -> str:
    return f"{settings.banner_url_prefix}{group_id}{extension}"


def write_banner(path: Path, content: BinaryIO) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as handle:
        shutil.copyfileobj(content, handle)


async def store(
    group_id: int,
    filename: str | None,
    content: BinaryIO,
    settings: Settings,
    log: FilteringBoundLogger,
) -> tuple[Path, str]:
    """
    Write a banner for a group, replacing any previous one with the same
    extension. Returns the path written and the public URL.

    Raises
    ------
    UnsupportedMediaType
        If the file is not a .jpg or .png.
    BannerUploadError
        If the file could not be written.
    """
    extension = banner_extension(filename)
    path = banner_path(group_id=group_id, extension=extension, settings=settings)

    log = log.bind(group_id=group_id, banner_path=str(path))

    try:
        await run_in_threadpool(write_banner, path, content)
    except OSError as e:
        await log.aerror("banner.write_failed", error=str(e))
        raise BannerUploadError

    await log.ainfo("banner.stored")

    return path, banner_url(group_id=group_id, extension=extension, settings=settings)


async def remove(path: Path, log: FilteringBoundLogger) -> None:
    """
    Delete a stored banner, used when the surrounding group write fails.
    """
    await run_in_threadpool(path.unlink, missing_ok=True)
    await log.ainfo("banner.removed", banner_path=str(path))

"""
Service layer for groups and their memberships.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO

from sqlalchemy import false, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupactions.config.settings import Settings
from groupactions.core import random
from groupactions.core.errors import (
    Conflict,
    Forbidden,
    GroupActionsError,
    Internal,
    NotFound,
)
from groupactions.database.group import Group, GroupSetting, GroupTag, GroupUser

from . import banners as banner_service
from . import user as user_service

GROUP_FIELDS = ("name", "description", "welcome", "private", "latitude", "longitude")
SETTING_FIELDS = ("allow_member_action", "member_action_level")
MEMBER_FLAGS = (
    "admin_settings",
    "admin_members",
    "mod_actions",
    "mod_comments",
    "submit_action",
    "banned",
)


class GroupNotFound(NotFound):
    """Group not found."""


class MemberNotFound(NotFound):
    """This user is not a member of the group."""


class AlreadyMember(Conflict):
    """You are already a member of this group."""


class GroupCreationError(Internal):
    """Group creation failed."""


class GroupCodeExhausted(Internal):
    """Could not generate a unique group code."""


def clean_tags(tags: list[str] | None) -> list[str]:
    return sorted({x.strip() for x in tags or [] if x.strip()})


async def get_public_groups(
    conn: AsyncSession,
    log: FilteringBoundLogger,
    reserved_group_id: int = 1,
) -> list[Group]:
    """
    All non-private, non-deleted groups, excluding the reserved group.
    """
    result = await conn.execute(
        select(Group)
        .where(
            Group.private == false(),
            Group.deleted_at.is_(None),
            Group.group_id != reserved_group_id,
        )
        .order_by(Group.group_id)
    )

    groups = result.unique().scalars().all()
    await log.adebug("group.public_listed", number_of_groups=len(groups))
    return groups


async def get_member_groups(
    user_id: int,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> list[Group]:
    """
    The non-deleted groups `user_id` is an (unbanned) member of.
    """
    log = log.bind(user_id=user_id)
    result = await conn.execute(
        select(Group)
        .join(GroupUser, GroupUser.group_id == Group.group_id)
        .where(
            GroupUser.user_id == user_id,
            GroupUser.banned == false(),
            Group.deleted_at.is_(None),
        )
        .order_by(Group.group_id)
    )

    groups = result.unique().scalars().all()
    await log.adebug("group.member_listed", number_of_groups=len(groups))
    return groups


async def read_by_id(
    group_id: int,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Read a (non-deleted) group by its ID.

    Raises
    ------
    GroupNotFound
        If the group does not exist or has been deleted.
    """
    log = log.bind(group_id=group_id)
    result = await conn.execute(
        select(Group).where(Group.group_id == group_id, Group.deleted_at.is_(None))
    )
    group = result.unique().scalar_one_or_none()
    if not group:
        await log.ainfo("group.not_found")
        raise GroupNotFound(f"Group with id {group_id} not found")
    await log.adebug("group.found")
    return group


async def read_by_code(
    group_code: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Read a (non-deleted) group by its join code.

    Raises
    ------
    GroupNotFound
        If no group has this code.
    """
    log = log.bind(group_code=group_code)
    result = await conn.execute(
        select(Group).where(
            Group.group_code == group_code, Group.deleted_at.is_(None)
        )
    )
    group = result.unique().scalar_one_or_none()
    if not group:
        await log.ainfo("group.not_found")
        raise GroupNotFound(f"Group with code {group_code} not found")
    await log.adebug("group.found")
    return group


async def read_membership(
    group_id: int, user_id: int, conn: AsyncSession
) -> GroupUser | None:
    return await conn.get(GroupUser, (group_id, user_id))


async def assign_group_code(
    group: Group,
    settings: Settings,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> str:
    """
    Give `group` a unique join code. Each candidate is written inside a
    SAVEPOINT; a unique constraint violation discards it and a fresh code is
    tried.

    Raises
    ------
    GroupCodeExhausted
        If `settings.group_code_attempts` candidates all collided.
    """
    log = log.bind(group_id=group.group_id)
    collided = False

    for attempt in range(settings.group_code_attempts):
        code = random.group_code(length=settings.group_code_length)

        try:
            async with conn.begin_nested():
                group.group_code = code
                await conn.flush()
        except IntegrityError:
            collided = True
            await log.ainfo("group.code.collision", attempt=attempt)
            continue

        if collided:
            # The rolled back savepoints expired the group's attributes.
            await conn.refresh(group)

        await log.ainfo("group.code.assigned", attempt=attempt)
        return code

    await log.aerror("group.code.exhausted", attempts=settings.group_code_attempts)
    raise GroupCodeExhausted(
        f"No unique group code found in {settings.group_code_attempts} attempts"
    )


async def _discard_banner(path: Path | None, log: FilteringBoundLogger) -> None:
    if path is not None:
        await banner_service.remove(path=path, log=log)


async def create(
    name: str,
    created_by_user_id: int,
    settings: Settings,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    private: bool = False,
    description: str | None = None,
    welcome: str | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
    tags: list[str] | None = None,
    banner_filename: str | None = None,
    banner_content: BinaryIO | None = None,
) -> Group:
    """
    Create a new group.

    The group row is written first, then the optional banner, the group's
    settings (member actions disabled), the creator's membership (with every
    permission flag) and finally a unique group code. All of this happens in
    the caller's transaction; a written banner is removed again if a later
    step fails.

    Raises
    ------
    UnsupportedMediaType
        If the banner is not a .jpg or .png.
    GroupCreationError
        If any database write fails.
    """

    log = log.bind(
        name=name,
        user_id=created_by_user_id,
        private=private,
        has_banner=banner_content is not None,
    )

    creator = await user_service.read_by_id(user_id=created_by_user_id, conn=conn)
    current_time = datetime.now(timezone.utc)

    group = Group(
        name=name,
        description=description,
        welcome=welcome,
        private=private,
        latitude=latitude,
        longitude=longitude,
        created_by_user_id=creator.user_id,
        creator=creator,
        created_at=current_time,
        setting=None,
        tags=[GroupTag(tag=tag) for tag in clean_tags(tags)],
        memberships=[],
    )

    banner_path = None

    try:
        conn.add(group)
        await conn.flush()
        log = log.bind(group_id=group.group_id)

        if banner_content is not None:
            banner_path, group.banner_image_file = await banner_service.store(
                group_id=group.group_id,
                filename=banner_filename,
                content=banner_content,
                settings=settings,
                log=log,
            )

        group.setting = GroupSetting(allow_member_action=False, member_action_level=0)
        group.memberships.append(
            GroupUser(
                user=creator,
                admin_settings=True,
                admin_members=True,
                mod_actions=True,
                mod_comments=True,
                submit_action=True,
                banned=False,
                joined_at=current_time,
            )
        )
        await conn.flush()

        await assign_group_code(group=group, settings=settings, conn=conn, log=log)
    except GroupActionsError:
        await _discard_banner(banner_path, log)
        raise
    except SQLAlchemyError as e:
        await _discard_banner(banner_path, log)
        await log.aerror("group.create.failed", error=str(e))
        raise GroupCreationError(f"Group creation failed: {e}") from e

    await log.ainfo("group.created", group_code=group.group_code)

    return group


async def update(
    group: Group,
    changes: dict,
    settings: Settings,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    tags: list[str] | None = None,
    banner_filename: str | None = None,
    banner_content: BinaryIO | None = None,
) -> Group:
    """
    Partially update a group and its settings. Only keys of `changes` that
    name group or setting fields and are not None are applied. `tags`, when
    given, replaces the group's tags.

    Raises
    ------
    UnsupportedMediaType
        If the banner is not a .jpg or .png.
    """
    log = log.bind(group_id=group.group_id, changes=sorted(changes))

    for key in GROUP_FIELDS:
        if changes.get(key) is not None:
            setattr(group, key, changes[key])

    for key in SETTING_FIELDS:
        if changes.get(key) is not None:
            if group.setting is None:
                group.setting = GroupSetting()
            setattr(group.setting, key, changes[key])

    if tags is not None:
        group.tags = [GroupTag(tag=tag) for tag in clean_tags(tags)]

    if banner_content is not None:
        _, group.banner_image_file = await banner_service.store(
            group_id=group.group_id,
            filename=banner_filename,
            content=banner_content,
            settings=settings,
            log=log,
        )

    await conn.flush()
    await log.ainfo("group.updated")

    return group


async def join(
    group: Group,
    user_id: int,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    group_code: str | None = None,
) -> GroupUser:
    """
    Add `user_id` to `group` with no permissions. Private groups can only be
    joined with their group code.

    Raises
    ------
    Forbidden
        If the group is private and the code does not match.
    AlreadyMember
        If the user already has a membership row (banned or not).
    """
    log = log.bind(group_id=group.group_id, user_id=user_id)

    if group.private and (group_code is None or group_code != group.group_code):
        await log.awarn("group.join.code_mismatch")
        raise Forbidden("A valid group code is required to join a private group")

    if await read_membership(group.group_id, user_id, conn) is not None:
        await log.ainfo("group.join.already_member")
        raise AlreadyMember

    user = await user_service.read_by_id(user_id=user_id, conn=conn)

    membership = GroupUser(
        user=user,
        joined_at=datetime.now(timezone.utc),
    )

    # A concurrent join can still win the race for the primary key
    try:
        async with conn.begin_nested():
            group.memberships.append(membership)
            await conn.flush()
    except IntegrityError:
        await log.ainfo("group.join.already_member")
        raise AlreadyMember

    await log.ainfo("group.user_added")
    return membership


async def list_members(
    group_id: int, conn: AsyncSession, log: FilteringBoundLogger
) -> list[GroupUser]:
    result = await conn.execute(
        select(GroupUser)
        .where(GroupUser.group_id == group_id)
        .order_by(GroupUser.joined_at, GroupUser.user_id)
    )
    members = result.unique().scalars().all()
    await log.adebug("group.members_listed", group_id=group_id, count=len(members))
    return members


async def update_member(
    group_id: int,
    user_id: int,
    changes: dict,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> GroupUser:
    """
    Change the permission flags of a member.

    Raises
    ------
    MemberNotFound
        If the user is not a member of the group.
    """
    log = log.bind(group_id=group_id, user_id=user_id)

    membership = await read_membership(group_id, user_id, conn)
    if membership is None:
        await log.ainfo("group.member.not_found")
        raise MemberNotFound

    for key in MEMBER_FLAGS:
        if changes.get(key) is not None:
            setattr(membership, key, changes[key])

    await conn.flush()
    await log.ainfo("group.member.updated", changes=sorted(changes))
    return membership

"""
Group listing, creation, settings and membership.
"""

from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from groupactions.api.dependencies import (
    AuthenticatedCallerDependency,
    Caller,
    CallerDependency,
    DatabaseDependency,
    LoggerDependency,
    SettingsDependency,
)
from groupactions.core.access import (
    can_manage_members,
    can_modify_group_settings,
    can_view_group,
    enforce,
)
from groupactions.core.group import MembershipData
from groupactions.core.models import (
    GroupListResponse,
    GroupResponse,
    JoinGroupContent,
    MemberListResponse,
    MemberResponse,
    ModifyMemberContent,
)
from groupactions.core.visibility import GroupQuery, parse_tags, visible_groups
from groupactions.service import groups as groups_service

group_app = APIRouter(tags=["Groups"])


async def membership_for(
    group_id: int, caller: Caller | None, conn: AsyncSession
) -> MembershipData | None:
    """
    The caller's membership of `group_id`, or None for anonymous callers and
    non-members.
    """
    if caller is None:
        return None

    membership = await groups_service.read_membership(
        group_id=group_id, user_id=caller.user_id, conn=conn
    )

    return membership.to_core(include_user=False) if membership else None


def banner_upload(banner_image_file: UploadFile | None) -> dict:
    if banner_image_file is None or not banner_image_file.filename:
        return {}

    return dict(
        banner_filename=banner_image_file.filename,
        banner_content=banner_image_file.file,
    )


@group_app.get(
    "",
    summary="List groups",
    description=(
        "List public groups, narrowed by the optional filters. Authenticated "
        "callers also get every group they are a member of, whether or not it "
        "matches the filters."
    ),
    responses={200: {"description": "Visible groups."}},
)
async def list_groups(
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
    settings: SettingsDependency,
    group_code: str | None = None,
    query: str | None = None,
    tag: str | None = None,
    lat: float | None = None,
    long: float | None = None,
    distance: float | None = None,
) -> GroupListResponse:
    log = log.bind(user_id=caller.user_id if caller else None)

    group_query = GroupQuery(
        group_code=group_code,
        query=query,
        tag=tag,
        lat=lat,
        long=long,
        distance=distance,
    )

    public = await groups_service.get_public_groups(
        conn=conn, log=log, reserved_group_id=settings.reserved_group_id
    )

    member_groups = []
    if caller is not None:
        member_groups = await groups_service.get_member_groups(
            user_id=caller.user_id, conn=conn, log=log
        )

    groups = visible_groups(
        public=[g.to_core() for g in public],
        query=group_query,
        member_groups=[g.to_core() for g in member_groups],
        reserved_group_id=settings.reserved_group_id,
    )

    await log.adebug("api.group.list", number_of_groups=len(groups))

    return GroupListResponse(token=caller.token if caller else None, groups=groups)


@group_app.post(
    "",
    status_code=201,
    summary="Create a group",
    description=(
        "Create a group from a multipart form. The creator becomes a member "
        "with every permission. Tags are sent as a comma separated string and "
        "the optional banner must be a .jpg or .png."
    ),
    responses={
        201: {"description": "Group created."},
        400: {"description": "Invalid form data or banner type."},
        401: {"description": "Not authenticated."},
    },
)
async def create_group(
    caller: AuthenticatedCallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
    settings: SettingsDependency,
    name: Annotated[str, Form()],
    private: Annotated[bool, Form()],
    description: Annotated[str | None, Form()] = None,
    welcome: Annotated[str | None, Form()] = None,
    latitude: Annotated[float | None, Form()] = None,
    longitude: Annotated[float | None, Form()] = None,
    tags: Annotated[str | None, Form()] = None,
    banner_image_file: Annotated[UploadFile | None, File()] = None,
) -> GroupResponse:
    log = log.bind(user_id=caller.user_id)

    group = await groups_service.create(
        name=name,
        created_by_user_id=caller.user_id,
        settings=settings,
        conn=conn,
        log=log,
        private=private,
        description=description,
        welcome=welcome,
        latitude=latitude,
        longitude=longitude,
        tags=sorted(parse_tags(tags)) if tags else None,
        **banner_upload(banner_image_file),
    )

    return GroupResponse(
        token=caller.token,
        group=group.to_core(),
        message="Group created successfully",
    )


@group_app.get(
    "/{group_id}",
    summary="Get a group",
    description=(
        "Public groups are visible to everyone, private groups only to their "
        "members."
    ),
    responses={
        200: {"description": "The group."},
        401: {"description": "Private group and no authentication."},
        403: {"description": "Private group and not a member."},
        404: {"description": "Group not found."},
    },
)
async def get_group(
    group_id: int,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> GroupResponse:
    log = log.bind(group_id=group_id, user_id=caller.user_id if caller else None)

    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    membership = await membership_for(group_id, caller, conn)

    enforce(
        can_view_group(
            group=group.to_core(),
            caller_id=caller.user_id if caller else None,
            membership=membership,
        ),
        message="You are not allowed to access this private group",
    )

    return GroupResponse(token=caller.token if caller else None, group=group.to_core())


@group_app.put(
    "/{group_id}",
    summary="Update a group",
    description=(
        "Update group fields, settings, tags or banner. Requires the "
        "admin_settings permission. Omitted fields are left unchanged."
    ),
    responses={
        200: {"description": "Updated group."},
        403: {"description": "Missing admin_settings permission."},
        404: {"description": "Group not found."},
    },
)
async def update_group(
    group_id: int,
    caller: AuthenticatedCallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
    settings: SettingsDependency,
    name: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    welcome: Annotated[str | None, Form()] = None,
    private: Annotated[bool | None, Form()] = None,
    latitude: Annotated[float | None, Form()] = None,
    longitude: Annotated[float | None, Form()] = None,
    allow_member_action: Annotated[bool | None, Form()] = None,
    member_action_level: Annotated[int | None, Form()] = None,
    tags: Annotated[str | None, Form()] = None,
    banner_image_file: Annotated[UploadFile | None, File()] = None,
) -> GroupResponse:
    log = log.bind(group_id=group_id, user_id=caller.user_id)

    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    membership = await membership_for(group_id, caller, conn)

    enforce(
        can_modify_group_settings(membership),
        message="You don't have permission to update this group",
    )

    group = await groups_service.update(
        group=group,
        changes=dict(
            name=name,
            description=description,
            welcome=welcome,
            private=private,
            latitude=latitude,
            longitude=longitude,
            allow_member_action=allow_member_action,
            member_action_level=member_action_level,
        ),
        settings=settings,
        conn=conn,
        log=log,
        tags=sorted(parse_tags(tags)) if tags is not None else None,
        **banner_upload(banner_image_file),
    )

    return GroupResponse(
        token=caller.token,
        group=group.to_core(),
        message="Group updated successfully",
    )


@group_app.get(
    "/{group_id}/members",
    summary="List group members",
    description="Members of a group, visible to anyone who can view the group.",
    responses={
        200: {"description": "Members with their permission flags."},
        404: {"description": "Group not found."},
    },
)
async def list_members(
    group_id: int,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> MemberListResponse:
    log = log.bind(group_id=group_id)

    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    membership = await membership_for(group_id, caller, conn)

    enforce(
        can_view_group(
            group=group.to_core(),
            caller_id=caller.user_id if caller else None,
            membership=membership,
        ),
        message="You are not allowed to access this private group",
    )

    members = await groups_service.list_members(group_id=group_id, conn=conn, log=log)

    return MemberListResponse(
        token=caller.token if caller else None,
        members=[m.to_core() for m in members],
    )


@group_app.post(
    "/{group_id}/members",
    status_code=201,
    summary="Join a group",
    description=(
        "Join a group as a member without permissions. Private groups "
        "require their group code."
    ),
    responses={
        201: {"description": "Joined."},
        403: {"description": "Wrong or missing group code."},
        409: {"description": "Already a member."},
    },
)
async def join_group(
    group_id: int,
    caller: AuthenticatedCallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
    content: JoinGroupContent | None = None,
) -> GroupResponse:
    log = log.bind(group_id=group_id, user_id=caller.user_id)

    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)

    await groups_service.join(
        group=group,
        user_id=caller.user_id,
        conn=conn,
        log=log,
        group_code=content.group_code if content else None,
    )

    return GroupResponse(
        token=caller.token,
        group=group.to_core(),
        message=group.welcome,
    )


@group_app.put(
    "/{group_id}/members/{user_id}",
    summary="Change a member's permissions",
    description="Set permission flags or ban a member. Requires admin_members.",
    responses={
        200: {"description": "Updated membership."},
        403: {"description": "Missing admin_members permission."},
        404: {"description": "Group or member not found."},
    },
)
async def modify_member(
    group_id: int,
    user_id: int,
    content: ModifyMemberContent,
    caller: AuthenticatedCallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> MemberResponse:
    log = log.bind(group_id=group_id, user_id=caller.user_id, member_id=user_id)

    await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    membership = await membership_for(group_id, caller, conn)

    enforce(
        can_manage_members(membership),
        message="You don't have permission to manage members of this group",
    )

    member = await groups_service.update_member(
        group_id=group_id,
        user_id=user_id,
        changes=content.model_dump(exclude_none=True),
        conn=conn,
        log=log,
    )

    return MemberResponse(token=caller.token, member=member.to_core())

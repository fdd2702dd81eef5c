"""
Actions posted to a group, their types and completions.
"""

from fastapi import APIRouter

from groupactions.api.dependencies import (
    AuthenticatedCallerDependency,
    CallerDependency,
    DatabaseDependency,
    LoggerDependency,
    SettingsDependency,
)
from groupactions.api.groups import membership_for
from groupactions.core.access import (
    can_complete_action,
    can_create_action,
    can_delete_action,
    can_modify_action,
    can_view_group_actions,
    enforce,
)
from groupactions.core.lifecycle import apply_action_update, fill_action_defaults
from groupactions.core.models import (
    ActionCreationContent,
    ActionListResponse,
    ActionResponse,
    ActionTypeListResponse,
    ActionUpdateContent,
    Envelope,
)
from groupactions.service import actions as actions_service
from groupactions.service import groups as groups_service

action_app = APIRouter(tags=["Actions"])


@action_app.get(
    "",
    summary="List open actions",
    description=(
        "Non-deleted actions of the group that are still running or ended "
        "recently, ordered by start time."
    ),
    responses={
        200: {"description": "Open actions."},
        401: {"description": "Not authenticated."},
        403: {"description": "Private group and not a member."},
        404: {"description": "Group not found."},
    },
)
async def list_actions(
    group_id: int,
    caller: AuthenticatedCallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
    settings: SettingsDependency,
) -> ActionListResponse:
    log = log.bind(group_id=group_id, user_id=caller.user_id)

    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    membership = await membership_for(group_id, caller, conn)

    enforce(
        can_view_group_actions(
            group=group.to_core(), caller_id=caller.user_id, membership=membership
        ),
        message="You are not a member of this group",
    )

    actions = await actions_service.get_open_actions(
        group_id=group_id, conn=conn, log=log, months=settings.recent_action_months
    )

    return ActionListResponse(
        token=caller.token, actions=[a.to_core() for a in actions]
    )


@action_app.post(
    "",
    summary="Post an action",
    description=(
        "Create an action. Members with submit_action may always post; other "
        "members only when the group allows member actions and they have "
        "earned enough points. Missing dates default to now and one week "
        "later; missing points default to the action type's points."
    ),
    responses={
        200: {"description": "Created action."},
        400: {"description": "Invalid data or date range."},
        403: {"description": "Not allowed to post in this group."},
        404: {"description": "Group or action type not found."},
    },
)
async def create_action(
    group_id: int,
    content: ActionCreationContent,
    caller: AuthenticatedCallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
    settings: SettingsDependency,
) -> ActionResponse:
    log = log.bind(group_id=group_id, user_id=caller.user_id)

    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    action_type = await actions_service.read_action_type(
        action_type_id=content.action_type_id, conn=conn
    )
    membership = await membership_for(group_id, caller, conn)

    points = await actions_service.points_for_user(
        group_id=group_id, user_id=caller.user_id, conn=conn
    )

    enforce(
        can_create_action(
            setting=group.setting.to_core() if group.setting else None,
            membership=membership,
            points=points,
        ),
        message="You don't have permission to post actions in this group",
    )

    draft = fill_action_defaults(
        group_id=group_id,
        created_by_user_id=caller.user_id,
        action_type_id=action_type.action_type_id,
        default_points=action_type.default_points,
        title=content.title,
        subtitle=content.subtitle,
        description=content.description,
        thanks_msg=content.thanks_msg,
        points=content.points,
        start_at=content.start_at,
        end_at=content.end_at,
        duration=settings.default_action_duration,
    )

    action = await actions_service.create(draft=draft, conn=conn, log=log)

    return ActionResponse(token=caller.token, action=action.to_core())


@action_app.get(
    "/types",
    summary="List action types",
    responses={200: {"description": "All action types."}},
)
async def list_action_types(
    group_id: int,
    caller: CallerDependency,
    conn: DatabaseDependency,
) -> ActionTypeListResponse:
    action_types = await actions_service.get_action_types(conn=conn)

    return ActionTypeListResponse(
        token=caller.token if caller else None,
        action_types=[t.to_core() for t in action_types],
    )


@action_app.get(
    "/{action_id}",
    summary="Get an action",
    responses={
        200: {"description": "The action."},
        401: {"description": "Private group and no authentication."},
        403: {"description": "Private group and not a member."},
        404: {"description": "Group or action not found."},
    },
)
async def get_action(
    group_id: int,
    action_id: int,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ActionResponse:
    log = log.bind(group_id=group_id, action_id=action_id)

    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    membership = await membership_for(group_id, caller, conn)

    enforce(
        can_view_group_actions(
            group=group.to_core(),
            caller_id=caller.user_id if caller else None,
            membership=membership,
        ),
        message="You are not a member of this group",
    )

    action = await actions_service.read_by_id(
        action_id=action_id, group_id=group_id, conn=conn, log=log
    )

    return ActionResponse(
        token=caller.token if caller else None, action=action.to_core()
    )


@action_app.put(
    "/{action_id}",
    summary="Update an action",
    description="Allowed for the action's creator and members with mod_actions.",
    responses={
        200: {"description": "Updated action."},
        400: {"description": "Invalid date range."},
        403: {"description": "Not allowed to modify this action."},
        404: {"description": "Group or action not found."},
    },
)
async def update_action(
    group_id: int,
    action_id: int,
    content: ActionUpdateContent,
    caller: AuthenticatedCallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ActionResponse:
    log = log.bind(group_id=group_id, action_id=action_id, user_id=caller.user_id)

    await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    action = await actions_service.read_by_id(
        action_id=action_id, group_id=group_id, conn=conn, log=log
    )
    membership = await membership_for(group_id, caller, conn)

    enforce(
        can_modify_action(
            action=action.to_core(), caller_id=caller.user_id, membership=membership
        ),
        message="You don't have permission to modify this action",
    )

    changes = apply_action_update(
        action=action.to_core(), changes=content.model_dump(exclude_unset=True)
    )
    action = await actions_service.update(
        action=action, changes=changes, conn=conn, log=log
    )

    return ActionResponse(token=caller.token, action=action.to_core())


@action_app.delete(
    "/{action_id}",
    summary="Delete an action",
    description=(
        "Soft-delete an action. Allowed for the action's creator and members "
        "with mod_actions."
    ),
    responses={
        200: {"description": "The deleted action."},
        403: {"description": "Not allowed to delete this action."},
        404: {"description": "Group or action not found."},
    },
)
async def delete_action(
    group_id: int,
    action_id: int,
    caller: AuthenticatedCallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ActionResponse:
    log = log.bind(group_id=group_id, action_id=action_id, user_id=caller.user_id)

    await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    action = await actions_service.read_by_id(
        action_id=action_id, group_id=group_id, conn=conn, log=log
    )
    membership = await membership_for(group_id, caller, conn)

    enforce(
        can_delete_action(
            action=action.to_core(), caller_id=caller.user_id, membership=membership
        ),
        message="You don't have permission to delete this action",
    )

    action = await actions_service.delete(action=action, conn=conn, log=log)

    return ActionResponse(token=caller.token, action=action.to_core())


@action_app.post(
    "/{action_id}/complete",
    summary="Complete an action",
    description="Record that the caller completed the action. Members only.",
    responses={
        200: {"description": "Completion recorded."},
        403: {"description": "Not a member of this group."},
        404: {"description": "Group or action not found."},
        409: {"description": "Already completed."},
    },
)
async def complete_action(
    group_id: int,
    action_id: int,
    caller: AuthenticatedCallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> Envelope:
    log = log.bind(group_id=group_id, action_id=action_id, user_id=caller.user_id)

    await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    action = await actions_service.read_by_id(
        action_id=action_id, group_id=group_id, conn=conn, log=log
    )
    membership = await membership_for(group_id, caller, conn)

    enforce(can_complete_action(membership), message="You are not a member of this group")

    await actions_service.complete(
        action=action, user_id=caller.user_id, conn=conn, log=log
    )

    return Envelope(token=caller.token)

"""
Service layer for group actions, action types and completions.
"""

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupactions.core.action import ActionDraft
from groupactions.core.errors import Conflict, NotFound
from groupactions.core.lifecycle import open_since
from groupactions.database.action import Action, ActionType, ActionUser

from . import user as user_service


class ActionNotFound(NotFound):
    """Action not found."""


class ActionTypeNotFound(NotFound):
    """Action type not found."""


class ActionTypeExistsError(Conflict):
    """An action type with this name already exists."""


class AlreadyCompleted(Conflict):
    """You have already completed this action."""


async def create_action_type(
    name: str,
    default_points: int,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ActionType:
    log = log.bind(name=name, default_points=default_points)

    existing = (
        await conn.execute(select(ActionType).where(ActionType.name == name))
    ).scalar_one_or_none()

    if existing is not None:
        await log.ainfo("action_type.exists")
        raise ActionTypeExistsError(f"Action type {name} already exists")

    action_type = ActionType(name=name, default_points=default_points)
    conn.add(action_type)
    await conn.flush()

    await log.ainfo("action_type.created", action_type_id=action_type.action_type_id)
    return action_type


async def read_action_type(action_type_id: int, conn: AsyncSession) -> ActionType:
    res = await conn.get(ActionType, action_type_id)

    if res is None:
        raise ActionTypeNotFound(f"Action type with ID {action_type_id} not found")

    return res


async def get_action_types(conn: AsyncSession) -> list[ActionType]:
    result = await conn.execute(select(ActionType).order_by(ActionType.action_type_id))
    return result.scalars().all()


async def get_open_actions(
    group_id: int,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    months: int = 2,
    now: datetime | None = None,
) -> list[Action]:
    """
    The group's actions that are not deleted and either still running or
    ended within the last `months` months.
    """
    since = open_since(now or datetime.now(timezone.utc), months=months)
    log = log.bind(group_id=group_id, since=since)

    result = await conn.execute(
        select(Action)
        .where(
            Action.group_id == group_id,
            Action.deleted_at.is_(None),
            Action.end_at >= since,
        )
        .order_by(Action.start_at, Action.action_id)
    )

    actions = result.unique().scalars().all()
    await log.adebug("action.open_listed", number_of_actions=len(actions))
    return actions


async def read_by_id(
    action_id: int,
    group_id: int,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Action:
    """
    Read a non-deleted action belonging to `group_id`.

    Raises
    ------
    ActionNotFound
        If there is no such action in this group.
    """
    log = log.bind(action_id=action_id, group_id=group_id)
    result = await conn.execute(
        select(Action).where(
            Action.action_id == action_id,
            Action.group_id == group_id,
            Action.deleted_at.is_(None),
        )
    )
    action = result.unique().scalar_one_or_none()

    if action is None:
        await log.ainfo("action.not_found")
        raise ActionNotFound(f"Action with id {action_id} not found in group {group_id}")

    return action


async def create(
    draft: ActionDraft,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Action:
    """
    Persist a fully defaulted action.
    """
    log = log.bind(group_id=draft.group_id, user_id=draft.created_by_user_id)

    action_type = await read_action_type(draft.action_type_id, conn)
    creator = await user_service.read_by_id(draft.created_by_user_id, conn)

    action = Action(
        **draft.model_dump(),
        action_type=action_type,
        creator=creator,
        created_at=datetime.now(timezone.utc),
    )
    conn.add(action)
    await conn.flush()

    await log.ainfo("action.created", action_id=action.action_id, points=action.points)
    return action


async def update(
    action: Action,
    changes: dict,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Action:
    """
    Apply already validated `changes` to an action.
    """
    log = log.bind(action_id=action.action_id, changes=sorted(changes))

    if "action_type_id" in changes:
        action.action_type = await read_action_type(changes["action_type_id"], conn)

    for key, value in changes.items():
        setattr(action, key, value)

    await conn.flush()
    await log.ainfo("action.updated")
    return action


async def delete(
    action: Action, conn: AsyncSession, log: FilteringBoundLogger
) -> Action:
    """
    Soft-delete an action by setting `deleted_at`.
    """
    action.deleted_at = datetime.now(timezone.utc)
    await conn.flush()
    await log.ainfo("action.deleted", action_id=action.action_id)
    return action


async def read_completion(
    action_id: int, user_id: int, conn: AsyncSession
) -> ActionUser | None:
    return await conn.get(ActionUser, (action_id, user_id))


async def complete(
    action: Action,
    user_id: int,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ActionUser:
    """
    Record that `user_id` completed `action`.

    Raises
    ------
    AlreadyCompleted
        If the user has already completed this action.
    """
    log = log.bind(action_id=action.action_id, user_id=user_id)

    if await read_completion(action.action_id, user_id, conn) is not None:
        await log.ainfo("action.complete.duplicate")
        raise AlreadyCompleted

    completion = ActionUser(
        action_id=action.action_id,
        user_id=user_id,
        completed_at=datetime.now(timezone.utc),
    )

    # A concurrent completion can still win the race for the primary key
    try:
        async with conn.begin_nested():
            conn.add(completion)
            await conn.flush()
    except IntegrityError:
        await log.ainfo("action.complete.duplicate")
        raise AlreadyCompleted

    await log.ainfo("action.completed", points=action.points)
    return completion


async def points_for_user(group_id: int, user_id: int, conn: AsyncSession) -> int:
    """
    Points `user_id` has earned by completing actions of `group_id`.
    """
    result = await conn.execute(
        select(func.coalesce(func.sum(Action.points), 0))
        .select_from(ActionUser)
        .join(Action, Action.action_id == ActionUser.action_id)
        .where(ActionUser.user_id == user_id, Action.group_id == group_id)
    )

    return int(result.scalar_one())

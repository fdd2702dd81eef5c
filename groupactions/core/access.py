"""
Access decisions for groups and their actions.

Every decision is a pure function of the caller, the group (or action) and the
caller's membership row, and returns a `Decision`. Use `enforce` to turn a
non-allow decision into the matching exception.
"""

from enum import Enum

from .action import ActionData
from .errors import Forbidden, Unauthenticated
from .group import GroupData, GroupSettingData, MembershipData


class Decision(str, Enum):
    ALLOW = "allow"
    FORBIDDEN = "forbidden"
    UNAUTHENTICATED = "unauthenticated"


def is_member(membership: MembershipData | None) -> bool:
    return membership is not None and membership.active


def can_view_group(
    group: GroupData, caller_id: int | None, membership: MembershipData | None
) -> Decision:
    if not group.private:
        return Decision.ALLOW

    if caller_id is None:
        return Decision.UNAUTHENTICATED

    if is_member(membership) and membership.group_id == group.group_id:
        return Decision.ALLOW

    return Decision.FORBIDDEN


def can_view_group_actions(
    group: GroupData, caller_id: int | None, membership: MembershipData | None
) -> Decision:
    return can_view_group(group=group, caller_id=caller_id, membership=membership)


def can_create_action(
    setting: GroupSettingData | None,
    membership: MembershipData | None,
    points: int,
) -> Decision:
    """
    Submitters may always post. Other members may post once the group allows
    member actions and they have earned at least `member_action_level`
    points on the group's actions.
    """
    if not is_member(membership):
        return Decision.FORBIDDEN

    if membership.submit_action:
        return Decision.ALLOW

    if (
        setting is not None
        and setting.allow_member_action
        and points >= setting.member_action_level
    ):
        return Decision.ALLOW

    return Decision.FORBIDDEN


def can_modify_group_settings(membership: MembershipData | None) -> Decision:
    if is_member(membership) and membership.admin_settings:
        return Decision.ALLOW

    return Decision.FORBIDDEN


def can_manage_members(membership: MembershipData | None) -> Decision:
    if is_member(membership) and membership.admin_members:
        return Decision.ALLOW

    return Decision.FORBIDDEN


def can_modify_action(
    action: ActionData, caller_id: int | None, membership: MembershipData | None
) -> Decision:
    if caller_id is None:
        return Decision.UNAUTHENTICATED

    if action.created_by_user_id == caller_id:
        return Decision.ALLOW

    if (
        is_member(membership)
        and membership.group_id == action.group_id
        and membership.mod_actions
    ):
        return Decision.ALLOW

    return Decision.FORBIDDEN


def can_delete_action(
    action: ActionData, caller_id: int | None, membership: MembershipData | None
) -> Decision:
    return can_modify_action(action=action, caller_id=caller_id, membership=membership)


def can_complete_action(membership: MembershipData | None) -> Decision:
    if is_member(membership):
        return Decision.ALLOW

    return Decision.FORBIDDEN


def enforce(decision: Decision, message: str | None = None) -> None:
    """
    Raise `Unauthenticated` or `Forbidden` unless the decision allows.
    """
    match decision:
        case Decision.ALLOW:
            return
        case Decision.UNAUTHENTICATED:
            raise Unauthenticated(message)
        case _:
            raise Forbidden(message)

"""
Pydantic models for request/responses to APIs.
"""

from datetime import datetime

from pydantic import BaseModel

from .action import ActionData, ActionTypeData
from .group import GroupData, MembershipData


class Envelope(BaseModel):
    success: int = 1
    # Refreshed bearer token for authenticated callers, None for anonymous ones
    token: str | None = None


class ErrorResponse(BaseModel):
    success: int = 0
    kind: str
    message: str


class GroupListResponse(Envelope):
    groups: list[GroupData]


class GroupResponse(Envelope):
    group: GroupData
    message: str | None = None


class MemberListResponse(Envelope):
    members: list[MembershipData]


class MemberResponse(Envelope):
    member: MembershipData


class ActionListResponse(Envelope):
    actions: list[ActionData]


class ActionResponse(Envelope):
    action: ActionData


class ActionTypeListResponse(Envelope):
    action_types: list[ActionTypeData]


class JoinGroupContent(BaseModel):
    group_code: str | None = None


class ModifyMemberContent(BaseModel):
    admin_settings: bool | None = None
    admin_members: bool | None = None
    mod_actions: bool | None = None
    mod_comments: bool | None = None
    submit_action: bool | None = None
    banned: bool | None = None


class ActionCreationContent(BaseModel):
    title: str
    subtitle: str
    description: str
    thanks_msg: str
    action_type_id: int
    points: int | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None


class ActionUpdateContent(BaseModel):
    title: str | None = None
    subtitle: str | None = None
    description: str | None = None
    thanks_msg: str | None = None
    action_type_id: int | None = None
    points: int | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None

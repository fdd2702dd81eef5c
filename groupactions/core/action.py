"""
Core action data models.
"""

from datetime import datetime

from pydantic import BaseModel

from .user import UserSummaryData


class ActionTypeData(BaseModel):
    action_type_id: int
    name: str
    default_points: int


class ActionData(BaseModel):
    action_id: int
    group_id: int
    action_type_id: int
    title: str
    subtitle: str | None = None
    description: str | None = None
    thanks_msg: str | None = None
    points: int
    start_at: datetime
    end_at: datetime
    created_by_user_id: int
    created_at: datetime | None = None
    deleted_at: datetime | None = None
    creator: UserSummaryData | None = None
    action_type: ActionTypeData | None = None


class ActionDraft(BaseModel):
    """
    A fully defaulted action, ready to be persisted.
    """

    group_id: int
    action_type_id: int
    title: str
    subtitle: str | None = None
    description: str | None = None
    thanks_msg: str | None = None
    points: int
    start_at: datetime
    end_at: datetime
    created_by_user_id: int

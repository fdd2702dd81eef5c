"""
Core group data models.
"""

from datetime import datetime

from pydantic import BaseModel

from .user import UserSummaryData


class GroupSettingData(BaseModel):
    allow_member_action: bool = False
    member_action_level: int = 0


class MembershipData(BaseModel):
    group_id: int
    user_id: int
    admin_settings: bool = False
    admin_members: bool = False
    mod_actions: bool = False
    mod_comments: bool = False
    submit_action: bool = False
    banned: bool = False
    joined_at: datetime | None = None
    user: UserSummaryData | None = None

    @property
    def active(self) -> bool:
        """
        Banned users keep their membership row but count as non-members.
        """
        return not self.banned


class GroupData(BaseModel):
    group_id: int
    name: str
    description: str | None = None
    welcome: str | None = None
    group_code: str | None = None
    private: bool = False
    latitude: float | None = None
    longitude: float | None = None
    banner_image_file: str | None = None
    created_at: datetime | None = None
    deleted_at: datetime | None = None
    created_by_user_id: int
    creator: UserSummaryData | None = None
    setting: GroupSettingData | None = None
    tags: list[str] = []

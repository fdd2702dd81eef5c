"""
Group ORM
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, Relationship, SQLModel

from groupactions.core.group import GroupData, GroupSettingData, MembershipData

from .user import User


class GroupUser(SQLModel, table=True):
    """
    A record of a user's membership of a group, with their per-group
    permission flags.
    """

    __tablename__ = "group_user"

    group_id: Optional[int] = Field(
        primary_key=True, foreign_key="group.group_id", ondelete="CASCADE"
    )
    user_id: Optional[int] = Field(
        primary_key=True, foreign_key="user.user_id", ondelete="CASCADE"
    )

    admin_settings: bool = False
    admin_members: bool = False
    mod_actions: bool = False
    mod_comments: bool = False
    submit_action: bool = False
    banned: bool = False

    joined_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)), default=None
    )

    group: "Group" = Relationship(back_populates="memberships")
    user: User = Relationship(sa_relationship_kwargs=dict(lazy="joined"))

    def to_core(self, include_user: bool = True) -> MembershipData:
        return MembershipData(
            group_id=self.group_id,
            user_id=self.user_id,
            admin_settings=self.admin_settings,
            admin_members=self.admin_members,
            mod_actions=self.mod_actions,
            mod_comments=self.mod_comments,
            submit_action=self.submit_action,
            banned=self.banned,
            joined_at=self.joined_at,
            user=self.user.to_summary() if include_user else None,
        )


class GroupSetting(SQLModel, table=True):
    __tablename__ = "group_setting"

    group_id: Optional[int] = Field(
        primary_key=True, foreign_key="group.group_id", ondelete="CASCADE"
    )
    allow_member_action: bool = False
    member_action_level: int = 0

    group: "Group" = Relationship(back_populates="setting")

    def to_core(self) -> GroupSettingData:
        return GroupSettingData(
            allow_member_action=self.allow_member_action,
            member_action_level=self.member_action_level,
        )


class GroupTag(SQLModel, table=True):
    __tablename__ = "group_tag"

    group_tag_id: int | None = Field(default=None, primary_key=True)
    group_id: Optional[int] = Field(foreign_key="group.group_id", ondelete="CASCADE")
    tag: str

    group: "Group" = Relationship(back_populates="tags")


class Group(SQLModel, table=True):
    group_id: int | None = Field(default=None, primary_key=True)

    name: str
    description: str | None = None
    welcome: str | None = None
    # Unique join code, assigned once the group row exists
    group_code: str | None = Field(default=None, unique=True, index=True)
    private: bool = False
    latitude: float | None = None
    longitude: float | None = None
    banner_image_file: str | None = None

    created_by_user_id: int = Field(foreign_key="user.user_id")
    creator: User = Relationship(sa_relationship_kwargs=dict(lazy="joined"))

    created_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)), default=None
    )
    deleted_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)), default=None
    )

    setting: Optional[GroupSetting] = Relationship(
        back_populates="group",
        sa_relationship_kwargs=dict(lazy="joined", uselist=False),
    )
    tags: list[GroupTag] = Relationship(
        back_populates="group",
        sa_relationship_kwargs=dict(lazy="selectin", cascade="all, delete-orphan"),
    )
    memberships: list[GroupUser] = Relationship(
        back_populates="group", sa_relationship_kwargs=dict(lazy="selectin")
    )

    def tag_names(self) -> list[str]:
        return sorted({x.tag for x in self.tags})

    def to_core(self) -> GroupData:
        """
        Convert this Group ORM object to a GroupData core object.
        """
        return GroupData(
            group_id=self.group_id,
            name=self.name,
            description=self.description,
            welcome=self.welcome,
            group_code=self.group_code,
            private=self.private,
            latitude=self.latitude,
            longitude=self.longitude,
            banner_image_file=self.banner_image_file,
            created_at=self.created_at,
            deleted_at=self.deleted_at,
            created_by_user_id=self.created_by_user_id,
            creator=self.creator.to_summary(),
            setting=self.setting.to_core() if self.setting is not None else None,
            tags=self.tag_names(),
        )

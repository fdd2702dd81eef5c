"""
ORM for actions, their types, and completions.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, Relationship, SQLModel

from groupactions.core.action import ActionData, ActionTypeData

from .user import User


class ActionType(SQLModel, table=True):
    __tablename__ = "action_type"

    action_type_id: int | None = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    default_points: int = 0

    def to_core(self) -> ActionTypeData:
        return ActionTypeData(
            action_type_id=self.action_type_id,
            name=self.name,
            default_points=self.default_points,
        )


class Action(SQLModel, table=True):
    action_id: int | None = Field(default=None, primary_key=True)

    group_id: int = Field(foreign_key="group.group_id", index=True)
    action_type_id: int = Field(foreign_key="action_type.action_type_id")
    action_type: ActionType = Relationship(sa_relationship_kwargs=dict(lazy="joined"))

    title: str
    subtitle: str | None = None
    description: str | None = None
    thanks_msg: str | None = None
    points: int = 0

    start_at: datetime = Field(sa_column=Column(DateTime(timezone=True)))
    end_at: datetime = Field(sa_column=Column(DateTime(timezone=True)))

    created_by_user_id: int = Field(foreign_key="user.user_id")
    creator: User = Relationship(sa_relationship_kwargs=dict(lazy="joined"))

    created_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)), default=None
    )
    deleted_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)), default=None
    )

    def to_core(self) -> ActionData:
        return ActionData(
            action_id=self.action_id,
            group_id=self.group_id,
            action_type_id=self.action_type_id,
            title=self.title,
            subtitle=self.subtitle,
            description=self.description,
            thanks_msg=self.thanks_msg,
            points=self.points,
            start_at=self.start_at,
            end_at=self.end_at,
            created_by_user_id=self.created_by_user_id,
            created_at=self.created_at,
            deleted_at=self.deleted_at,
            creator=self.creator.to_summary(),
            action_type=self.action_type.to_core(),
        )


class ActionUser(SQLModel, table=True):
    """
    A user's completion of an action. There is at most one per pair.
    """

    __tablename__ = "action_user"

    action_id: Optional[int] = Field(
        primary_key=True, foreign_key="action.action_id", ondelete="CASCADE"
    )
    user_id: Optional[int] = Field(
        primary_key=True, foreign_key="user.user_id", ondelete="CASCADE"
    )

    completed_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)), default=None
    )

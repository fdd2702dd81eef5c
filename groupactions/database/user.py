"""
ORM for user information.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from groupactions.core.user import UserSummaryData


class User(SQLModel, table=True):
    user_id: int | None = Field(default=None, primary_key=True)

    user_name: str = Field(unique=True)
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    avatar_file: str | None = None

    created_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)), default=None
    )

    def to_summary(self) -> UserSummaryData:
        return UserSummaryData(
            user_id=self.user_id,
            user_name=self.user_name,
            first_name=self.first_name,
            last_name=self.last_name,
            avatar_file=self.avatar_file,
        )

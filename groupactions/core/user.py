"""
A shared user object that is serialized.
"""

from pydantic import BaseModel


class UserSummaryData(BaseModel):
    """
    The public profile fields attached to groups, members and actions.
    """

    user_id: int
    user_name: str
    first_name: str | None = None
    last_name: str | None = None
    avatar_file: str | None = None


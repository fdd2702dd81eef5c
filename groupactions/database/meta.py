"""
Meta functionality for the database.
"""

from .action import Action, ActionType, ActionUser
from .group import Group, GroupSetting, GroupTag, GroupUser
from .user import User

ALL_TABLES = (
    User,
    Group,
    GroupSetting,
    GroupTag,
    GroupUser,
    ActionType,
    Action,
    ActionUser,
)

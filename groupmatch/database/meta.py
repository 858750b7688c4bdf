"""
Meta functionality for the database.
"""

from .group import Group, GroupMembership
from .media import Media
from .user import User

ALL_TABLES = (
    Group,
    GroupMembership,
    Media,
    User,
)

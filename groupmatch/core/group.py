"""
Core group data models.
"""

from datetime import datetime

from pydantic import BaseModel

from groupmatch.core.media import MediaData
from groupmatch.core.uuid import UUID


class GroupData(BaseModel):
    group_id: UUID
    name: str
    # None only for a group whose last member has left.
    owner_id: UUID | None
    members_id: list[UUID]
    created_at: datetime


class GroupPatch(BaseModel):
    """
    Fields of a group that its owner may change.
    """

    name: str | None = None
    owner_id: UUID | None = None


class MatchData(BaseModel):
    count: int
    media: MediaData

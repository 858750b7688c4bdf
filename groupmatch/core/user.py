"""
A shared user object that is serialized.
"""

from pydantic import BaseModel

from groupmatch.core.media import MediaKey
from groupmatch.core.uuid import UUID


class VoteData(BaseModel):
    media_id: MediaKey
    like: bool


class UserData(BaseModel):
    user_id: UUID
    user_name: str
    votes: list[VoteData]

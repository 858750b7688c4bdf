"""
ORM for user information. Votes are embedded in the user record.
"""

from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from groupmatch.core.user import UserData, VoteData
from groupmatch.core.uuid import UUID, uuid7


class User(SQLModel, table=True):
    user_id: UUID = Field(primary_key=True, default_factory=uuid7)

    user_name: str = Field(unique=True)

    # Raw vote records, `{"media_id": {...}, "like": bool}`. Reassign the list
    # rather than mutating it in place so that the change is tracked.
    votes: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )

    def to_core(self) -> UserData:
        return UserData(
            user_id=self.user_id,
            user_name=self.user_name,
            votes=[VoteData.model_validate(vote) for vote in self.votes],
        )

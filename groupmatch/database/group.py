"""
Group ORM
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from groupmatch.core.group import GroupData
from groupmatch.core.uuid import UUID, uuid7


class GroupMembership(SQLModel, table=True):
    """
    A record of a user's group membership. The auto-incrementing
    `membership_id` gives the order in which members joined.
    """

    __table_args__ = (UniqueConstraint("group_id", "user_id"),)

    membership_id: int | None = Field(default=None, primary_key=True)
    group_id: UUID = Field(
        foreign_key="group.group_id", ondelete="CASCADE", index=True
    )
    user_id: UUID = Field(foreign_key="user.user_id", ondelete="CASCADE", index=True)

    group: "Group" = Relationship(back_populates="memberships")


class Group(SQLModel, table=True):
    group_id: UUID = Field(primary_key=True, default_factory=uuid7)

    name: str
    # Null for an ownerless group (its last member left).
    owner_id: UUID | None = Field(
        default=None, foreign_key="user.user_id", ondelete="SET NULL"
    )
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True)))

    memberships: list[GroupMembership] = Relationship(
        back_populates="group",
        sa_relationship_kwargs=dict(
            lazy="selectin",
            order_by="GroupMembership.membership_id",
            cascade="all, delete-orphan",
        ),
    )

    @property
    def members_id(self) -> list[UUID]:
        return [membership.user_id for membership in self.memberships]

    def to_core(self) -> GroupData:
        """
        Convert this Group ORM object to a GroupData core object.
        """
        return GroupData(
            group_id=self.group_id,
            name=self.name,
            owner_id=self.owner_id,
            members_id=self.members_id,
            created_at=self.created_at,
        )

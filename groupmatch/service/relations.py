"""
Read-only relations between groups and users.

The batched variants resolve a relation for a whole list of groups with one
query, instead of one query per group.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupmatch.core.uuid import UUID
from groupmatch.database.group import Group, GroupMembership
from groupmatch.database.user import User

from . import store
from . import user as user_service


async def read_owners(
    groups: list[Group], conn: AsyncSession, log: FilteringBoundLogger
) -> dict[UUID, User | None]:
    """
    Resolve the owner of every group in `groups`, keyed by group ID. Ownerless
    groups map to `None`.
    """
    owner_ids = [group.owner_id for group in groups if group.owner_id is not None]
    owners = {
        user.user_id: user
        for user in await user_service.read_many_by_ids(owner_ids, conn=conn, log=log)
    }
    return {group.group_id: owners.get(group.owner_id) for group in groups}


async def read_owner(
    group: Group, conn: AsyncSession, log: FilteringBoundLogger
) -> User | None:
    return (await read_owners([group], conn=conn, log=log))[group.group_id]


async def read_members_for(
    groups: list[Group], conn: AsyncSession, log: FilteringBoundLogger
) -> dict[UUID, list[User]]:
    """
    Resolve the members of every group in `groups`, keyed by group ID. Each
    list keeps the order in which members joined.
    """
    member_ids = {user_id for group in groups for user_id in group.members_id}
    users = {
        user.user_id: user
        for user in await user_service.read_many_by_ids(
            list(member_ids), conn=conn, log=log
        )
    }
    return {
        group.group_id: [
            users[user_id] for user_id in group.members_id if user_id in users
        ]
        for group in groups
    }


async def read_members(
    group: Group, conn: AsyncSession, log: FilteringBoundLogger
) -> list[User]:
    return (await read_members_for([group], conn=conn, log=log))[group.group_id]


async def read_user_groups(
    user_id: UUID, conn: AsyncSession, log: FilteringBoundLogger
) -> list[Group]:
    """
    All groups that list `user_id` among their members. Membership is only
    recorded on the group side, so this is a filtered scan over memberships.

    Raises
    ------
    user_service.UserNotFound
        If the user does not exist.
    """
    log = log.bind(user_id=user_id)
    await user_service.read_by_id(user_id=user_id, conn=conn, log=log)

    groups = await store.find_many(
        Group,
        Group.group_id.in_(
            select(GroupMembership.group_id).where(GroupMembership.user_id == user_id)
        ),
        conn=conn,
        log=log,
    )
    groups.sort(key=lambda group: group.created_at)

    await log.adebug("group.listed", number_of_groups=len(groups))
    return groups


async def read_user_group_ids(
    user_id: UUID, conn: AsyncSession, log: FilteringBoundLogger
) -> list[UUID]:
    return [
        group.group_id
        for group in await read_user_groups(user_id=user_id, conn=conn, log=log)
    ]

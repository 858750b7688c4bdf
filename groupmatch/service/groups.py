"""
Service layer for groups: the membership state machine.

Every mutation here is expressed as a set of atomic statements against the
membership and group tables rather than by editing a loaded group and writing
it back. That keeps concurrent joins and leaves on the same group from
clobbering each other, and means the owner repair that accompanies a
membership change is applied in the same savepoint as the change itself.

After any successful mutation either the owner is one of the members, or the
group has no members and no owner.
"""

from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupmatch.core.errors import Forbidden, NotFound
from groupmatch.core.group import GroupPatch
from groupmatch.core.uuid import UUID
from groupmatch.database.group import Group, GroupMembership

from . import store
from . import user as user_service

group_table = Group.__table__
membership_table = GroupMembership.__table__


class GroupNotFound(NotFound):
    pass


class NotGroupOwner(Forbidden):
    pass


def _add_member(conn: AsyncSession, group_id: UUID, user_id: UUID):
    return store.set_insert(
        conn,
        membership_table,
        ("group_id", "user_id"),
        group_id=group_id,
        user_id=user_id,
    )


def _remove_member(group_id: UUID, user_id: UUID):
    return store.set_remove(
        membership_table,
        membership_table.c.group_id == group_id,
        membership_table.c.user_id == user_id,
    )


def _owner_is_member(group_id: UUID):
    return (
        select(membership_table.c.membership_id)
        .where(
            membership_table.c.group_id == group_id,
            membership_table.c.user_id == group_table.c.owner_id,
        )
        .correlate(group_table)
        .exists()
    )


def _first_member(group_id: UUID):
    return (
        select(membership_table.c.user_id)
        .where(membership_table.c.group_id == group_id)
        .order_by(membership_table.c.membership_id)
        .limit(1)
        .scalar_subquery()
    )


async def create(
    name: str,
    requester_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Create a new group, owned by the requester, who is also its only member.

    Parameters
    ----------
    name: str
        The name of the new group.
    requester_id: UUID
        The user creating the group.

    Raises
    ------
    user_service.UserNotFound
        If the requester does not exist.
    """
    log = log.bind(group_name=name, user_id=requester_id)

    await user_service.read_by_id(user_id=requester_id, conn=conn, log=log)

    group = Group(
        name=name,
        owner_id=requester_id,
        created_at=datetime.now(tz=timezone.utc),
        memberships=[GroupMembership(user_id=requester_id)],
    )
    group = await store.create_one(group, conn=conn, log=log)

    await log.ainfo("group.created", group_id=group.group_id)

    return group


async def read_by_id(
    group_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Read a group by its ID.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    """
    log = log.bind(group_id=group_id)
    group = await store.find_by_id(Group, group_id, conn=conn, log=log)
    if group is None:
        await log.ainfo("group.not_found")
        raise GroupNotFound(f"Group with id {group_id} not found")
    await log.adebug("group.found")
    return group


async def join_by_id(
    group_id: UUID,
    requester_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Add the requester to a group. Joining a group you are already a member of
    does nothing. If the group has no owner among its members, the joining
    user becomes the owner.

    Raises
    ------
    GroupNotFound
        If the group does not exist, including when it is deleted while the
        join is in flight.
    user_service.UserNotFound
        If the requester does not exist.
    """
    log = log.bind(group_id=group_id, user_id=requester_id)
    group = await read_by_id(group_id, conn, log)
    await user_service.read_by_id(user_id=requester_id, conn=conn, log=log)

    try:
        added, repaired = await store.apply_atomic(
            [
                _add_member(conn, group_id, requester_id),
                store.conditional_set(
                    group_table,
                    group_table.c.group_id == group_id,
                    or_(group_table.c.owner_id.is_(None), ~_owner_is_member(group_id)),
                    owner_id=requester_id,
                ),
            ],
            conn=conn,
            log=log,
        )
    except IntegrityError:
        # The group was deleted after it was read.
        await log.ainfo("group.join.deleted")
        raise GroupNotFound(f"Group with id {group_id} not found")

    if added.rowcount:
        await log.ainfo("group.user_added")
    else:
        await log.ainfo("group.user_already_member")

    if repaired.rowcount:
        await log.ainfo("group.owner_repaired", previous_owner_id=group.owner_id)

    return await store.refresh(group, conn=conn, log=log)


async def leave_by_id(
    group_id: UUID,
    requester_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Remove the requester from a group. Leaving a group you are not a member of
    does nothing. When the owner leaves, ownership passes to the longest
    standing remaining member; if nobody remains the group becomes ownerless.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    """
    log = log.bind(group_id=group_id, user_id=requester_id)
    group = await read_by_id(group_id, conn, log)

    removed, transferred = await store.apply_atomic(
        [
            _remove_member(group_id, requester_id),
            store.conditional_set(
                group_table,
                group_table.c.group_id == group_id,
                group_table.c.owner_id == requester_id,
                owner_id=_first_member(group_id),
            ),
        ],
        conn=conn,
        log=log,
    )

    if removed.rowcount:
        await log.ainfo("group.user_removed")
    else:
        await log.ainfo("group.user_not_member")

    group = await store.refresh(group, conn=conn, log=log)

    if transferred.rowcount:
        await log.ainfo("group.owner_transferred", owner_id=group.owner_id)

    return group


async def update_by_id(
    group_id: UUID,
    requester_id: UUID | None,
    patch: GroupPatch,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Apply owner-supplied changes to a group, then make sure the (possibly new)
    owner is a member.

    Parameters
    ----------
    group_id: UUID
        The group to change.
    requester_id: UUID | None
        The requesting user; must be the current owner.
    patch: GroupPatch
        The fields to change. Unset fields are left alone.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    NotGroupOwner
        If the requester is not the group's owner, including when ownership
        changed while this update was in flight.
    user_service.UserNotFound
        If the patch names an owner that does not exist.
    """
    log = log.bind(group_id=group_id, user_id=requester_id)
    group = await read_by_id(group_id, conn, log)

    if requester_id is None or group.owner_id != requester_id:
        await log.awarn("group.update.not_owner", owner_id=group.owner_id)
        raise NotGroupOwner("You are not the owner of this group")

    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    owner_id = changes.get("owner_id", requester_id)

    if owner_id != requester_id:
        await user_service.read_by_id(user_id=owner_id, conn=conn, log=log)

    statements = [_add_member(conn, group_id, owner_id)]
    if changes:
        statements.insert(
            0,
            store.conditional_set(
                group_table,
                group_table.c.group_id == group_id,
                group_table.c.owner_id == requester_id,
                **changes,
            ),
        )

    try:
        await store.apply_atomic(statements, conn=conn, log=log, guarded=bool(changes))
    except store.GuardFailed:
        await log.awarn("group.update.owner_changed")
        raise NotGroupOwner("You are no longer the owner of this group")

    await log.ainfo("group.updated", changes=list(changes))

    return await store.refresh(group, conn=conn, log=log)


async def delete_group(
    group_id: UUID,
    requester_id: UUID | None,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> None:
    """
    Delete a group and its memberships. Only the owner may do this.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    NotGroupOwner
        If the requester is not the group's owner.
    """
    log = log.bind(group_id=group_id, user_id=requester_id)
    group = await read_by_id(group_id, conn, log)

    if requester_id is None or group.owner_id != requester_id:
        await log.awarn("group.delete.not_owner", owner_id=group.owner_id)
        raise NotGroupOwner("You are not the owner of this group")

    try:
        await store.apply_atomic(
            [
                store.set_remove(
                    group_table,
                    group_table.c.group_id == group_id,
                    group_table.c.owner_id == requester_id,
                ),
                store.set_remove(
                    membership_table, membership_table.c.group_id == group_id
                ),
            ],
            conn=conn,
            log=log,
            guarded=True,
        )
    except store.GuardFailed:
        await log.awarn("group.delete.owner_changed")
        raise NotGroupOwner("You are no longer the owner of this group")

    conn.expunge(group)
    await log.ainfo("group.deleted")

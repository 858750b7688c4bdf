"""
Service layer for users and their embedded votes.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupmatch.core.errors import NotFound
from groupmatch.core.media import MediaKey
from groupmatch.core.uuid import UUID
from groupmatch.database.user import User

from . import media as media_service
from . import store


class UserNotFound(NotFound):
    pass


class UserExistsError(Exception):
    pass


async def create(user_name: str, conn: AsyncSession, log: FilteringBoundLogger) -> User:
    """
    Creates a user, if they do not exist.

    Raises
    ------
    UserExistsError
        If a user with this name already exists.
    """

    user_name = user_name.strip().lower().replace(" ", "_")

    log = log.bind(user_name=user_name)

    try:
        user = await store.create_one(User(user_name=user_name), conn=conn, log=log)
    except IntegrityError:
        await log.ainfo("user.create.exists")
        raise UserExistsError(f"User with user name {user_name} already exists")

    await log.ainfo("user.created", user_id=user.user_id)

    return user


async def read_by_id(
    user_id: UUID, conn: AsyncSession, log: FilteringBoundLogger
) -> User:
    user = await store.find_by_id(User, user_id, conn=conn, log=log)

    if user is None:
        await log.ainfo("user.not_found", user_id=user_id)
        raise UserNotFound(f"User with ID {user_id} not found in the database")

    return user


async def read_many_by_ids(
    user_ids: list[UUID], conn: AsyncSession, log: FilteringBoundLogger
) -> list[User]:
    """
    Read all users in `user_ids` with a single query. Unknown IDs are skipped;
    the order of the result is not guaranteed.
    """
    if not user_ids:
        return []

    users = await store.find_many(
        User, User.user_id.in_(list(dict.fromkeys(user_ids))), conn=conn, log=log
    )
    await log.adebug(
        "user.read_many", requested=len(user_ids), number_of_users=len(users)
    )
    return users


async def cast_vote(
    user_id: UUID,
    media_key: MediaKey,
    like: bool,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> User:
    """
    Append a vote to the user's vote list. Every call adds a record; earlier
    votes on the same media are kept.

    Raises
    ------
    UserNotFound
        If the user does not exist.
    media_service.MediaNotFound
        If no media record exists for `media_key`.
    """
    log = log.bind(user_id=user_id, media_key=media_key.model_dump(), like=like)

    user = await read_by_id(user_id=user_id, conn=conn, log=log)
    media = await media_service.read_by_key(key=media_key, conn=conn, log=log)

    user.votes = [*user.votes, {"media_id": media.key.model_dump(), "like": like}]

    async with store.storage_errors(log):
        await conn.flush()

    await log.ainfo("user.voted", number_of_votes=len(user.votes))

    return user

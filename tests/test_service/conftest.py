"""
Configuration variables and fixtures for the service layer tests.
"""

import pytest_asyncio
import structlog

from groupmatch.config.settings import Settings
from groupmatch.core.media import MediaKey
from groupmatch.core.uuid import uuid7
from groupmatch.service import groups as groups_service
from groupmatch.service import media as media_service
from groupmatch.service import user as user_service


@pytest_asyncio.fixture(scope="session")
def session_manager(server_settings: Settings, database):
    yield server_settings.async_manager()


@pytest_asyncio.fixture(scope="session")
def logger():
    yield structlog.get_logger()


@pytest_asyncio.fixture(scope="session")
def make_user(session_manager, logger):
    """
    Create a user with a unique name and return their ID.
    """

    async def make(user_name: str = "user"):
        async with session_manager.session() as conn:
            async with conn.begin():
                user = await user_service.create(
                    user_name=f"{user_name}_{uuid7().hex}", conn=conn, log=logger
                )
                return user.user_id

    yield make


@pytest_asyncio.fixture(scope="session")
def make_media(session_manager, logger):
    """
    Create a media record with a unique key and return the key.
    """

    async def make(title: str = "A film"):
        key = MediaKey(media_type="movie", external_id=uuid7().hex)
        async with session_manager.session() as conn:
            async with conn.begin():
                await media_service.create(key=key, title=title, conn=conn, log=logger)
        return key

    yield make


@pytest_asyncio.fixture(scope="session")
def vote(session_manager, logger):
    async def cast(user_id, media_key: MediaKey, like: bool = True):
        async with session_manager.session() as conn:
            async with conn.begin():
                await user_service.cast_vote(
                    user_id=user_id,
                    media_key=media_key,
                    like=like,
                    conn=conn,
                    log=logger,
                )

    yield cast


@pytest_asyncio.fixture(scope="session")
def make_group(session_manager, logger):
    """
    Create a group owned by `owner_id`, join each of `members` in order, and
    return the group ID.
    """

    async def make(owner_id, *members, name: str = "movie night"):
        async with session_manager.session() as conn:
            async with conn.begin():
                group = await groups_service.create(
                    name=name, requester_id=owner_id, conn=conn, log=logger
                )
                for member in members:
                    await groups_service.join_by_id(
                        group_id=group.group_id,
                        requester_id=member,
                        conn=conn,
                        log=logger,
                    )
                return group.group_id

    yield make

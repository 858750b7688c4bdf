"""
Service layer for media records.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupmatch.core.errors import NotFound
from groupmatch.core.media import MediaKey
from groupmatch.database.media import Media

from . import store


class MediaNotFound(NotFound):
    pass


class MediaExistsError(Exception):
    pass


async def create(
    key: MediaKey,
    title: str | None,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Media:
    """
    Create a media record.

    Raises
    ------
    MediaExistsError
        If a record with the same key already exists.
    """
    log = log.bind(media_type=key.media_type, external_id=key.external_id)

    try:
        media = await store.create_one(
            Media(media_type=key.media_type, external_id=key.external_id, title=title),
            conn=conn,
            log=log,
        )
    except IntegrityError:
        await log.ainfo("media.exists")
        raise MediaExistsError(
            f"Media {key.media_type}/{key.external_id} already exists"
        )

    await log.ainfo("media.created", media_id=media.media_id)

    return media


async def read_by_key(
    key: MediaKey, conn: AsyncSession, log: FilteringBoundLogger
) -> Media:
    """
    Read a media record by its key.

    Raises
    ------
    MediaNotFound
        If the media does not exist.
    """
    log = log.bind(media_type=key.media_type, external_id=key.external_id)

    found = await store.find_many(
        Media,
        Media.media_type == key.media_type,
        Media.external_id == key.external_id,
        conn=conn,
        log=log,
    )

    if not found:
        await log.ainfo("media.not_found")
        raise MediaNotFound(f"Media {key.media_type}/{key.external_id} not found")

    return found[0]

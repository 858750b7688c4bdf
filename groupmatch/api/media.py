"""
Media records.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel

from groupmatch.core.media import MediaData, MediaKey
from groupmatch.service import media as media_service

from .dependencies import ContextDependency

media_app = APIRouter(tags=["Media"])


class MediaCreationRequest(BaseModel):
    media_type: str
    external_id: str
    title: str | None = None


@media_app.put(
    "",
    summary="Create a media record",
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Media created."},
        409: {"description": "Media with this key already exists."},
    },
)
async def create_media(
    content: MediaCreationRequest, context: ContextDependency
) -> MediaData:
    media = await media_service.create(
        key=MediaKey(media_type=content.media_type, external_id=content.external_id),
        title=content.title,
        conn=context.conn,
        log=context.log,
    )
    return media.to_core()


@media_app.get(
    "/{media_type}/{external_id}",
    summary="Get a media record by key",
    responses={404: {"description": "Media not found."}},
)
async def get_media(
    media_type: str, external_id: str, context: ContextDependency
) -> MediaData:
    media = await media_service.read_by_key(
        key=MediaKey(media_type=media_type, external_id=external_id),
        conn=context.conn,
        log=context.log,
    )
    return media.to_core()

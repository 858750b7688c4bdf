"""
Media ORM. Media records are addressed by their (media_type, external_id) key.
"""

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from groupmatch.core.media import MediaData, MediaKey
from groupmatch.core.uuid import UUID, uuid7


class Media(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("media_type", "external_id"),)

    media_id: UUID = Field(primary_key=True, default_factory=uuid7)

    media_type: str
    external_id: str
    title: str | None = None

    @property
    def key(self) -> MediaKey:
        return MediaKey(media_type=self.media_type, external_id=self.external_id)

    def to_core(self) -> MediaData:
        return MediaData(
            media_id=self.media_id,
            media_type=self.media_type,
            external_id=self.external_id,
            title=self.title,
        )

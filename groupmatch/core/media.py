"""
Core media models and the canonical media key codec.

Votes carry a `MediaKey`, and the match tally uses its canonical string form as
a dictionary key. The same codec must be used to build and to decode those
keys, otherwise equal keys serialized in a different field order land in
different buckets.
"""

import json
from typing import Any

from pydantic import BaseModel

from groupmatch.core.uuid import UUID


class MediaKey(BaseModel):
    media_type: str
    external_id: str


class MediaData(BaseModel):
    media_id: UUID
    media_type: str
    external_id: str
    title: str | None


def encode_media_key(key: MediaKey | dict[str, Any]) -> str:
    """
    Serialize a media key into its canonical form: keys sorted, compact
    separators, so that structurally equal keys always produce the same string.
    """
    if isinstance(key, MediaKey):
        key = key.model_dump()

    return json.dumps(key, sort_keys=True, separators=(",", ":"))


def decode_media_key(encoded: str) -> MediaKey:
    """
    Inverse of `encode_media_key`.
    """
    return MediaKey.model_validate(json.loads(encoded))

"""
UUID creation. Required because uuid7 was not part of the python standard as of 3.12
"""

from uuid import UUID as UUID

from uuid_extensions import uuid7 as uuid7

__ALL__ = ["UUID", "uuid7", "parse_uuid"]


def parse_uuid(value: str | UUID) -> UUID:
    """
    Accept either a UUID or its string/hex form (as stored in token claims).
    """
    if isinstance(value, UUID):
        return value

    return UUID(value)

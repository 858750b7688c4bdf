"""
One-stop functionality for decoding access tokens into a requester ID.
"""

from cachetools import TTLCache, cached

from groupmatch.core.tokens import KeyDecodeError, reconstruct_payload
from groupmatch.core.uuid import UUID, parse_uuid


@cached(cache=TTLCache(maxsize=256, ttl=60))
def decode_access_token(access_token: str, secret: str, algorithm: str) -> UUID:
    """
    Raises
    ------
    KeyDecodeError
        When there is a problem decoding the key, or it carries no user ID
    KeyExpiredError
        When the key has expired
    """

    payload = reconstruct_payload(
        webtoken=access_token, secret=secret, algorithm=algorithm
    )

    try:
        return parse_uuid(payload["user_id"])
    except (KeyError, ValueError, TypeError):
        raise KeyDecodeError("Access token does not identify a user")

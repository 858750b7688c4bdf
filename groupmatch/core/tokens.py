"""
Tools for encoding, building, and decoding the access tokens that identify the
requesting user.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from groupmatch.core.errors import Unauthenticated
from groupmatch.core.uuid import UUID, uuid7


class KeyDecodeError(Unauthenticated):
    pass


class KeyExpiredError(Unauthenticated):
    pass


def filter_payload_item_for_serialization(p) -> Any:
    match p:
        case UUID():
            return p.hex
        case set():
            return list(p)
        case _:
            return p


def build_access_token_payload(user_id: UUID, validity: timedelta) -> dict[str, Any]:
    """
    Builds the payload for an access token carrying the requester's ID.
    """

    current_time = datetime.now(timezone.utc)

    return {
        "exp": current_time + validity,
        "nbf": current_time,
        "iat": current_time,
        "uuid": uuid7(),
        "user_id": user_id,
    }


def sign_payload(payload: dict[str, Any], secret: str, algorithm: str) -> str:
    """
    Sign a JWT payload with the shared secret.

    Parameters
    ----------
    payload
        The payload for the JWT to sign.
    secret
        The shared signing secret.
    algorithm
        A symmetric pyjwt algorithm name (e.g. HS256).
    """

    return jwt.encode(
        payload={
            x: filter_payload_item_for_serialization(p) for x, p in payload.items()
        },
        key=secret,
        algorithm=algorithm,
    )


def reconstruct_payload(
    webtoken: str | bytes, secret: str, algorithm: str
) -> dict[str, Any]:
    """
    Reconstruct and verify a JWT payload.

    Raises
    ------
    KeyExpiredError
        When the token has expired.
    KeyDecodeError
        When the token cannot be verified or decoded.
    """

    try:
        payload = jwt.decode(
            jwt=webtoken,
            key=secret,
            algorithms=[algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise KeyExpiredError("Content of the payload has expired")
    except jwt.InvalidTokenError:
        raise KeyDecodeError("Unable to deserialize content")

    return payload

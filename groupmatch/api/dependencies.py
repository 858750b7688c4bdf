"""
Dependencies used by the API.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger
from structlog.typing import FilteringBoundLogger

from groupmatch.config.settings import Settings
from groupmatch.core.auth import decode_access_token
from groupmatch.core.errors import Unauthenticated
from groupmatch.core.tokens import KeyDecodeError
from groupmatch.core.uuid import UUID
from groupmatch.service.registry import Registry, RequestContext


@lru_cache
def SETTINGS():
    return Settings()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_async_session(request: Request):
    async with request.app.state.database_manager.session() as session:
        async with session.begin():
            yield session


def logger():
    return get_logger()


def get_registry(request: Request) -> Registry:
    return request.app.state.registry


def get_requester_id(request: Request) -> UUID | None:
    """
    Decode the bearer token, if any, into the requesting user's ID.

    Raises
    ------
    KeyDecodeError
        If the Authorization header is malformed or the token is invalid.
    KeyExpiredError
        If the token has expired.
    """
    if "Authorization" not in request.headers:
        return None

    contents = request.headers["Authorization"].split(" ")

    if len(contents) != 2 or contents[0] != "Bearer":
        raise KeyDecodeError("Expected a Bearer token")

    settings: Settings = request.app.state.settings

    return decode_access_token(
        access_token=contents[1],
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def get_authenticated_requester_id(
    requester_id: Annotated[UUID | None, Depends(get_requester_id)],
) -> UUID:
    if requester_id is None:
        raise Unauthenticated("You should provide a token")
    return requester_id


SettingsDependency = Annotated[Settings, Depends(get_settings)]
DatabaseDependency = Annotated[AsyncSession, Depends(get_async_session)]
LoggerDependency = Annotated[FilteringBoundLogger, Depends(logger)]
RegistryDependency = Annotated[Registry, Depends(get_registry)]
RequesterDependency = Annotated[UUID, Depends(get_authenticated_requester_id)]


def get_request_context(
    conn: DatabaseDependency,
    log: LoggerDependency,
    requester_id: RequesterDependency,
) -> RequestContext:
    return RequestContext(
        conn=conn, log=log.bind(requester_id=requester_id), requester_id=requester_id
    )


ContextDependency = Annotated[RequestContext, Depends(get_request_context)]

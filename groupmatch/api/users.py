"""
User creation, votes, and the user side of group membership.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel

from groupmatch.core.group import GroupData
from groupmatch.core.media import MediaKey
from groupmatch.core.tokens import build_access_token_payload, sign_payload
from groupmatch.core.user import UserData
from groupmatch.core.uuid import UUID
from groupmatch.service import user as user_service

from .dependencies import (
    ContextDependency,
    DatabaseDependency,
    LoggerDependency,
    RegistryDependency,
    SettingsDependency,
)

user_app = APIRouter(tags=["Users"])


class UserCreationRequest(BaseModel):
    user_name: str


class UserCreationResponse(BaseModel):
    user: UserData
    access_token: str


class VoteRequest(BaseModel):
    media_id: MediaKey
    like: bool


@user_app.put(
    "",
    summary="Create a new user",
    description=(
        "Create a user and return an access token for them. This endpoint "
        "does not require authentication."
    ),
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "User created."},
        409: {"description": "A user with this name already exists."},
    },
)
async def create_user(
    content: UserCreationRequest,
    settings: SettingsDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> UserCreationResponse:
    user = await user_service.create(user_name=content.user_name, conn=conn, log=log)

    access_token = sign_payload(
        payload=build_access_token_payload(
            user_id=user.user_id, validity=settings.access_token_expiry
        ),
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )

    return UserCreationResponse(user=user.to_core(), access_token=access_token)


@user_app.post(
    "/votes",
    summary="Vote on a media item",
    description="Record a like or dislike by the requesting user.",
    responses={
        200: {"description": "The user with their votes."},
        404: {"description": "Media not found."},
    },
)
async def cast_vote(content: VoteRequest, context: ContextDependency) -> UserData:
    user = await user_service.cast_vote(
        user_id=context.requester_id,
        media_key=content.media_id,
        like=content.like,
        conn=context.conn,
        log=context.log,
    )
    return user.to_core()


@user_app.get("/{user_id}/groups", summary="Groups a user is a member of")
async def get_user_groups(
    user_id: UUID, context: ContextDependency, registry: RegistryDependency
) -> list[GroupData]:
    return await registry.query("user.groups")(context, user_id=user_id)


@user_app.get("/{user_id}/groups_id", summary="IDs of groups a user is a member of")
async def get_user_group_ids(
    user_id: UUID, context: ContextDependency, registry: RegistryDependency
) -> list[UUID]:
    return await registry.query("user.groupsId")(context, user_id=user_id)

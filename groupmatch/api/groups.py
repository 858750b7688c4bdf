"""
Group management, membership and matches.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel

from groupmatch.core.group import GroupData, GroupPatch, MatchData
from groupmatch.core.user import UserData
from groupmatch.core.uuid import UUID

from .dependencies import ContextDependency, RegistryDependency

group_app = APIRouter(tags=["Groups"])


class GroupCreationRequest(BaseModel):
    """
    Request model for creating a new group. Owner and members are accepted
    for compatibility but ignored: the creator always becomes the owner and
    only member.
    """

    name: str
    owner_id: UUID | None = None
    members_id: list[UUID] = []


@group_app.put(
    "",
    summary="Create a new group",
    description=(
        "Create a new group with the given name. The creator becomes its owner "
        "and only member."
    ),
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Group created successfully."},
        401: {"description": "No valid access token."},
    },
)
async def create_group(
    content: GroupCreationRequest,
    context: ContextDependency,
    registry: RegistryDependency,
) -> GroupData:
    return await registry.mutation("group.createOne")(context, **content.model_dump())


@group_app.get(
    "",
    summary="List your groups",
    description="Retrieve the groups the requesting user is a member of.",
)
async def list_groups(
    context: ContextDependency, registry: RegistryDependency
) -> list[GroupData]:
    return await registry.query("user.groups")(context, user_id=context.requester_id)


@group_app.get(
    "/{group_id}",
    summary="Get group by ID",
    responses={
        200: {"description": "Group details."},
        404: {"description": "Group not found."},
    },
)
async def get_group_by_id(
    group_id: UUID, context: ContextDependency, registry: RegistryDependency
) -> GroupData:
    return await registry.query("group.findById")(context, group_id=group_id)


@group_app.post(
    "/{group_id}/join",
    summary="Join a group",
    description=(
        "Add the requesting user to the group. Joining twice has no further "
        "effect. If the group has no owner among its members, the joining user "
        "becomes the owner."
    ),
    responses={
        200: {"description": "Group after joining."},
        404: {"description": "Group not found."},
    },
)
async def join_group(
    group_id: UUID, context: ContextDependency, registry: RegistryDependency
) -> GroupData:
    return await registry.mutation("group.joinById")(context, group_id=group_id)


@group_app.post(
    "/{group_id}/leave",
    summary="Leave a group",
    description=(
        "Remove the requesting user from the group. If they owned it, "
        "ownership passes to the longest standing remaining member."
    ),
    responses={
        200: {"description": "Group after leaving."},
        404: {"description": "Group not found."},
    },
)
async def leave_group(
    group_id: UUID, context: ContextDependency, registry: RegistryDependency
) -> GroupData:
    return await registry.mutation("group.leaveById")(context, group_id=group_id)


@group_app.patch(
    "/{group_id}",
    summary="Update a group",
    description="Rename a group or hand over its ownership. Owner only.",
    responses={
        200: {"description": "Updated group."},
        403: {"description": "Requester is not the owner."},
        404: {"description": "Group or new owner not found."},
    },
)
async def update_group(
    group_id: UUID,
    content: GroupPatch,
    context: ContextDependency,
    registry: RegistryDependency,
) -> GroupData:
    return await registry.mutation("group.updateById")(
        context, group_id=group_id, patch=content
    )


@group_app.delete(
    "/{group_id}",
    summary="Delete a group",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        204: {"description": "Group deleted successfully."},
        403: {"description": "Requester is not the owner."},
        404: {"description": "Group not found."},
    },
)
async def delete_group(
    group_id: UUID, context: ContextDependency, registry: RegistryDependency
) -> None:
    await registry.mutation("group.deleteById")(context, group_id=group_id)


@group_app.get("/{group_id}/owner", summary="Get the owner of a group")
async def get_group_owner(
    group_id: UUID, context: ContextDependency, registry: RegistryDependency
) -> UserData | None:
    return await registry.query("group.owner")(context, group_id=group_id)


@group_app.get("/{group_id}/members", summary="Get the members of a group")
async def get_group_members(
    group_id: UUID, context: ContextDependency, registry: RegistryDependency
) -> list[UserData]:
    return await registry.query("group.members")(context, group_id=group_id)


@group_app.get(
    "/{group_id}/matches",
    summary="Get the matches of a group",
    description=(
        "Media items liked by more than one member of the group, with the "
        "number of likes each received."
    ),
)
async def get_group_matches(
    group_id: UUID, context: ContextDependency, registry: RegistryDependency
) -> list[MatchData]:
    return await registry.query("group.matches")(context, group_id=group_id)

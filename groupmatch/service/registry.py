"""
The operation registry.

Each query and mutation the service exposes is an `Operation`: a resolver
plus ordered `before` hooks (which may rewrite or reject the arguments) and
`after` hooks (which may transform the result). Hooks are attached when the
registry is built, by composing operations, and the registry itself is
immutable once `build_registry` returns. The API builds one registry at
startup and hands it to every request.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Iterable, Mapping

from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupmatch.core.errors import Unauthenticated
from groupmatch.core.group import GroupPatch
from groupmatch.core.uuid import UUID

from . import groups as groups_service
from . import matches as matches_service
from . import relations as relations_service


@dataclass(frozen=True)
class RequestContext:
    conn: AsyncSession
    log: FilteringBoundLogger
    requester_id: UUID | None = None


BeforeHook = Callable[[RequestContext, dict[str, Any]], dict[str, Any]]
AfterHook = Callable[[RequestContext, Any], Any]
Resolver = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class Operation:
    name: str
    resolve: Resolver
    before: tuple[BeforeHook, ...] = ()
    after: tuple[AfterHook, ...] = ()

    def compose(
        self,
        before: Iterable[BeforeHook] = (),
        after: Iterable[AfterHook] = (),
    ) -> "Operation":
        """
        A copy of this operation with extra hooks appended to each slot.
        """
        return replace(
            self,
            before=self.before + tuple(before),
            after=self.after + tuple(after),
        )

    async def __call__(self, context: RequestContext, **arguments: Any) -> Any:
        for hook in self.before:
            arguments = hook(context, arguments)

        result = await self.resolve(context, **arguments)

        for hook in self.after:
            result = hook(context, result)

        return result


class UnknownOperation(KeyError):
    pass


@dataclass(frozen=True)
class Registry:
    queries: Mapping[str, Operation] = field(default_factory=dict)
    mutations: Mapping[str, Operation] = field(default_factory=dict)

    def query(self, name: str) -> Operation:
        try:
            return self.queries[name]
        except KeyError:
            raise UnknownOperation(f"No query named {name}")

    def mutation(self, name: str) -> Operation:
        try:
            return self.mutations[name]
        except KeyError:
            raise UnknownOperation(f"No mutation named {name}")


def require_requester(context: RequestContext, arguments: dict[str, Any]):
    if context.requester_id is None:
        raise Unauthenticated("This operation requires an authenticated user")
    return arguments


def strip_fields(*names: str) -> BeforeHook:
    """
    A hook that silently drops caller-supplied arguments named `names`.
    """

    def hook(context: RequestContext, arguments: dict[str, Any]):
        return {k: v for k, v in arguments.items() if k not in names}

    return hook


def to_core(context: RequestContext, result: Any) -> Any:
    """
    Convert ORM objects (or lists of them) to their serializable core models.
    """
    match result:
        case list():
            return [to_core(context, item) for item in result]
        case _ if hasattr(result, "to_core"):
            return result.to_core()
        case _:
            return result


# Resolvers adapt the request context onto the service layer signatures.


async def _group_create_one(context: RequestContext, name: str):
    return await groups_service.create(
        name=name,
        requester_id=context.requester_id,
        conn=context.conn,
        log=context.log,
    )


async def _group_join_by_id(context: RequestContext, group_id: UUID):
    return await groups_service.join_by_id(
        group_id=group_id,
        requester_id=context.requester_id,
        conn=context.conn,
        log=context.log,
    )


async def _group_leave_by_id(context: RequestContext, group_id: UUID):
    return await groups_service.leave_by_id(
        group_id=group_id,
        requester_id=context.requester_id,
        conn=context.conn,
        log=context.log,
    )


async def _group_update_by_id(
    context: RequestContext, group_id: UUID, patch: GroupPatch
):
    return await groups_service.update_by_id(
        group_id=group_id,
        requester_id=context.requester_id,
        patch=patch,
        conn=context.conn,
        log=context.log,
    )


async def _group_delete_by_id(context: RequestContext, group_id: UUID):
    return await groups_service.delete_group(
        group_id=group_id,
        requester_id=context.requester_id,
        conn=context.conn,
        log=context.log,
    )


async def _group_find_by_id(context: RequestContext, group_id: UUID):
    return await groups_service.read_by_id(
        group_id=group_id, conn=context.conn, log=context.log
    )


async def _group_owner(context: RequestContext, group_id: UUID):
    group = await _group_find_by_id(context, group_id=group_id)
    return await relations_service.read_owner(
        group=group, conn=context.conn, log=context.log
    )


async def _group_members(context: RequestContext, group_id: UUID):
    group = await _group_find_by_id(context, group_id=group_id)
    return await relations_service.read_members(
        group=group, conn=context.conn, log=context.log
    )


async def _group_matches(context: RequestContext, group_id: UUID):
    return await matches_service.compute_matches(
        group_id=group_id, conn=context.conn, log=context.log
    )


async def _user_groups(context: RequestContext, user_id: UUID):
    return await relations_service.read_user_groups(
        user_id=user_id, conn=context.conn, log=context.log
    )


async def _user_groups_id(context: RequestContext, user_id: UUID):
    return await relations_service.read_user_group_ids(
        user_id=user_id, conn=context.conn, log=context.log
    )


def build_registry() -> Registry:
    """
    Build the registry of every query and mutation. Call once at startup.
    """
    authenticated = (require_requester,)

    queries = [
        Operation("group.findById", _group_find_by_id),
        Operation("group.owner", _group_owner),
        Operation("group.members", _group_members),
        Operation("group.matches", _group_matches),
        Operation("user.groups", _user_groups),
        Operation("user.groupsId", _user_groups_id),
    ]

    mutations = [
        Operation(
            "group.createOne",
            _group_create_one,
            before=authenticated + (strip_fields("owner_id", "members_id"),),
        ),
        Operation("group.joinById", _group_join_by_id, before=authenticated),
        Operation("group.leaveById", _group_leave_by_id, before=authenticated),
        # Owner checks happen in the service; an anonymous requester is
        # rejected there as not being the owner.
        Operation("group.updateById", _group_update_by_id),
        Operation("group.deleteById", _group_delete_by_id),
    ]

    return Registry(
        queries=MappingProxyType(
            {op.name: op.compose(after=(to_core,)) for op in queries}
        ),
        mutations=MappingProxyType(
            {op.name: op.compose(after=(to_core,)) for op in mutations}
        ),
    )

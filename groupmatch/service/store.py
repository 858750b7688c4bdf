"""
Generic entity store helpers.

Reads go through the ORM. Membership changes are never written back as whole
records: callers build small atomic statements (`set_insert`, `set_remove`,
`conditional_set`) and submit them together with `apply_atomic`, which runs
them inside a single savepoint.
"""

from contextlib import asynccontextmanager
from typing import Any, Sequence, TypeVar

from sqlalchemy import ColumnElement, Delete, Insert, Table, Update, delete, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select
from structlog.typing import FilteringBoundLogger

from groupmatch.core.errors import StorageError

EntityT = TypeVar("EntityT", bound=SQLModel)


class GuardFailed(Exception):
    """
    The guarding statement of an atomic operation matched no rows, so the
    operation was rolled back.
    """


@asynccontextmanager
async def storage_errors(log: FilteringBoundLogger):
    """
    Surface database failures as `StorageError`. Integrity errors pass through
    untouched so that services can turn them into domain errors.
    """
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        await log.aerror("store.failed", error=str(e))
        raise StorageError(f"Storage operation failed: {e}") from e


async def find_by_id(
    table: type[EntityT],
    entity_id: Any,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> EntityT | None:
    async with storage_errors(log):
        return await conn.get(table, entity_id)


async def find_many(
    table: type[EntityT],
    *filters: ColumnElement[bool],
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> list[EntityT]:
    async with storage_errors(log):
        result = await conn.execute(select(table).where(*filters))
        return list(result.scalars().all())


async def create_one(
    entity: EntityT, conn: AsyncSession, log: FilteringBoundLogger
) -> EntityT:
    """
    Persist a new entity (and anything cascaded from it) in its own savepoint,
    so that a failed insert leaves the surrounding transaction usable.

    Raises
    ------
    sqlalchemy.exc.IntegrityError
        If a uniqueness or foreign key constraint is violated.
    StorageError
        On any other database failure.
    """
    async with storage_errors(log):
        async with conn.begin_nested():
            conn.add(entity)
        await conn.refresh(entity)
    return entity


async def refresh(
    entity: EntityT, conn: AsyncSession, log: FilteringBoundLogger
) -> EntityT:
    async with storage_errors(log):
        await conn.refresh(entity)
    return entity


def set_insert(
    conn: AsyncSession, table: Table, conflict_columns: Sequence[str], **values: Any
) -> Insert:
    """
    Insert a row unless one with the same `conflict_columns` already exists.
    """
    match conn.bind.dialect.name:
        case "postgresql":
            statement = postgresql.insert(table)
        case _:
            statement = sqlite.insert(table)

    return statement.values(**values).on_conflict_do_nothing(
        index_elements=list(conflict_columns)
    )


def set_remove(table: Table, *where: ColumnElement[bool]) -> Delete:
    return delete(table).where(*where)


def conditional_set(
    table: Table, *where: ColumnElement[bool], **values: Any
) -> Update:
    return update(table).where(*where).values(**values)


async def apply_atomic(
    statements: Sequence[Insert | Delete | Update],
    conn: AsyncSession,
    log: FilteringBoundLogger,
    guarded: bool = False,
) -> list[Any]:
    """
    Execute `statements` in order inside one savepoint; either all of them
    apply or none do.

    Parameters
    ----------
    statements
        The statements to run.
    guarded
        If set, the first statement must match at least one row. When it does
        not, the savepoint is rolled back and `GuardFailed` raised.

    Returns
    -------
    list
        The cursor results, in statement order.
    """
    results = []

    async with storage_errors(log):
        async with conn.begin_nested():
            for statement in statements:
                result = await conn.execute(statement)
                if guarded and not results and result.rowcount == 0:
                    raise GuardFailed
                results.append(result)

    return results

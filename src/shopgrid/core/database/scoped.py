"""Tenant-scoped data access over the shared connection pool.

Connections are pooled and reused across requests and tenants, so a
tenant is never bound to a connection. Instead every unit of work runs in
its own transaction that starts with a narrowing statement:

    SELECT set_config('search_path', '"t_...", "public"', true)

The third argument makes the setting transaction-local. PostgreSQL reverts
it on commit or rollback, before the connection can go back to the pool, so
the next transaction on that connection starts from the server default.

``PartitionHandle`` is the only way to reach tenant data. It cannot be
built without a target (a partition or the shared schema) and it never
exposes a session outside a narrowed transaction.

Usage:
    handle = get_scoped_access(request_context)
    rows = await handle.all(select(products))

    async with handle.transaction() as session:
        await session.execute(insert(orders).values(...))
        await session.execute(insert(order_items).values(...))
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import structlog
from sqlalchemy import Row, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.expression import Executable

from shopgrid.config import settings
from shopgrid.core.database.partition import is_valid_partition_name
from shopgrid.core.database.session import async_session_factory
from shopgrid.core.errors import TenantUnavailableError
from shopgrid.core.tenancy.context import RequestContext


log = structlog.get_logger()

T = TypeVar("T")

# Narrowing and the existence check are one statement so that a missing
# schema is detected in the same round trip. set_config(..., true) is
# scoped to the current transaction.
_NARROW_STATEMENT = text(
    "SELECT set_config('search_path', :search_path, true) AS search_path, "
    "to_regnamespace(:schema) IS NOT NULL AS present"
)


class PartitionHandle:
    """Data-access handle bound to one partition.

    Every operation opens a transaction on a pooled connection, narrows the
    search path to ``<partition>, <shared schema>`` (or the shared schema
    alone when ``partition`` is None), runs the work, and commits.

    Attributes:
        partition: Target tenant partition, or None for the shared schema
        shared_schema: Schema appended to the search path
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        partition: str | None,
        shared_schema: str = settings.shared_schema,
    ) -> None:
        if partition is not None and not is_valid_partition_name(partition):
            raise ValueError(f"Invalid partition name: {partition!r}")
        if not is_valid_partition_name(shared_schema):
            raise ValueError(f"Invalid shared schema name: {shared_schema!r}")
        self._session_factory = session_factory
        self.partition = partition
        self.shared_schema = shared_schema

    def __repr__(self) -> str:
        return f"<PartitionHandle(partition={self.partition}, shared={self.shared_schema})>"

    @property
    def is_shared(self) -> bool:
        """True when the handle targets only the shared schema."""
        return self.partition is None

    @property
    def target_schema(self) -> str:
        """The schema that must exist for the handle to be usable."""
        return self.partition or self.shared_schema

    @property
    def search_path(self) -> str:
        """The transaction-local search path value."""
        if self.partition is None:
            return f'"{self.shared_schema}"'
        return f'"{self.partition}", "{self.shared_schema}"'

    async def _narrow(self, session: AsyncSession) -> None:
        """Narrow the current transaction to this handle's partition.

        Raises:
            TenantUnavailableError: If the statement fails, the pool cannot
                hand out a connection, or the partition does not exist
        """
        details = {"partition": self.target_schema}
        try:
            result = await session.execute(
                _NARROW_STATEMENT,
                {"search_path": self.search_path, "schema": self.target_schema},
            )
            present = result.one().present
        except (DBAPIError, PoolTimeoutError, OSError) as exc:
            log.warning(
                "partition_narrowing_failed",
                partition=self.target_schema,
                error_type=type(exc).__name__,
            )
            raise TenantUnavailableError(details=details) from exc

        if not present:
            log.warning("partition_missing", partition=self.target_schema)
            raise TenantUnavailableError(details=details)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Open a narrowed transaction and yield its session.

        Commits when the block exits normally and rolls back on any
        exception. The search path reverts either way.

        Raises:
            TenantUnavailableError: If narrowing fails; nothing in the block
                runs in that case
        """
        async with self._session_factory() as session, session.begin():
            await self._narrow(session)
            yield session

    async def run(self, callback: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run a batch of operations in one narrowed transaction."""
        async with self.transaction() as session:
            return await callback(session)

    async def execute(
        self,
        statement: Executable,
        params: dict[str, Any] | list[dict[str, Any]] | None = None,
    ) -> int:
        """Execute a statement that returns no rows.

        Returns:
            The number of rows affected
        """
        async with self.transaction() as session:
            result = await session.execute(statement, params)
            return result.rowcount  # type: ignore[attr-defined]

    async def all(
        self,
        statement: Executable,
        params: dict[str, Any] | None = None,
    ) -> list[Row[Any]]:
        """Execute a statement and return every row."""
        async with self.transaction() as session:
            result = await session.execute(statement, params)
            return list(result.all())

    async def one_or_none(
        self,
        statement: Executable,
        params: dict[str, Any] | None = None,
    ) -> Row[Any] | None:
        """Execute a statement and return at most one row."""
        async with self.transaction() as session:
            result = await session.execute(statement, params)
            return result.one_or_none()

    async def scalars(
        self,
        statement: Executable,
        params: dict[str, Any] | None = None,
    ) -> list[Any]:
        """Execute a statement and return the first column of every row."""
        async with self.transaction() as session:
            result = await session.execute(statement, params)
            return list(result.scalars().all())

    async def scalar(
        self,
        statement: Executable,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute a statement and return the first column of the first row."""
        async with self.transaction() as session:
            result = await session.execute(statement, params)
            return result.scalar()


def get_scoped_access(
    context: RequestContext,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
) -> PartitionHandle:
    """Build the data-access handle for a resolved request context.

    Tenant requests get their partition plus the shared schema;
    infrastructure requests (no tenant) get the shared schema only.
    """
    partition = context.tenant.partition_name if context.tenant is not None else None
    return PartitionHandle(session_factory, partition)


async def with_partition(
    partition_name: str,
    callback: Callable[[AsyncSession], Awaitable[T]],
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
) -> T:
    """Run a batch of operations against one explicit partition.

    For provisioning, migration and worker code that has a partition name
    but no request context.

    Raises:
        TenantUnavailableError: If the partition cannot be narrowed to
    """
    return await PartitionHandle(session_factory, partition_name).run(callback)

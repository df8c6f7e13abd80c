"""Database layer - session management, partition layout and scoped access."""

from shopgrid.core.database.base import Base, TimestampMixin, UUIDMixin
from shopgrid.core.database.partition import (
    PARTITION_TABLES,
    StoreDefaults,
    create_partition,
    drop_partition,
    partition_metadata,
)
from shopgrid.core.database.scoped import (
    PartitionHandle,
    get_scoped_access,
    with_partition,
)
from shopgrid.core.database.session import (
    async_engine,
    async_session_factory,
    get_db,
)


__all__ = [
    "PARTITION_TABLES",
    "Base",
    "PartitionHandle",
    "StoreDefaults",
    "TimestampMixin",
    "UUIDMixin",
    "async_engine",
    "async_session_factory",
    "create_partition",
    "drop_partition",
    "get_db",
    "get_scoped_access",
    "partition_metadata",
    "with_partition",
]

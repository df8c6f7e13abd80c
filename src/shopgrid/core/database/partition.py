"""Tenant partition layout and DDL generation.

Every tenant owns one PostgreSQL schema holding the tables below. The
layout is declared once as SQLAlchemy Core tables on a dedicated
``MetaData`` with no schema; the concrete schema is supplied at execution
time through ``schema_translate_map`` (for DDL) or the transaction-local
search path (for queries, see ``shopgrid.core.database.scoped``).

``PARTITION_TABLES`` is the creation order. ``check_creation_order``
verifies that every foreign key points at a table created earlier, and runs
at import time so a bad edit to the layout fails immediately.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    false,
    func,
    insert,
    text,
    true,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.schema import CreateIndex, CreateSchema, CreateTable, DropSchema

from shopgrid.core.constants import (
    DEFAULT_CURRENCY,
    MAX_AGGREGATE_TYPE_LENGTH,
    MAX_CATEGORY_LENGTH,
    MAX_CURRENCY_LENGTH,
    MAX_EVENT_TYPE_LENGTH,
    MAX_NAME_LENGTH,
    MAX_ORDER_NUMBER_LENGTH,
    MAX_PHONE_LENGTH,
    MAX_SKU_LENGTH,
)


# PostgreSQL truncates identifiers at 63 bytes
_PARTITION_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")

partition_metadata = MetaData()


def _id_column() -> Column[Any]:
    return Column("id", Uuid, primary_key=True, server_default=text("gen_random_uuid()"))


def _created_at() -> Column[Any]:
    return Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now())


def _updated_at() -> Column[Any]:
    return Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now())


products = Table(
    "products",
    partition_metadata,
    _id_column(),
    Column("name", String(MAX_NAME_LENGTH), nullable=False),
    Column("description", Text),
    Column("vendor", String(MAX_NAME_LENGTH)),
    Column("category", String(MAX_CATEGORY_LENGTH)),
    Column("tags", ARRAY(Text)),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    _created_at(),
    _updated_at(),
    Index("idx_products_active", "is_active"),
    Index("idx_products_category", "category"),
    Index("idx_products_tags", "tags", postgresql_using="gin"),
)

product_variants = Table(
    "product_variants",
    partition_metadata,
    _id_column(),
    Column(
        "product_id",
        Uuid,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("sku", String(MAX_SKU_LENGTH), unique=True),
    Column("title", String(MAX_NAME_LENGTH), nullable=False),
    Column("option1", String(MAX_CATEGORY_LENGTH)),
    Column("option2", String(MAX_CATEGORY_LENGTH)),
    Column("option3", String(MAX_CATEGORY_LENGTH)),
    Column("image_url", Text),
    Column("position", Integer, nullable=False, server_default=text("0")),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    _created_at(),
    _updated_at(),
    Index("idx_variants_product_id", "product_id"),
    Index("idx_variants_sku", "sku"),
)

prices = Table(
    "prices",
    partition_metadata,
    _id_column(),
    Column(
        "variant_id",
        Uuid,
        ForeignKey("product_variants.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "currency",
        String(MAX_CURRENCY_LENGTH),
        nullable=False,
        server_default=DEFAULT_CURRENCY,
    ),
    Column("amount", Numeric(10, 2), nullable=False),
    Column("compare_at_amount", Numeric(10, 2)),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    _created_at(),
    _updated_at(),
    Index("idx_prices_variant_id", "variant_id"),
    Index("idx_prices_active", "is_active"),
)

inventory = Table(
    "inventory",
    partition_metadata,
    _id_column(),
    Column(
        "variant_id",
        Uuid,
        ForeignKey("product_variants.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("quantity", Integer, nullable=False, server_default=text("0")),
    Column("reserved", Integer, nullable=False, server_default=text("0")),
    Column("location", String(MAX_NAME_LENGTH)),
    _updated_at(),
    UniqueConstraint("variant_id", "location", name="inventory_variant_location_unique"),
    Index("idx_inventory_variant_id", "variant_id"),
)

customers = Table(
    "customers",
    partition_metadata,
    _id_column(),
    Column("email", String(MAX_NAME_LENGTH)),
    Column("phone", String(MAX_PHONE_LENGTH)),
    Column("full_name", String(MAX_NAME_LENGTH)),
    Column("telegram_id", String(MAX_SKU_LENGTH), unique=True),
    Column("telegram_username", String(MAX_NAME_LENGTH)),
    Column("metadata", JSONB),
    _created_at(),
    _updated_at(),
    Index("idx_customers_email", "email"),
    Index("idx_customers_phone", "phone"),
    Index("idx_customers_telegram", "telegram_id"),
)

orders = Table(
    "orders",
    partition_metadata,
    _id_column(),
    Column("order_number", String(MAX_ORDER_NUMBER_LENGTH), nullable=False, unique=True),
    # Orders outlive their customer
    Column(
        "customer_id",
        Uuid,
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("total", Numeric(10, 2), nullable=False),
    Column("currency", String(MAX_CURRENCY_LENGTH), server_default=DEFAULT_CURRENCY),
    Column("status", String(MAX_ORDER_NUMBER_LENGTH), server_default="pending"),
    Column("delivery_type", String(MAX_ORDER_NUMBER_LENGTH)),
    Column("delivery_details", Text),
    Column("paid", Boolean, nullable=False, server_default=false()),
    Column("paid_at", DateTime(timezone=True)),
    Column("metadata", JSONB),
    _created_at(),
    _updated_at(),
    Index("idx_orders_customer_id", "customer_id"),
    Index("idx_orders_status", "status"),
    Index("idx_orders_paid", "paid"),
)
Index("idx_orders_created_at", orders.c.created_at.desc())

order_items = Table(
    "order_items",
    partition_metadata,
    _id_column(),
    Column(
        "order_id",
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "variant_id",
        Uuid,
        ForeignKey("product_variants.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("product_name", String(MAX_NAME_LENGTH), nullable=False),
    Column("variant_title", String(MAX_NAME_LENGTH)),
    Column("quantity", Integer, nullable=False, server_default=text("1")),
    Column("price", Numeric(10, 2), nullable=False),
    Column("total", Numeric(10, 2), nullable=False),
    _created_at(),
    Index("idx_order_items_order_id", "order_id"),
    Index("idx_order_items_variant_id", "variant_id"),
)

# Append-only; rows are only ever stamped with processed_at
outbox = Table(
    "outbox",
    partition_metadata,
    _id_column(),
    Column("event_type", String(MAX_EVENT_TYPE_LENGTH), nullable=False),
    Column("aggregate_type", String(MAX_AGGREGATE_TYPE_LENGTH), nullable=False),
    Column("aggregate_id", Uuid, nullable=False),
    Column("payload", JSONB, nullable=False),
    _created_at(),
    Column("processed_at", DateTime(timezone=True)),
    Index("idx_outbox_processed", "processed_at"),
    Index("idx_outbox_event_type", "event_type"),
    Index("idx_outbox_aggregate", "aggregate_type", "aggregate_id"),
)

store_settings = Table(
    "store_settings",
    partition_metadata,
    _id_column(),
    Column("title", Text, nullable=False),
    Column("brand_color", Text, nullable=False, server_default="#0ea5e9"),
    Column("logo_path", Text),
    Column("currency", Text, nullable=False, server_default=DEFAULT_CURRENCY),
    _created_at(),
    _updated_at(),
)


PARTITION_TABLES: tuple[Table, ...] = (
    products,
    product_variants,
    prices,
    inventory,
    customers,
    orders,
    order_items,
    outbox,
    store_settings,
)


def dependency_edges(tables: Sequence[Table] = PARTITION_TABLES) -> dict[str, set[str]]:
    """Map each table name to the names of the tables it references."""
    return {
        table.name: {
            fk.column.table.name
            for fk in table.foreign_keys
            if fk.column.table.name != table.name
        }
        for table in tables
    }


def check_creation_order(tables: Sequence[Table] = PARTITION_TABLES) -> None:
    """Verify that every table is created after the tables it references.

    Raises:
        ValueError: If a table name repeats, or a foreign key points at a
            table that is missing or created later
    """
    created: set[str] = set()
    for name, targets in dependency_edges(tables).items():
        if name in created:
            raise ValueError(f"Partition table {name!r} is declared twice")
        missing = targets - created
        if missing:
            raise ValueError(
                f"Partition table {name!r} references {sorted(missing)} "
                "before they are created"
            )
        created.add(name)


check_creation_order(PARTITION_TABLES)


def is_valid_partition_name(name: str) -> bool:
    """Check that a partition name is a plain, unquoted-safe identifier."""
    return _PARTITION_NAME_RE.fullmatch(name) is not None


@dataclass(frozen=True)
class StoreDefaults:
    """Values for the single store_settings row written at provisioning."""

    title: str
    brand_color: str
    currency: str = DEFAULT_CURRENCY
    logo_path: str | None = None


def partition_ddl(partition: str, tables: Sequence[Table] = PARTITION_TABLES) -> list[Any]:
    """Build the ordered DDL for a new partition.

    The schema first, then every table in creation order, then every
    index. Table statements are schema-less; execute them with a
    ``schema_translate_map`` that maps ``None`` to ``partition``.
    """
    statements: list[Any] = [CreateSchema(partition)]
    statements.extend(CreateTable(table) for table in tables)
    for table in tables:
        statements.extend(
            CreateIndex(index) for index in sorted(table.indexes, key=lambda i: i.name or "")
        )
    return statements


async def create_partition(
    conn: AsyncConnection,
    partition: str,
    defaults: StoreDefaults,
) -> None:
    """Create a partition with all tables, indexes and default settings.

    Runs on the caller's connection and transaction. PostgreSQL DDL is
    transactional, so a failure part way leaves nothing behind once the
    caller's transaction rolls back.
    The connection's own execution options are left untouched.

    Raises:
        ValueError: If the partition name is not a safe identifier
    """
    if not is_valid_partition_name(partition):
        raise ValueError(f"Invalid partition name: {partition!r}")

    options = {"schema_translate_map": {None: partition}}
    for statement in partition_ddl(partition):
        await conn.execute(statement, execution_options=options)

    await conn.execute(
        insert(store_settings).values(
            title=defaults.title,
            brand_color=defaults.brand_color,
            logo_path=defaults.logo_path,
            currency=defaults.currency,
        ),
        execution_options=options,
    )


async def drop_partition(conn: AsyncConnection, partition: str) -> None:
    """Drop a partition and everything in it.

    Raises:
        ValueError: If the partition name is not a safe identifier
    """
    if not is_valid_partition_name(partition):
        raise ValueError(f"Invalid partition name: {partition!r}")
    await conn.execute(DropSchema(partition, cascade=True, if_exists=True))

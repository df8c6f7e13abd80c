"""Integration tests for partition provisioning and tenant isolation.

These tests verify that every tenant's data stays in its own partition,
that narrowing never leaks across pooled connections, and that failed
provisioning leaves nothing behind.
"""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, insert, select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from shopgrid.core.database.partition import (
    PARTITION_TABLES,
    customers,
    inventory,
    order_items,
    orders,
    outbox,
    prices,
    product_variants,
    products,
    store_settings,
)
from shopgrid.core.database.scoped import PartitionHandle, with_partition
from shopgrid.core.errors import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    ProvisioningFailedError,
    TenantUnavailableError,
)
from shopgrid.core.tenancy.context import ResolutionSource
from shopgrid.core.tenancy.middleware import resolve_tenant
from shopgrid.modules.storefront.repos import (
    OrderRepository,
    ProductRepository,
    StoreSettingsRepository,
)
from shopgrid.modules.tenants.models import Tenant
from tests.integration.conftest import TEST_DATABASE_URL, build_service


pytestmark = pytest.mark.integration


async def schema_exists(session: AsyncSession, schema: str) -> bool:
    result = await session.execute(
        text("SELECT to_regnamespace(:schema) IS NOT NULL"), {"schema": schema}
    )
    return bool(result.scalar())


async def tenant_count(session: AsyncSession) -> int:
    return (await session.execute(select(func.count()).select_from(Tenant))).scalar_one()


class TestProvisioning:
    """Tests for provisioning against PostgreSQL."""

    async def test_builds_partition_with_defaults(self, tenant_service, db, session_factory):
        provisioned = await tenant_service.provision_tenant("acme", "Acme Shop")

        assert await schema_exists(db, provisioned.partition_name)
        tables = (
            await db.execute(
                text("SELECT table_name FROM information_schema.tables WHERE table_schema = :s"),
                {"s": provisioned.partition_name},
            )
        ).scalars().all()
        assert set(tables) == {t.name for t in PARTITION_TABLES}

        rows = await PartitionHandle(session_factory, provisioned.partition_name).all(
            select(store_settings.c.title, store_settings.c.currency)
        )
        assert [tuple(r) for r in rows] == [("Acme Shop", "USD")]

    async def test_duplicate_slug_conflicts(self, tenant_service, db):
        await tenant_service.provision_tenant("acme")

        with pytest.raises(ConflictError):
            await tenant_service.provision_tenant("ACME")

        assert await tenant_count(db) == 1

    async def test_invalid_slug_leaves_no_row(self, tenant_service, db):
        with pytest.raises(InvalidArgumentError):
            await tenant_service.provision_tenant("not a slug")

        assert await tenant_count(db) == 0

    async def test_concurrent_provisioning_registers_once(self, session_factory, db):
        async def provision():
            async with session_factory() as session:
                return await build_service(session).provision_tenant("acme")

        results = await asyncio.gather(provision(), provision(), return_exceptions=True)

        successes = [r for r in results if not isinstance(r, BaseException)]
        failures = [r for r in results if isinstance(r, BaseException)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], ConflictError)
        assert await tenant_count(db) == 1

    async def test_failed_partition_removes_directory_row(self, tenant_service, db):
        with patch(
            "shopgrid.modules.tenants.services.create_partition",
            new_callable=AsyncMock,
            side_effect=RuntimeError("ddl failed"),
        ):
            with pytest.raises(ProvisioningFailedError):
                await tenant_service.provision_tenant("acme")

        assert await tenant_count(db) == 0
        schemas = (
            await db.execute(text("SELECT count(*) FROM pg_namespace WHERE nspname LIKE 't\\_%'"))
        ).scalar_one()
        assert schemas == 0

    async def test_delete_drops_partition(self, tenant_service, db, provisioned):
        partition = provisioned["acme"].partition_name

        await tenant_service.delete_tenant("acme")

        assert not await schema_exists(db, partition)
        with pytest.raises(NotFoundError):
            await tenant_service.get_tenant("acme")


class TestIsolation:
    """Tests for data isolation between partitions."""

    @pytest.fixture
    async def acme_data(self, session_factory, provisioned) -> PartitionHandle:
        """A product and an order written through the repositories in ``acme``."""
        acme = PartitionHandle(session_factory, provisioned["acme"].partition_name)
        product_id = await ProductRepository(acme).create(
            values={"name": "Anvil"},
            sku="ANV-1",
            amount=Decimal("10.00"),
            currency="USD",
            quantity=5,
        )
        variant_id = await acme.scalar(
            select(product_variants.c.id).where(product_variants.c.product_id == product_id)
        )
        await OrderRepository(acme).create(
            order_values={
                "order_number": "ORD-20250114-3FA9C1",
                "total": Decimal("20.00"),
                "currency": "USD",
                "status": "pending",
            },
            customer={"phone": "+100200300", "full_name": "Ann"},
            items=[
                {
                    "variant_id": variant_id,
                    "product_name": "Anvil",
                    "variant_title": "Default",
                    "quantity": 2,
                    "price": Decimal("10.00"),
                    "total": Decimal("20.00"),
                }
            ],
        )
        return acme

    @pytest.mark.parametrize(
        "table",
        [products, product_variants, prices, inventory, customers, orders, order_items, outbox],
        ids=lambda table: table.name,
    )
    async def test_rows_stay_in_their_partition(
        self, session_factory, provisioned, acme_data, table
    ):
        beta = PartitionHandle(session_factory, provisioned["beta"].partition_name)
        count = select(func.count()).select_from(table)

        assert await acme_data.scalar(count) >= 1
        assert await beta.scalar(count) == 0

    async def test_settings_stay_in_their_partition(self, session_factory, provisioned):
        acme = PartitionHandle(session_factory, provisioned["acme"].partition_name)
        beta = PartitionHandle(session_factory, provisioned["beta"].partition_name)

        await StoreSettingsRepository(acme).upsert({"title": "Acme Outlet"}, {})

        assert await acme.scalars(select(store_settings.c.title)) == ["Acme Outlet"]
        assert await beta.scalars(select(store_settings.c.title)) == ["Beta"]

    async def test_order_lookup_stays_in_its_partition(
        self, session_factory, provisioned, acme_data
    ):
        beta = PartitionHandle(session_factory, provisioned["beta"].partition_name)

        assert await OrderRepository(acme_data).get_by_number("ORD-20250114-3FA9C1") is not None
        assert await OrderRepository(beta).get_by_number("ORD-20250114-3FA9C1") is None

    async def test_search_path_does_not_leak_between_transactions(self, provisioned):
        # One connection, so every transaction reuses it
        single = create_async_engine(TEST_DATABASE_URL, pool_size=1, max_overflow=0)
        factory = async_sessionmaker(bind=single, class_=AsyncSession, expire_on_commit=False)
        try:
            seen = await with_partition(
                provisioned["acme"].partition_name,
                lambda session: session.scalar(text("SHOW search_path")),
                session_factory=factory,
            )
            assert provisioned["acme"].partition_name in seen

            async with factory() as session:
                after = await session.scalar(text("SHOW search_path"))
            assert provisioned["acme"].partition_name not in after

            # A failed unit of work must revert too
            with pytest.raises(RuntimeError):
                async with PartitionHandle(
                    factory, provisioned["beta"].partition_name
                ).transaction():
                    raise RuntimeError("boom")

            async with factory() as session:
                after = await session.scalar(text("SHOW search_path"))
            assert provisioned["beta"].partition_name not in after
        finally:
            await single.dispose()

    async def test_missing_partition_is_unavailable(self, engine, session_factory, provisioned):
        partition = provisioned["acme"].partition_name
        async with engine.begin() as conn:
            await conn.execute(text(f'DROP SCHEMA "{partition}" CASCADE'))

        with pytest.raises(TenantUnavailableError):
            await PartitionHandle(session_factory, partition).all(select(products))

        # Other tenants are unaffected
        beta = PartitionHandle(session_factory, provisioned["beta"].partition_name)
        assert await beta.all(select(products)) == []


class TestResolveTenant:
    """Tests for resolution against the real directory."""

    async def test_subdomain_and_override(self, session_factory, provisioned):
        by_host = await resolve_tenant("acme.example.com", session_factory=session_factory)
        by_header = await resolve_tenant(
            "acme.example.com", "beta", session_factory=session_factory
        )

        assert by_host.tenant.partition_name == provisioned["acme"].partition_name
        assert by_host.source == ResolutionSource.SUBDOMAIN
        assert by_header.tenant.slug == "beta"
        assert by_header.source == ResolutionSource.OVERRIDE_HEADER

    async def test_unknown_tenant(self, session_factory, provisioned):
        degraded = await resolve_tenant("ghost.example.com", session_factory=session_factory)
        assert degraded.tenant is None
        assert degraded.source == ResolutionSource.DEGRADED

        with pytest.raises(NotFoundError):
            await resolve_tenant("example.com", "ghost", session_factory=session_factory)

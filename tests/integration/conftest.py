"""Fixtures for tests against a real PostgreSQL.

The tests reset the directory and drop every partition, so they only run
against a database whose name ends in ``_test``. ``TEST_DATABASE_URL``
selects one explicitly; otherwise the configured database name gets a
``_test`` suffix. Tests are skipped when the database cannot be reached.
"""

import os
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from shopgrid.config import settings
from shopgrid.core.database.base import Base
from shopgrid.modules.tenants.models import Tenant
from shopgrid.modules.tenants.repos import TenantRepository
from shopgrid.modules.tenants.services import TenantService


TEST_DATABASE_SUFFIX = "_test"


def derive_test_database_url(url: str) -> str:
    """Point a database URL at its ``_test`` sibling database."""
    parsed = make_url(url)
    database = parsed.database or ""
    if database.endswith(TEST_DATABASE_SUFFIX):
        return url
    return parsed.set(database=f"{database}{TEST_DATABASE_SUFFIX}").render_as_string(
        hide_password=False
    )


def is_test_database(url: str) -> bool:
    return (make_url(url).database or "").endswith(TEST_DATABASE_SUFFIX)


TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL") or derive_test_database_url(
    settings.async_database_url
)


async def _drop_partitions(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        schemas = (
            await conn.execute(
                text("SELECT nspname FROM pg_namespace WHERE nspname LIKE :prefix"),
                {"prefix": settings.partition_prefix.replace("_", r"\_") + "%"},
            )
        ).scalars().all()
        for schema in schemas:
            await conn.execute(text(f'DROP SCHEMA IF EXISTS "{schema}" CASCADE'))


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Engine with a clean directory, dropped again after the test."""
    if not is_test_database(TEST_DATABASE_URL):
        pytest.skip(f"Refusing to reset a database not named *{TEST_DATABASE_SUFFIX}")

    test_engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)
    try:
        async with test_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        await test_engine.dispose()
        pytest.skip(f"PostgreSQL not reachable: {type(exc).__name__}")

    await _drop_partitions(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await _drop_partitions(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


def build_service(session: AsyncSession) -> TenantService:
    return TenantService(TenantRepository(session))


@pytest.fixture
def tenant_service(db: AsyncSession) -> TenantService:
    return build_service(db)


@pytest.fixture
async def provisioned(tenant_service: TenantService, db: AsyncSession) -> dict[str, Tenant]:
    """Two provisioned tenants, ``acme`` and ``beta``."""
    tenants = {}
    for slug in ("acme", "beta"):
        await tenant_service.provision_tenant(slug)
        tenants[slug] = await tenant_service.get_tenant(slug)
    return tenants

"""Tests for shopgrid CLI commands."""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from typer.testing import CliRunner

from shopgrid import __version__
from shopgrid.cli import app
from shopgrid.config import settings
from shopgrid.core.errors import ConflictError
from shopgrid.core.utils.text import partition_name_for
from shopgrid.modules.tenants.models import TenantStatus
from shopgrid.modules.tenants.schemas import ProvisionedTenant
from shopgrid.modules.tenants.services import TenantService


runner = CliRunner()


def tenant_record(slug: str = "acme", status: TenantStatus = TenantStatus.ACTIVE):
    tenant_id = uuid4()
    return SimpleNamespace(
        id=tenant_id,
        slug=slug,
        name=slug.title(),
        status=status,
        partition_name=partition_name_for(tenant_id),
        created_at=datetime(2025, 1, 14, 9, 30, tzinfo=UTC),
    )


@pytest.fixture
def service():
    """Patch the command layer to run actions against a mocked service."""
    mock = AsyncMock(spec=TenantService)

    async def fake_with_service(action):
        return await action(mock)

    with patch("shopgrid.commands.tenants._with_service", fake_with_service):
        yield mock


class TestVersion:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestCreateCommand:
    """Tests for shopgrid tenants create."""

    def test_create_prints_partition(self, service) -> None:
        tenant_id = uuid4()
        service.provision_tenant.return_value = ProvisionedTenant(
            id=tenant_id, slug="acme", partition_name=partition_name_for(tenant_id)
        )

        result = runner.invoke(app, ["tenants", "create", "acme", "--name", "Acme Shop"])

        assert result.exit_code == 0, result.stdout
        assert "acme" in result.stdout
        assert partition_name_for(tenant_id) in result.stdout
        service.provision_tenant.assert_awaited_once_with("acme", "Acme Shop")

    def test_create_prints_storefront_host(self, service) -> None:
        tenant_id = uuid4()
        service.provision_tenant.return_value = ProvisionedTenant(
            id=tenant_id, slug="acme", partition_name=partition_name_for(tenant_id)
        )

        with patch.object(settings, "root_domain", "shops.test"):
            result = runner.invoke(app, ["tenants", "create", "acme"])

        assert result.exit_code == 0, result.stdout
        assert "https://acme.shops.test" in result.stdout

    def test_create_derives_slug_from_name(self, service) -> None:
        tenant_id = uuid4()
        service.provision_tenant.return_value = ProvisionedTenant(
            id=tenant_id, slug="acme-shop", partition_name=partition_name_for(tenant_id)
        )

        result = runner.invoke(app, ["tenants", "create", "--name", "Acme Shop!"])

        assert result.exit_code == 0, result.stdout
        service.provision_tenant.assert_awaited_once_with("acme-shop", "Acme Shop!")

    def test_create_needs_slug_or_name(self, service) -> None:
        result = runner.invoke(app, ["tenants", "create"])

        assert result.exit_code == 1
        service.provision_tenant.assert_not_awaited()

    def test_create_conflict_exits_non_zero(self, service) -> None:
        service.provision_tenant.side_effect = ConflictError('Tenant "acme" already exists')

        result = runner.invoke(app, ["tenants", "create", "acme"])

        assert result.exit_code == 1


class TestListCommand:
    """Tests for shopgrid tenants list."""

    def test_list_shows_tenants(self, service) -> None:
        service.list_tenants.return_value = ([tenant_record("acme"), tenant_record("beta")], 2)

        result = runner.invoke(app, ["tenants", "list", "--status", "active", "--order", "asc"])

        assert result.exit_code == 0, result.stdout
        assert "acme" in result.stdout
        assert "beta" in result.stdout
        args = service.list_tenants.await_args.args
        assert args[0] == TenantStatus.ACTIVE
        assert args[1].value == "asc"

    def test_list_empty(self, service) -> None:
        service.list_tenants.return_value = ([], 0)

        result = runner.invoke(app, ["tenants", "list"])

        assert result.exit_code == 0
        assert "No tenants found" in result.stdout


class TestStatusAndDelete:
    """Tests for shopgrid tenants status/delete."""

    def test_block_tenant(self, service) -> None:
        service.update_tenant.return_value = tenant_record("acme", TenantStatus.BLOCKED)

        result = runner.invoke(app, ["tenants", "status", "acme", "blocked"])

        assert result.exit_code == 0, result.stdout
        assert "blocked" in result.stdout
        assert service.update_tenant.await_args.args[1].status == TenantStatus.BLOCKED

    def test_delete_requires_confirmation(self, service) -> None:
        result = runner.invoke(app, ["tenants", "delete", "acme"], input="n\n")

        assert result.exit_code != 0
        service.delete_tenant.assert_not_awaited()

    def test_delete_with_yes(self, service) -> None:
        result = runner.invoke(app, ["tenants", "delete", "acme", "--yes"])

        assert result.exit_code == 0, result.stdout
        service.delete_tenant.assert_awaited_once_with("acme")

"""Unit tests for tenant administration routes."""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from shopgrid.core.errors import ConflictError, InvalidArgumentError, NotFoundError
from shopgrid.core.utils.text import partition_name_for
from shopgrid.modules.tenants.models import TenantStatus
from shopgrid.modules.tenants.schemas import ProvisionedTenant
from shopgrid.modules.tenants.services import TenantService
from tests.factories import TenantCreateFactory


BASE = "/api/v1/admin/tenants"


def tenant_record(slug: str = "acme", status: TenantStatus = TenantStatus.ACTIVE):
    tenant_id = uuid4()
    now = datetime.now(UTC)
    return SimpleNamespace(
        id=tenant_id,
        slug=slug,
        name=slug.title(),
        status=status,
        partition_name=partition_name_for(tenant_id),
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def mock_service(app):
    service = AsyncMock(spec=TenantService)
    app.dependency_overrides[TenantService] = lambda: service
    return service


class TestAdminKey:
    """Tenant routes are guarded by the admin key."""

    @pytest.mark.asyncio
    async def test_missing_key(self, client, mock_service):
        response = await client.get(BASE)

        assert response.status_code == 401
        assert response.json()["type"].endswith("/errors/missing_admin_key")
        mock_service.list_tenants.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_wrong_key(self, client, mock_service, admin_headers):
        headers = {name: "wrong-key" for name in admin_headers}

        response = await client.get(BASE, headers=headers)

        assert response.status_code == 401
        assert response.json()["type"].endswith("/errors/invalid_admin_key")


class TestTenantRoutes:
    """Tests for tenant CRUD endpoints."""

    @pytest.mark.asyncio
    async def test_provision(self, client, mock_service, admin_headers):
        payload = TenantCreateFactory.build(slug="acme", name="Acme Shop")
        tenant_id = uuid4()
        mock_service.provision_tenant.return_value = ProvisionedTenant(
            id=tenant_id, slug="acme", partition_name=partition_name_for(tenant_id)
        )

        response = await client.post(BASE, json=payload.model_dump(), headers=admin_headers)

        assert response.status_code == 201
        assert response.json() == {
            "id": str(tenant_id),
            "slug": "acme",
            "partition_name": partition_name_for(tenant_id),
        }
        mock_service.provision_tenant.assert_awaited_once_with("acme", "Acme Shop")

    @pytest.mark.asyncio
    async def test_provision_invalid_slug(self, client, mock_service, admin_headers):
        mock_service.provision_tenant.side_effect = InvalidArgumentError(
            "bad slug", error_code="invalid_slug", details={"slug": "bad slug"}
        )

        response = await client.post(BASE, json={"slug": "bad slug"}, headers=admin_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["type"].endswith("/errors/invalid_slug")
        assert body["slug"] == "bad slug"

    @pytest.mark.asyncio
    async def test_provision_duplicate(self, client, mock_service, admin_headers):
        mock_service.provision_tenant.side_effect = ConflictError(
            'Tenant "acme" already exists', error_code="tenant_exists"
        )

        response = await client.post(BASE, json={"slug": "acme"}, headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["detail"] == 'Tenant "acme" already exists'

    @pytest.mark.asyncio
    async def test_provision_requires_slug(self, client, mock_service, admin_headers):
        response = await client.post(BASE, json={"name": "No Slug"}, headers=admin_headers)

        assert response.status_code == 422
        mock_service.provision_tenant.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list(self, client, mock_service, admin_headers):
        mock_service.list_tenants.return_value = ([tenant_record("acme"), tenant_record("beta")], 2)

        response = await client.get(
            BASE, params={"status": "active", "order": "asc", "page_size": 5}, headers=admin_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert [item["slug"] for item in body["items"]] == ["acme", "beta"]
        assert body["total"] == 2
        assert body["page_size"] == 5
        args = mock_service.list_tenants.await_args.args
        assert args[0] == TenantStatus.ACTIVE
        assert args[1].value == "asc"

    @pytest.mark.asyncio
    async def test_list_rejects_large_page_size(self, client, mock_service, admin_headers):
        response = await client.get(BASE, params={"page_size": 500}, headers=admin_headers)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_get_not_found(self, client, mock_service, admin_headers):
        mock_service.get_tenant.side_effect = NotFoundError(
            'Tenant "ghost" not found',
            error_code="tenant_not_found",
            resource="tenant",
            resource_id="ghost",
        )

        response = await client.get(f"{BASE}/ghost", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["resource_id"] == "ghost"

    @pytest.mark.asyncio
    async def test_block_tenant(self, client, mock_service, admin_headers):
        mock_service.update_tenant.return_value = tenant_record("acme", TenantStatus.BLOCKED)

        response = await client.patch(
            f"{BASE}/acme", json={"status": "blocked"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["status"] == "blocked"
        slug, update = mock_service.update_tenant.await_args.args
        assert slug == "acme"
        assert update.status == TenantStatus.BLOCKED

    @pytest.mark.asyncio
    async def test_delete(self, client, mock_service, admin_headers):
        response = await client.delete(f"{BASE}/acme", headers=admin_headers)

        assert response.status_code == 204
        mock_service.delete_tenant.assert_awaited_once_with("acme")

"""Unit tests for the tenant context middleware and dependencies."""

from unittest.mock import AsyncMock, patch

import pytest
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from shopgrid.core.errors import NotFoundError, register_exception_handlers
from shopgrid.core.tenancy.context import RequestContext, ResolutionSource
from shopgrid.core.tenancy.dependencies import CurrentContext, CurrentTenant
from shopgrid.core.tenancy.middleware import TenantContextMiddleware
from shopgrid.modules.tenants.models import TenantStatus
from tests.helpers import tenant_context


RESOLVE = "shopgrid.core.tenancy.middleware.resolve_tenant"


@pytest.fixture
def tenancy_app() -> FastAPI:
    """Minimal app exposing the resolved context."""
    application = FastAPI()
    application.add_middleware(TenantContextMiddleware)
    register_exception_handlers(application)

    @application.get("/context")
    async def read_context(context: CurrentContext) -> dict:
        return {
            "slug": context.tenant.slug if context.tenant else None,
            "source": context.source.value,
            "bound": structlog.contextvars.get_contextvars().get("tenant_slug"),
        }

    @application.get("/shop")
    async def read_shop(tenant: CurrentTenant) -> dict:
        return {"slug": tenant.slug, "partition": tenant.partition_name}

    @application.get("/health/live")
    async def live(context: CurrentContext) -> dict:
        return {"source": context.source.value}

    return application


@pytest.fixture
async def tenancy_client(tenancy_app: FastAPI):
    async with AsyncClient(
        transport=ASGITransport(app=tenancy_app),
        base_url="http://acme.example.com",
    ) as client:
        yield client
    structlog.contextvars.clear_contextvars()


class TestTenantContextMiddleware:
    """Tests for TenantContextMiddleware."""

    @pytest.mark.asyncio
    async def test_stores_resolved_context(self, tenancy_client):
        with patch(RESOLVE, new_callable=AsyncMock) as mock_resolve:
            mock_resolve.return_value = tenant_context("acme", source=ResolutionSource.SUBDOMAIN)

            response = await tenancy_client.get("/context")

        assert response.status_code == 200
        assert response.json() == {"slug": "acme", "source": "subdomain", "bound": "acme"}
        args, kwargs = mock_resolve.call_args
        assert args == ("acme.example.com", None)
        assert "session_factory" in kwargs

    @pytest.mark.asyncio
    async def test_passes_override_header(self, tenancy_client):
        with patch(RESOLVE, new_callable=AsyncMock) as mock_resolve:
            mock_resolve.return_value = tenant_context("beta")

            await tenancy_client.get("/context", headers={"X-Tenant": "beta"})

        assert mock_resolve.call_args.args == ("acme.example.com", "beta")

    @pytest.mark.asyncio
    async def test_unknown_override_renders_problem_details(self, tenancy_client):
        with patch(RESOLVE, new_callable=AsyncMock) as mock_resolve:
            mock_resolve.side_effect = NotFoundError(
                'Tenant "ghost" not found',
                error_code="tenant_not_found",
                resource="tenant",
                resource_id="ghost",
            )

            response = await tenancy_client.get("/context", headers={"X-Tenant": "ghost"})

        assert response.status_code == 404
        body = response.json()
        assert body["status"] == 404
        assert body["type"].endswith("/errors/tenant_not_found")
        assert body["resource_id"] == "ghost"

    @pytest.mark.asyncio
    async def test_health_paths_skip_resolution(self, tenancy_client):
        with patch(RESOLVE, new_callable=AsyncMock) as mock_resolve:
            response = await tenancy_client.get("/health/live", headers={"X-Tenant": "ghost"})

        assert response.status_code == 200
        assert response.json() == {"source": "excluded_path"}
        mock_resolve.assert_not_awaited()


class TestRequireTenant:
    """Tests for the require_tenant dependency."""

    @pytest.mark.asyncio
    async def test_no_tenant_is_forbidden(self, tenancy_client):
        with patch(RESOLVE, new_callable=AsyncMock) as mock_resolve:
            mock_resolve.return_value = RequestContext.no_tenant(ResolutionSource.ROOT_DOMAIN)

            response = await tenancy_client.get("/shop")

        assert response.status_code == 403
        assert response.json()["type"].endswith("/errors/tenant_required")

    @pytest.mark.asyncio
    async def test_blocked_tenant_is_forbidden(self, tenancy_client):
        with patch(RESOLVE, new_callable=AsyncMock) as mock_resolve:
            mock_resolve.return_value = tenant_context("acme", status=TenantStatus.BLOCKED)

            response = await tenancy_client.get("/shop")

        assert response.status_code == 403
        body = response.json()
        assert body["type"].endswith("/errors/tenant_blocked")
        assert body["status"] == 403
        assert body["code"] == "tenant_blocked"
        assert body["tenant"] == "acme"

    @pytest.mark.asyncio
    async def test_active_tenant_is_returned(self, tenancy_client):
        context = tenant_context("acme")
        with patch(RESOLVE, new_callable=AsyncMock) as mock_resolve:
            mock_resolve.return_value = context

            response = await tenancy_client.get("/shop")

        assert response.status_code == 200
        assert response.json() == {
            "slug": "acme",
            "partition": context.tenant.partition_name,
        }

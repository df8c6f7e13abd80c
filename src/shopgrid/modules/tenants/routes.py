"""Tenant administration routes.

Every route requires the admin key header.
"""

from fastapi import Query, status

from shopgrid.modules.tenants import router
from shopgrid.modules.tenants.models import TenantStatus
from shopgrid.modules.tenants.schemas import (
    ProvisionedTenant,
    SortOrder,
    TenantCreate,
    TenantListResponse,
    TenantResponse,
    TenantUpdate,
)
from shopgrid.modules.tenants.services import TenantSvc


@router.get(
    "",
    response_model=TenantListResponse,
    summary="List tenants",
    description="List tenants, optionally filtered by status.",
)
async def list_tenants(
    service: TenantSvc,
    status_filter: TenantStatus | None = Query(None, alias="status", description="Status filter"),
    order: SortOrder = Query(SortOrder.DESC, description="Creation time ordering"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
) -> TenantListResponse:
    """List tenants."""
    tenants, total = await service.list_tenants(status_filter, order, page, page_size)
    return TenantListResponse(
        items=[TenantResponse.model_validate(t) for t in tenants],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "",
    response_model=ProvisionedTenant,
    status_code=status.HTTP_201_CREATED,
    summary="Provision tenant",
    description="Register a tenant and build its partition with default store settings.",
)
async def create_tenant(
    data: TenantCreate,
    service: TenantSvc,
) -> ProvisionedTenant:
    """Provision a new tenant."""
    return await service.provision_tenant(data.slug, data.name)


@router.get(
    "/{slug}",
    response_model=TenantResponse,
    summary="Get tenant",
    description="Get a tenant by slug.",
)
async def get_tenant(
    slug: str,
    service: TenantSvc,
) -> TenantResponse:
    """Get tenant by slug."""
    tenant = await service.get_tenant(slug)
    return TenantResponse.model_validate(tenant)


@router.patch(
    "/{slug}",
    response_model=TenantResponse,
    summary="Update tenant",
    description="Change a tenant's display name or status. "
    "Blocked tenants are refused by storefront routes.",
)
async def update_tenant(
    slug: str,
    data: TenantUpdate,
    service: TenantSvc,
) -> TenantResponse:
    """Update tenant by slug."""
    tenant = await service.update_tenant(slug, data)
    return TenantResponse.model_validate(tenant)


@router.delete(
    "/{slug}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete tenant",
    description="Delete a tenant and drop its partition with all data.",
)
async def delete_tenant(
    slug: str,
    service: TenantSvc,
) -> None:
    """Delete tenant by slug."""
    await service.delete_tenant(slug)

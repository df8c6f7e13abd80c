"""Storefront module - tenant-local catalogue, settings and orders."""

from fastapi import APIRouter, Depends

from shopgrid.core.tenancy.dependencies import require_tenant


router = APIRouter(
    prefix="/storefront",
    tags=["storefront"],
    dependencies=[Depends(require_tenant)],
)

# Import routes to register them (must be after router is defined)
from shopgrid.modules.storefront import routes  # noqa: F401, E402


# Module metadata
__module_info__ = {
    "name": "storefront",
    "version": "1.0.0",
    "description": "Tenant storefront backed by the tenant partition",
    "dependencies": ["tenants"],
}

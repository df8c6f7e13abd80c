"""Tenants module - tenant directory administration."""

from fastapi import APIRouter

from shopgrid.api.dependencies import AdminAccess


router = APIRouter(prefix="/admin/tenants", tags=["tenants"], dependencies=[AdminAccess])

# Import routes to register them (must be after router is defined)
from shopgrid.modules.tenants import routes  # noqa: F401, E402


# Module metadata
__module_info__ = {
    "name": "tenants",
    "version": "1.0.0",
    "description": "Tenant provisioning and administration",
    "dependencies": [],
}

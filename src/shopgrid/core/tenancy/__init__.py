"""Tenant identity: request context and resolution.

The middleware and FastAPI dependencies live in
``shopgrid.core.tenancy.middleware`` and ``shopgrid.core.tenancy.dependencies``
and are imported from there, since they depend on the database layer.
"""

from shopgrid.core.tenancy.context import (
    RequestContext,
    ResolutionSource,
    TenantDescriptor,
)
from shopgrid.core.tenancy.resolver import TenantResolver, extract_hostname


__all__ = [
    "RequestContext",
    "ResolutionSource",
    "TenantDescriptor",
    "TenantResolver",
    "extract_hostname",
]

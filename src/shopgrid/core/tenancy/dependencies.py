"""FastAPI dependencies for the tenant context."""

from typing import Annotated

from fastapi import Depends, Request

from shopgrid.core.database.scoped import PartitionHandle, get_scoped_access
from shopgrid.core.errors import ForbiddenError, TenantRequiredError
from shopgrid.core.tenancy.context import RequestContext, ResolutionSource, TenantDescriptor


async def get_request_context(request: Request) -> RequestContext:
    """Get the context resolved by ``TenantContextMiddleware``.

    Requests that bypassed the middleware get the no-tenant context.
    """
    context = getattr(request.state, "request_context", None)
    if context is None:
        return RequestContext.no_tenant(ResolutionSource.EXCLUDED_PATH)
    return context


async def require_tenant(
    context: Annotated[RequestContext, Depends(get_request_context)],
) -> TenantDescriptor:
    """Get the current tenant, rejecting requests without an active one.

    Raises:
        TenantRequiredError: If the request resolved no tenant
        ForbiddenError: If the tenant is not active
    """
    if context.tenant is None:
        raise TenantRequiredError()

    if not context.tenant.is_active:
        raise ForbiddenError(
            "Tenant is not active",
            error_code="tenant_blocked",
            details={"slug": context.tenant.slug, "status": context.tenant.status},
        )
    return context.tenant


async def get_scoped_db(
    tenant: Annotated[TenantDescriptor, Depends(require_tenant)],  # noqa: ARG001 - enforces tenant
    context: Annotated[RequestContext, Depends(get_request_context)],
) -> PartitionHandle:
    """Build the data-access handle for the current tenant."""
    return get_scoped_access(context)


# Type aliases for cleaner dependency injection
CurrentContext = Annotated[RequestContext, Depends(get_request_context)]
CurrentTenant = Annotated[TenantDescriptor, Depends(require_tenant)]
ScopedDB = Annotated[PartitionHandle, Depends(get_scoped_db)]

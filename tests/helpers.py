"""Test helpers shared across test modules."""

from types import SimpleNamespace
from typing import Any
from uuid import uuid4

from shopgrid.core.tenancy.context import RequestContext, ResolutionSource, TenantDescriptor
from shopgrid.modules.tenants.models import TenantStatus


def make_tenant(
    slug: str = "acme",
    name: str | None = None,
    status: TenantStatus = TenantStatus.ACTIVE,
) -> Any:
    """Build a directory record stand-in with the attributes the resolver reads."""
    return SimpleNamespace(id=uuid4(), slug=slug, name=name or slug.title(), status=status)


def tenant_context(
    slug: str = "acme",
    status: TenantStatus = TenantStatus.ACTIVE,
    source: ResolutionSource = ResolutionSource.OVERRIDE_HEADER,
) -> RequestContext:
    """Build a resolved request context for a tenant."""
    descriptor = TenantDescriptor.from_tenant(make_tenant(slug, status=status))
    return RequestContext.for_tenant(descriptor, source)

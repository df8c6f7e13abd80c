"""Per-request tenant context.

A ``RequestContext`` is created at the start of request handling and
discarded at the end. It carries either a resolved ``TenantDescriptor`` or
the explicit "no tenant" marker used by infrastructure requests (health
checks, admin domains, the bare root domain).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from shopgrid.core.constants import DEFAULT_PARTITION_PREFIX
from shopgrid.core.utils.text import partition_name_for


class ResolutionSource(str, Enum):
    """How the request context was determined (for logs and audits)."""

    OVERRIDE_HEADER = "override_header"
    SUBDOMAIN = "subdomain"
    ROOT_DOMAIN = "root_domain"
    RESERVED_SUBDOMAIN = "reserved_subdomain"
    DEGRADED = "degraded"
    EXCLUDED_PATH = "excluded_path"


@dataclass(frozen=True)
class TenantDescriptor:
    """Immutable view of a resolved tenant.

    Attributes:
        id: Tenant id from the directory
        slug: Tenant slug (lowercase)
        name: Display name
        status: Lifecycle status value (active, blocked, pending)
        partition_name: Schema holding the tenant's tables
    """

    id: UUID
    slug: str
    name: str
    status: str
    partition_name: str

    @classmethod
    def from_tenant(cls, tenant: Any, prefix: str = DEFAULT_PARTITION_PREFIX) -> "TenantDescriptor":
        """Build a descriptor from a directory record."""
        status = getattr(tenant.status, "value", tenant.status)
        return cls(
            id=tenant.id,
            slug=tenant.slug,
            name=tenant.name,
            status=str(status),
            partition_name=partition_name_for(tenant.id, prefix),
        )

    @property
    def is_active(self) -> bool:
        return self.status == "active"


@dataclass(frozen=True)
class RequestContext:
    """Resolved tenant context for one request.

    ``tenant`` is None for infrastructure requests.
    """

    tenant: TenantDescriptor | None
    source: ResolutionSource

    @classmethod
    def no_tenant(cls, source: ResolutionSource) -> "RequestContext":
        return cls(tenant=None, source=source)

    @classmethod
    def for_tenant(cls, tenant: TenantDescriptor, source: ResolutionSource) -> "RequestContext":
        return cls(tenant=tenant, source=source)

    @property
    def has_tenant(self) -> bool:
        return self.tenant is not None

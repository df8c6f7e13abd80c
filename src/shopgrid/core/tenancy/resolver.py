"""Tenant resolution from request headers.

Resolution has two deliberately different strictness levels:

- An explicit override header (``X-Tenant`` by default) must resolve.
  A missing tenant raises ``NotFoundError`` and directory failures
  propagate. The header is used by tests and API-to-API calls.
- A tenant derived from the ``Host`` subdomain degrades to "no tenant"
  when the directory has no match or the lookup fails. Infrastructure
  subdomains must stay reachable while the directory is unavailable.

The subdomain branch must stay lenient.
"""

import ipaddress
from collections.abc import Iterable
from typing import Any, Protocol

import structlog

from shopgrid.config import settings
from shopgrid.core.errors import NotFoundError
from shopgrid.core.tenancy.context import (
    RequestContext,
    ResolutionSource,
    TenantDescriptor,
)
from shopgrid.core.utils.text import normalize_slug


log = structlog.get_logger()

# A host needs at least subdomain.domain.tld to name a tenant
MIN_TENANT_HOST_LABELS = 3


class TenantLookup(Protocol):
    """Directory lookup used by the resolver."""

    async def find_by_slug(self, slug: str) -> Any | None: ...


def extract_hostname(host: str) -> str:
    """Normalize a Host header value to a bare lowercase hostname.

    Strips the port, a trailing dot and IPv6 brackets.

    Examples:
        >>> extract_hostname("Acme.Example.com:8000")
        'acme.example.com'
        >>> extract_hostname("[::1]:8000")
        '::1'
    """
    host = host.strip().lower()
    if host.startswith("["):
        end = host.find("]")
        return host[1:end] if end != -1 else host[1:]
    if host.count(":") == 1:
        host = host.split(":", 1)[0]
    return host.rstrip(".")


def _is_ip_address(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True


class TenantResolver:
    """Maps an inbound request's headers to a ``RequestContext``.

    Priority order, first match wins:

    1. Override header present: strict directory lookup.
    2. Host with fewer than three labels (or an IP literal): no tenant.
    3. Leftmost label is a reserved infrastructure name: no tenant.
    4. Leftmost label looked up as a slug: tenant, or no tenant on any
       failure (logged, never raised).
    """

    def __init__(
        self,
        directory: TenantLookup,
        reserved_labels: Iterable[str] | None = None,
        partition_prefix: str | None = None,
    ) -> None:
        self.directory = directory
        self.reserved_labels = frozenset(
            label.lower()
            for label in (
                reserved_labels if reserved_labels is not None else settings.reserved_subdomains
            )
        )
        self.partition_prefix = partition_prefix or settings.partition_prefix

    async def resolve(self, host: str | None, override: str | None = None) -> RequestContext:
        """Resolve the tenant for a request.

        Args:
            host: Raw ``Host`` header value
            override: Raw override header value, if present

        Returns:
            Request context with a tenant or the "no tenant" marker

        Raises:
            NotFoundError: If the override names an unknown tenant
        """
        if override is not None and override.strip():
            return await self._resolve_override(override)
        return await self._resolve_host(host or "")

    async def _resolve_override(self, override: str) -> RequestContext:
        slug = normalize_slug(override)
        tenant = await self.directory.find_by_slug(slug)
        if tenant is None:
            raise NotFoundError(
                f'Tenant "{slug}" not found',
                error_code="tenant_not_found",
                resource="tenant",
                resource_id=slug,
            )
        return RequestContext.for_tenant(
            TenantDescriptor.from_tenant(tenant, self.partition_prefix),
            ResolutionSource.OVERRIDE_HEADER,
        )

    async def _resolve_host(self, host: str) -> RequestContext:
        hostname = extract_hostname(host)
        if not hostname or _is_ip_address(hostname):
            return RequestContext.no_tenant(ResolutionSource.ROOT_DOMAIN)

        labels = hostname.split(".")
        if len(labels) < MIN_TENANT_HOST_LABELS:
            return RequestContext.no_tenant(ResolutionSource.ROOT_DOMAIN)

        subdomain = labels[0]
        if subdomain in self.reserved_labels:
            return RequestContext.no_tenant(ResolutionSource.RESERVED_SUBDOMAIN)

        try:
            tenant = await self.directory.find_by_slug(subdomain)
        except Exception as exc:
            log.warning(
                "tenant_resolution_degraded",
                reason="lookup_failed",
                subdomain=subdomain,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return RequestContext.no_tenant(ResolutionSource.DEGRADED)

        if tenant is None:
            log.info(
                "tenant_resolution_degraded",
                reason="not_found",
                subdomain=subdomain,
            )
            return RequestContext.no_tenant(ResolutionSource.DEGRADED)

        return RequestContext.for_tenant(
            TenantDescriptor.from_tenant(tenant, self.partition_prefix),
            ResolutionSource.SUBDOMAIN,
        )

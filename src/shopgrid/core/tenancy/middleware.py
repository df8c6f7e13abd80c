"""Tenant context middleware.

Resolves the tenant for every request before routing and stores the
result on ``request.state.request_context``.
"""

from typing import TYPE_CHECKING

import structlog
from fastapi import Request, Response
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from shopgrid.config import settings
from shopgrid.core.database.session import async_session_factory
from shopgrid.core.errors import AppException, app_exception_handler
from shopgrid.core.tenancy.context import RequestContext, ResolutionSource
from shopgrid.core.tenancy.resolver import TenantResolver
from shopgrid.modules.tenants.repos import TenantRepository


if TYPE_CHECKING:
    from starlette.types import ASGIApp


logger = structlog.get_logger()


async def resolve_tenant(
    host: str | None,
    override: str | None = None,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
) -> RequestContext:
    """Resolve a request context against the tenant directory.

    Opens a short-lived directory session for the lookup.

    Args:
        host: Raw ``Host`` header value
        override: Raw override header value, if present
        session_factory: Factory for the directory session

    Returns:
        The resolved request context

    Raises:
        NotFoundError: If the override names an unknown tenant
    """
    async with session_factory() as session:
        resolver = TenantResolver(TenantRepository(session))
        return await resolver.resolve(host, override)


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Middleware that injects the tenant context into requests.

    Errors raised in middleware skip the application's exception
    handlers, so resolution errors are rendered here as problem details.

    Attributes:
        exclude_paths: Path prefixes that always get the no-tenant context
    """

    def __init__(
        self,
        app: "ASGIApp",
        exclude_paths: list[str] | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        super().__init__(app)
        self.exclude_paths = exclude_paths or [
            "/health",
            "/docs",
            "/redoc",
            "/openapi.json",
        ]
        self.session_factory = session_factory or async_session_factory

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Resolve the tenant, then hand the request on.

        Args:
            request: The incoming request
            call_next: The next middleware/handler

        Returns:
            The response from the handler, or a problem response when an
            override header names an unknown tenant
        """
        if any(request.url.path.startswith(path) for path in self.exclude_paths):
            request.state.request_context = RequestContext.no_tenant(
                ResolutionSource.EXCLUDED_PATH
            )
            return await call_next(request)

        try:
            context = await resolve_tenant(
                request.headers.get("host"),
                request.headers.get(settings.tenant_header),
                session_factory=self.session_factory,
            )
        except AppException as exc:
            return await app_exception_handler(request, exc)

        request.state.request_context = context
        if context.tenant is not None:
            structlog.contextvars.bind_contextvars(tenant_slug=context.tenant.slug)

        return await call_next(request)

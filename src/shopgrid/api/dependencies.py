"""Shared API dependencies."""

import secrets
from typing import Annotated

from fastapi import Depends
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from shopgrid.config import settings
from shopgrid.core.database.session import get_db
from shopgrid.core.errors import UnauthorizedError


# Type alias for database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]

# Admin API key security scheme
admin_key_scheme = APIKeyHeader(name=settings.admin_key_header, auto_error=False)


async def require_admin_key(
    api_key: Annotated[str | None, Depends(admin_key_scheme)],
) -> None:
    """Guard for tenant administration endpoints.

    Args:
        api_key: Value of the admin key header

    Raises:
        UnauthorizedError: If the key is missing or does not match
    """
    if not api_key:
        raise UnauthorizedError(
            "Missing admin key",
            error_code="missing_admin_key",
        )
    if not secrets.compare_digest(api_key.encode(), settings.secret_key.encode()):
        raise UnauthorizedError(
            "Invalid admin key",
            error_code="invalid_admin_key",
        )


AdminAccess = Depends(require_admin_key)

"""Tenant directory repository.

The directory lives in the shared partition and never touches tenant
partitions.
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from shopgrid.api.dependencies import DBSession
from shopgrid.core.errors import ConflictError
from shopgrid.core.utils.text import normalize_slug
from shopgrid.modules.tenants.models import Tenant, TenantStatus
from shopgrid.modules.tenants.schemas import SortOrder


class TenantRepository:
    """Repository for Tenant directory operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def find_by_slug(self, slug: str) -> Tenant | None:
        """Get a tenant by slug.

        Args:
            slug: Tenant slug, matched case-insensitively

        Returns:
            Tenant if found, None otherwise
        """
        stmt = select(Tenant).where(Tenant.slug == normalize_slug(slug))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_id(self, tenant_id: UUID) -> Tenant | None:
        """Get a tenant by ID.

        Args:
            tenant_id: The tenant's UUID

        Returns:
            Tenant if found, None otherwise
        """
        return await self.session.get(Tenant, tenant_id)

    async def create(self, slug: str, name: str) -> Tenant:
        """Insert a new active tenant.

        Only provisioning should call this; a directory row without a
        partition is not a usable tenant.

        Args:
            slug: Validated, normalized slug
            name: Display name

        Returns:
            The created tenant with ID populated

        Raises:
            ConflictError: If the slug is already registered
        """
        tenant = Tenant(slug=slug, name=name, status=TenantStatus.ACTIVE)
        self.session.add(tenant)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError(
                f'Tenant "{slug}" already exists',
                error_code="tenant_exists",
                details={"slug": slug},
            ) from exc
        await self.session.refresh(tenant)
        return tenant

    async def list_all(
        self,
        status: TenantStatus | None = None,
        order: SortOrder = SortOrder.DESC,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Tenant], int]:
        """List tenants with pagination.

        Args:
            status: Only return tenants with this status
            order: Creation time ordering
            page: Page number (1-indexed)
            page_size: Number of items per page

        Returns:
            Tuple of (tenants list, total count)
        """
        filters = [Tenant.status == status] if status is not None else []

        count_stmt = select(func.count()).select_from(Tenant).where(*filters)
        total = (await self.session.execute(count_stmt)).scalar_one()

        ordering = Tenant.created_at.asc() if order == SortOrder.ASC else Tenant.created_at.desc()
        stmt = (
            select(Tenant)
            .where(*filters)
            .order_by(ordering, Tenant.slug)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def update(self, tenant: Tenant) -> Tenant:
        """Persist changes made to a tenant.

        Args:
            tenant: Tenant instance with updated fields

        Returns:
            The updated tenant
        """
        await self.session.flush()
        await self.session.refresh(tenant)
        return tenant

    async def delete(self, tenant: Tenant) -> None:
        """Delete a tenant row.

        Args:
            tenant: Tenant instance to delete
        """
        await self.session.delete(tenant)
        await self.session.flush()


# Type alias for dependency injection
TenantRepo = Annotated[TenantRepository, Depends(TenantRepository)]

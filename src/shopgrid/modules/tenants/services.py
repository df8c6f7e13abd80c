"""Tenant service: provisioning and directory administration."""

import asyncio
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from shopgrid.config import settings
from shopgrid.core.database.partition import StoreDefaults, create_partition, drop_partition
from shopgrid.core.errors import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    ProvisioningFailedError,
)
from shopgrid.core.utils.text import (
    brand_color_for,
    default_store_title,
    is_valid_slug,
    normalize_slug,
)
from shopgrid.modules.tenants.models import Tenant, TenantStatus
from shopgrid.modules.tenants.repos import TenantRepo
from shopgrid.modules.tenants.schemas import ProvisionedTenant, SortOrder, TenantUpdate


log = structlog.get_logger()


class TenantService:
    """Service for tenant lifecycle operations.

    Provisioning is the only way a tenant comes into existence. The
    directory row and the partition are written in one transaction, so a
    listed tenant always has a partition and a failed attempt leaves
    neither behind.
    """

    def __init__(self, repo: TenantRepo) -> None:
        self.repo = repo

    async def provision_tenant(self, slug: str, name: str | None = None) -> ProvisionedTenant:
        """Create a tenant and its partition.

        Args:
            slug: Requested slug (trimmed and lowercased before validation)
            name: Display name; defaults to the slug

        Returns:
            The new tenant's id, slug and partition name

        Raises:
            InvalidArgumentError: If the slug format is invalid
            ConflictError: If the slug is already registered
            ProvisioningFailedError: If the partition could not be built;
                no directory row remains
        """
        slug = normalize_slug(slug)
        if not is_valid_slug(slug):
            raise InvalidArgumentError(
                "Slug may only contain lowercase letters, digits and hyphens "
                "(1-63 characters)",
                error_code="invalid_slug",
                details={"slug": slug},
            )

        if await self.repo.find_by_slug(slug) is not None:
            raise ConflictError(
                f'Tenant "{slug}" already exists',
                error_code="tenant_exists",
                details={"slug": slug},
            )

        display_name = (name or "").strip() or slug
        tenant = await self.repo.create(slug, display_name)
        tenant_id, partition = tenant.id, tenant.partition_name
        defaults = StoreDefaults(
            title=default_store_title(slug, display_name),
            brand_color=brand_color_for(slug),
            currency=settings.default_currency,
        )

        try:
            conn = await self.repo.session.connection()
            await create_partition(conn, partition, defaults)
            await self.repo.session.commit()
        except asyncio.CancelledError:
            await asyncio.shield(self._discard(tenant_id, slug))
            raise
        except Exception as exc:
            log.error(
                "tenant_provisioning_failed",
                slug=slug,
                partition=partition,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            await asyncio.shield(self._discard(tenant_id, slug))
            raise ProvisioningFailedError(details={"slug": slug}) from exc

        log.info(
            "tenant_provisioned",
            tenant_id=str(tenant_id),
            slug=slug,
            partition=partition,
        )
        return ProvisionedTenant(id=tenant_id, slug=slug, partition_name=partition)

    async def _discard(self, tenant_id: UUID, slug: str) -> None:
        """Undo a failed provisioning attempt.

        The rollback removes both the directory row and the partition. If
        the commit itself failed its outcome is unknown, so a row that
        survived is deleted afterwards together with its partition.
        """
        try:
            await self.repo.session.rollback()
            leftover = await self.repo.find_by_id(tenant_id)
            if leftover is not None:
                conn = await self.repo.session.connection()
                await drop_partition(conn, leftover.partition_name)
                await self.repo.delete(leftover)
                await self.repo.session.commit()
                log.info("tenant_compensated", tenant_id=str(tenant_id), slug=slug)
        except Exception:
            log.exception("tenant_compensation_failed", tenant_id=str(tenant_id), slug=slug)

    async def get_tenant(self, slug: str) -> Tenant:
        """Get a tenant by slug.

        Raises:
            NotFoundError: If no tenant has this slug
        """
        tenant = await self.repo.find_by_slug(slug)
        if not tenant:
            raise NotFoundError(
                f'Tenant "{normalize_slug(slug)}" not found',
                error_code="tenant_not_found",
                resource="tenant",
                resource_id=normalize_slug(slug),
            )
        return tenant

    async def list_tenants(
        self,
        status: TenantStatus | None = None,
        order: SortOrder = SortOrder.DESC,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Tenant], int]:
        """List tenants, newest first unless ``order`` says otherwise."""
        return await self.repo.list_all(status, order, page, page_size)

    async def update_tenant(self, slug: str, data: TenantUpdate) -> Tenant:
        """Update a tenant's name or status.

        Args:
            slug: The tenant's slug
            data: Fields to change

        Returns:
            The updated tenant

        Raises:
            NotFoundError: If no tenant has this slug
        """
        tenant = await self.get_tenant(slug)

        if data.name:
            tenant.name = data.name.strip()
        if data.status is not None and data.status != tenant.status:
            log.info(
                "tenant_status_changed",
                slug=tenant.slug,
                old_status=tenant.status.value,
                new_status=data.status.value,
            )
            tenant.status = data.status

        return await self.repo.update(tenant)

    async def delete_tenant(self, slug: str) -> None:
        """Delete a tenant and drop its partition.

        Both happen in the directory session's transaction, so either the
        tenant is gone with all its data or nothing changed.

        Raises:
            NotFoundError: If no tenant has this slug
        """
        tenant = await self.get_tenant(slug)
        tenant_id, partition = str(tenant.id), tenant.partition_name

        conn = await self.repo.session.connection()
        await drop_partition(conn, partition)
        await self.repo.delete(tenant)
        await self.repo.session.commit()

        log.info(
            "tenant_deleted",
            tenant_id=tenant_id,
            slug=normalize_slug(slug),
            partition=partition,
        )


# Type alias for dependency injection
TenantSvc = Annotated[TenantService, Depends(TenantService)]

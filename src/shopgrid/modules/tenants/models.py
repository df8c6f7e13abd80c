"""Tenant directory models."""

from enum import Enum

from sqlalchemy import CheckConstraint, Index, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from shopgrid.config import settings
from shopgrid.core.constants import (
    MAX_NAME_LENGTH,
    MAX_SLUG_LENGTH,
    MAX_STATUS_LENGTH,
    SLUG_PATTERN,
)
from shopgrid.core.database.base import Base, TimestampMixin, UUIDMixin
from shopgrid.core.utils.text import partition_name_for


class TenantStatus(str, Enum):
    """Tenant lifecycle status."""

    ACTIVE = "active"
    BLOCKED = "blocked"
    PENDING = "pending"


class Tenant(Base, UUIDMixin, TimestampMixin):
    """Tenant model representing one storefront.

    Lives in the shared partition and is always schema-qualified, so
    directory queries never depend on the session's search path.

    Attributes:
        slug: Unique lowercase identifier, also the storefront subdomain
        name: Display name
        status: Lifecycle status
    """

    __tablename__ = "tenants"
    __table_args__ = (
        CheckConstraint(f"slug ~ '{SLUG_PATTERN}'", name="ck_tenants_slug_format"),
        Index("ix_tenants_status_created_at", "status", "created_at"),
        {"schema": settings.shared_schema},
    )

    slug: Mapped[str] = mapped_column(
        String(MAX_SLUG_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    status: Mapped[TenantStatus] = mapped_column(
        SAEnum(
            TenantStatus,
            native_enum=False,
            length=MAX_STATUS_LENGTH,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=TenantStatus.ACTIVE,
        server_default=TenantStatus.ACTIVE.value,
    )

    @property
    def partition_name(self) -> str:
        """Name of the schema holding this tenant's tables."""
        return partition_name_for(self.id, settings.partition_prefix)

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, slug={self.slug}, status={self.status})>"

"""Pydantic schemas for tenant administration."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from shopgrid.core.constants import MAX_NAME_LENGTH, MAX_SLUG_LENGTH
from shopgrid.modules.tenants.models import TenantStatus


class SortOrder(str, Enum):
    """Ordering of tenant listings by creation time."""

    ASC = "asc"
    DESC = "desc"


class TenantCreate(BaseModel):
    """Schema for provisioning a tenant.

    The slug format is checked by the service, not here, so that a bad
    slug is reported as ``invalid_argument`` by every entry point.
    """

    slug: str = Field(..., min_length=1, max_length=MAX_SLUG_LENGTH)
    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)


class TenantUpdate(BaseModel):
    """Schema for updating a tenant. The slug is immutable."""

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    status: TenantStatus | None = None


class TenantResponse(BaseModel):
    """Schema for tenant response data."""

    id: UUID
    slug: str
    name: str
    status: TenantStatus
    partition_name: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TenantListResponse(BaseModel):
    """Schema for listing tenants."""

    items: list[TenantResponse]
    total: int
    page: int
    page_size: int


class ProvisionedTenant(BaseModel):
    """Result of a successful provisioning."""

    id: UUID
    slug: str
    partition_name: str

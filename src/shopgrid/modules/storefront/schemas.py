"""Pydantic schemas for storefront operations."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shopgrid.core.constants import (
    MAX_CATEGORY_LENGTH,
    MAX_CURRENCY_LENGTH,
    MAX_NAME_LENGTH,
    MAX_PHONE_LENGTH,
    MAX_SKU_LENGTH,
)


def reject_null(value: Any) -> Any:
    """Reject an explicit null for a field that is optional only in updates."""
    if value is None:
        raise ValueError("must not be null")
    return value


# ============================================================
# Product Schemas
# ============================================================


class ProductSummary(BaseModel):
    """Product as shown in listings, with its lowest active price."""

    id: UUID
    name: str
    description: str | None = None
    category: str | None = None
    tags: list[str] | None = None
    price: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductListResponse(BaseModel):
    """Schema for a page of products."""

    items: list[ProductSummary]
    total: int
    page: int
    page_size: int
    total_pages: int


class VariantResponse(BaseModel):
    """Schema for a product variant with price and stock."""

    id: UUID
    title: str
    sku: str | None = None
    option1: str | None = None
    option2: str | None = None
    option3: str | None = None
    position: int
    price: Decimal | None = None
    available: int

    model_config = ConfigDict(from_attributes=True)


class ProductDetail(BaseModel):
    """Schema for a single product with its active variants."""

    id: UUID
    name: str
    description: str | None = None
    vendor: str | None = None
    category: str | None = None
    tags: list[str] | None = None
    is_active: bool
    price: Decimal
    variants: list[VariantResponse]
    created_at: datetime
    updated_at: datetime


class ProductCreate(BaseModel):
    """Schema for creating a product with a single default variant."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = None
    vendor: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    category: str | None = Field(None, max_length=MAX_CATEGORY_LENGTH)
    tags: list[str] = Field(default_factory=list)
    sku: str | None = Field(None, max_length=MAX_SKU_LENGTH)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    currency: str | None = Field(None, min_length=3, max_length=MAX_CURRENCY_LENGTH)
    quantity: int = Field(0, ge=0)


class ProductUpdate(BaseModel):
    """Schema for updating a product. Only fields sent are changed."""

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = None
    vendor: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    category: str | None = Field(None, max_length=MAX_CATEGORY_LENGTH)
    tags: list[str] | None = None
    is_active: bool | None = None

    @field_validator("name", "is_active")
    @classmethod
    def not_null(cls, v: Any) -> Any:
        """Required columns may be omitted but not cleared."""
        return reject_null(v)


# ============================================================
# Store Settings Schemas
# ============================================================


class StoreSettingsResponse(BaseModel):
    """Schema for storefront settings."""

    title: str
    brand_color: str
    logo_path: str | None = None
    currency: str

    model_config = ConfigDict(from_attributes=True)


class StoreSettingsUpdate(BaseModel):
    """Schema for updating storefront settings."""

    title: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    brand_color: str | None = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    logo_path: str | None = None
    currency: str | None = Field(None, min_length=3, max_length=MAX_CURRENCY_LENGTH)

    @field_validator("title", "brand_color", "currency")
    @classmethod
    def not_null(cls, v: str | None) -> str | None:
        """Required settings may be omitted but not cleared."""
        return reject_null(v)


# ============================================================
# Order Schemas
# ============================================================


class OrderStatus(str, Enum):
    """Order fulfilment status."""

    PENDING = "pending"
    NEW = "new"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CustomerInput(BaseModel):
    """Customer details supplied with an order."""

    email: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    phone: str | None = Field(None, max_length=MAX_PHONE_LENGTH)
    full_name: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    telegram_id: str | None = Field(None, max_length=MAX_SKU_LENGTH)
    telegram_username: str | None = Field(None, max_length=MAX_NAME_LENGTH)


class OrderItemInput(BaseModel):
    """A single order line."""

    variant_id: UUID | None = None
    product_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    variant_title: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class OrderCreate(BaseModel):
    """Schema for placing an order."""

    customer: CustomerInput
    items: list[OrderItemInput] = Field(..., min_length=1)
    currency: str | None = Field(None, min_length=3, max_length=MAX_CURRENCY_LENGTH)
    delivery_type: str | None = Field(None, max_length=50)
    delivery_details: str | None = None


class OrderCreated(BaseModel):
    """Schema returned after placing an order."""

    id: UUID
    order_number: str
    total: Decimal
    currency: str


class OrderItemResponse(BaseModel):
    """Schema for an order line."""

    id: UUID
    variant_id: UUID | None = None
    product_name: str
    variant_title: str | None = None
    quantity: int
    price: Decimal
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


class CustomerResponse(BaseModel):
    """Schema for the customer attached to an order."""

    id: UUID
    email: str | None = None
    phone: str | None = None
    full_name: str | None = None
    telegram_id: str | None = None
    telegram_username: str | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    """Schema for an order with its customer and lines."""

    id: UUID
    order_number: str
    status: str
    total: Decimal
    currency: str
    delivery_type: str | None = None
    delivery_details: str | None = None
    paid: bool
    paid_at: datetime | None = None
    customer: CustomerResponse | None = None
    items: list[OrderItemResponse]
    created_at: datetime


class OrderSummary(BaseModel):
    """Order as shown in the admin listing."""

    id: UUID
    order_number: str
    status: str
    total: Decimal
    currency: str
    delivery_type: str | None = None
    paid: bool
    paid_at: datetime | None = None
    customer: CustomerResponse | None = None
    created_at: datetime
    updated_at: datetime


class OrderListResponse(BaseModel):
    """Schema for a page of orders."""

    items: list[OrderSummary]
    total: int
    page: int
    page_size: int
    total_pages: int


class OrderStatusUpdate(BaseModel):
    """Schema for changing an order's status and payment flag.

    Marking an order paid stamps ``paid_at`` once; later updates keep the
    first stamp.
    """

    status: OrderStatus
    paid: bool | None = None


# ============================================================
# Dashboard Schemas
# ============================================================


class RevenueStats(BaseModel):
    """Order revenue totals."""

    total: Decimal
    paid: Decimal
    paid_orders: int


class DashboardStats(BaseModel):
    """Store counts for the admin dashboard."""

    products: int
    orders: int
    customers: int
    revenue: RevenueStats

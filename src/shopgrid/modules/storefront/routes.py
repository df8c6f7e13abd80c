"""Storefront API routes.

All routes run against the partition of the tenant resolved for the
request. Writes and back-office reads also require the admin key.
"""

from uuid import UUID

from fastapi import Query, status

from shopgrid.api.dependencies import AdminAccess
from shopgrid.core.constants import DEFAULT_PAGE_SIZE
from shopgrid.modules.storefront import router
from shopgrid.modules.storefront.schemas import (
    DashboardStats,
    OrderCreate,
    OrderCreated,
    OrderListResponse,
    OrderResponse,
    OrderStatus,
    OrderStatusUpdate,
    ProductCreate,
    ProductDetail,
    ProductListResponse,
    ProductUpdate,
    StoreSettingsResponse,
    StoreSettingsUpdate,
)
from shopgrid.modules.storefront.services import StorefrontSvc


# ============================================================
# Catalogue Routes
# ============================================================


@router.get(
    "/products",
    response_model=ProductListResponse,
    summary="List products",
    description="List active products with their lowest active price. Paging values are clamped.",
)
async def list_products(
    service: StorefrontSvc,
    page: int = Query(1, description="Page number"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, description="Items per page (max 100)"),
) -> ProductListResponse:
    """List products."""
    return await service.list_products(page, page_size)


@router.get(
    "/products/{product_id}",
    response_model=ProductDetail,
    summary="Get product",
    description="Get a product with its active variants, prices and stock.",
)
async def get_product(
    product_id: UUID,
    service: StorefrontSvc,
) -> ProductDetail:
    """Get product by ID."""
    return await service.get_product(product_id)


@router.post(
    "/products",
    response_model=ProductDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
    description="Create a product with a default variant, price and stock. Requires the admin key.",
    dependencies=[AdminAccess],
)
async def create_product(
    data: ProductCreate,
    service: StorefrontSvc,
) -> ProductDetail:
    """Create a product."""
    return await service.create_product(data)


@router.put(
    "/products/{product_id}",
    response_model=ProductDetail,
    summary="Update product",
    description="Change a product's name, description, vendor, category, tags or visibility. "
    "Requires the admin key.",
    dependencies=[AdminAccess],
)
async def update_product(
    product_id: UUID,
    data: ProductUpdate,
    service: StorefrontSvc,
) -> ProductDetail:
    """Update a product."""
    return await service.update_product(product_id, data)


@router.delete(
    "/products/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete product",
    description="Delete a product with its variants, prices and stock. Requires the admin key.",
    dependencies=[AdminAccess],
)
async def delete_product(
    product_id: UUID,
    service: StorefrontSvc,
) -> None:
    """Delete a product."""
    await service.delete_product(product_id)


# ============================================================
# Store Settings Routes
# ============================================================


@router.get(
    "/settings",
    response_model=StoreSettingsResponse,
    summary="Get store settings",
    description="Storefront title, accent colour, logo and currency.",
)
async def get_settings(service: StorefrontSvc) -> StoreSettingsResponse:
    """Get store settings."""
    return await service.get_settings()


@router.patch(
    "/settings",
    response_model=StoreSettingsResponse,
    summary="Update store settings",
    description="Change storefront settings. Requires the admin key.",
    dependencies=[AdminAccess],
)
async def update_settings(
    data: StoreSettingsUpdate,
    service: StorefrontSvc,
) -> StoreSettingsResponse:
    """Update store settings."""
    return await service.update_settings(data)


# ============================================================
# Order Routes
# ============================================================


@router.post(
    "/orders",
    response_model=OrderCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Place order",
    description="Place an order and record an order.created event.",
)
async def place_order(
    data: OrderCreate,
    service: StorefrontSvc,
) -> OrderCreated:
    """Place an order."""
    return await service.place_order(data)


@router.get(
    "/orders/{order_number}",
    response_model=OrderResponse,
    summary="Get order",
    description="Get an order with its customer and lines by order number.",
)
async def get_order(
    order_number: str,
    service: StorefrontSvc,
) -> OrderResponse:
    """Get order by number."""
    return await service.get_order(order_number)


@router.get(
    "/orders",
    response_model=OrderListResponse,
    summary="List orders",
    description="List orders newest first, optionally by status or payment. "
    "Requires the admin key.",
    dependencies=[AdminAccess],
)
async def list_orders(
    service: StorefrontSvc,
    order_status: OrderStatus | None = Query(None, alias="status", description="Filter by status"),
    paid: bool | None = Query(None, description="Filter by payment"),
    page: int = Query(1, description="Page number"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, description="Items per page (max 100)"),
) -> OrderListResponse:
    """List orders."""
    return await service.list_orders(page, page_size, order_status, paid)


@router.patch(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    summary="Update order status",
    description="Change an order's status; marking it paid stamps paid_at. Requires the admin key.",
    dependencies=[AdminAccess],
)
async def update_order_status(
    order_id: UUID,
    data: OrderStatusUpdate,
    service: StorefrontSvc,
) -> OrderResponse:
    """Update order status."""
    return await service.update_order_status(order_id, data)


# ============================================================
# Dashboard Routes
# ============================================================


@router.get(
    "/dashboard",
    response_model=DashboardStats,
    summary="Dashboard",
    description="Store counts and revenue totals. Requires the admin key.",
    dependencies=[AdminAccess],
)
async def get_dashboard(service: StorefrontSvc) -> DashboardStats:
    """Get dashboard counts."""
    return await service.get_dashboard()

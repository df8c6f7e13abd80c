"""Storefront service for tenant-local business logic."""

import math
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import Depends

from shopgrid.config import settings
from shopgrid.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE, MAX_PAGE_SIZE
from shopgrid.core.errors import NotFoundError
from shopgrid.core.tenancy.context import TenantDescriptor
from shopgrid.core.tenancy.dependencies import CurrentTenant
from shopgrid.core.utils.text import brand_color_for, default_store_title, generate_order_number
from shopgrid.modules.storefront.repos import CUSTOMER_FIELDS, OrderRepo, ProductRepo, SettingsRepo
from shopgrid.modules.storefront.schemas import (
    CustomerResponse,
    DashboardStats,
    OrderCreate,
    OrderCreated,
    OrderItemResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatus,
    OrderStatusUpdate,
    OrderSummary,
    ProductCreate,
    ProductDetail,
    ProductListResponse,
    ProductSummary,
    ProductUpdate,
    RevenueStats,
    StoreSettingsResponse,
    StoreSettingsUpdate,
    VariantResponse,
)


log = structlog.get_logger()


def clamp(value: int, lower: int, upper: int) -> int:
    """Clamp a value into ``[lower, upper]``."""
    return max(lower, min(upper, value))


class StorefrontService:
    """Service for catalogue, store settings and order operations.

    Bound to the request's tenant; the repositories only ever see that
    tenant's partition.
    """

    def __init__(
        self,
        tenant: CurrentTenant,
        products: ProductRepo,
        store_settings: SettingsRepo,
        orders: OrderRepo,
    ) -> None:
        self.tenant: TenantDescriptor = tenant
        self.products = products
        self.store_settings = store_settings
        self.orders = orders

    # ============================================================
    # Products
    # ============================================================

    async def list_products(
        self, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE
    ) -> ProductListResponse:
        """List active products.

        Out-of-range paging values are clamped rather than rejected.

        Args:
            page: Page number, clamped to 1..MAX_PAGE
            page_size: Items per page, clamped to 1..MAX_PAGE_SIZE

        Returns:
            A page of products with totals
        """
        page = clamp(page, 1, MAX_PAGE)
        page_size = clamp(page_size, 1, MAX_PAGE_SIZE)

        rows, total = await self.products.list_active(page, page_size)
        return ProductListResponse(
            items=[ProductSummary.model_validate(row) for row in rows],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
        )

    async def get_product(self, product_id: UUID) -> ProductDetail:
        """Get a product with its active variants.

        Raises:
            NotFoundError: If the product does not exist in this tenant
        """
        found = await self.products.get(product_id)
        if found is None:
            raise self._product_not_found(product_id)

        product, variant_rows = found
        variants = [VariantResponse.model_validate(row) for row in variant_rows]
        priced = [v.price for v in variants if v.price is not None]
        return ProductDetail(
            id=product.id,
            name=product.name,
            description=product.description,
            vendor=product.vendor,
            category=product.category,
            tags=product.tags,
            is_active=product.is_active,
            price=min(priced) if priced else Decimal("0"),
            variants=variants,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )

    async def create_product(self, data: ProductCreate) -> ProductDetail:
        """Create a product with a default variant, price and stock."""
        product_id = await self.products.create(
            values=data.model_dump(include={"name", "description", "vendor", "category", "tags"}),
            sku=data.sku,
            amount=data.price,
            currency=data.currency or await self._currency(),
            quantity=data.quantity,
        )
        log.info("product_created", product_id=str(product_id))
        return await self.get_product(product_id)

    async def update_product(self, product_id: UUID, data: ProductUpdate) -> ProductDetail:
        """Update a product's own columns.

        Only fields present in the request are changed.

        Raises:
            NotFoundError: If the product does not exist in this tenant
        """
        values = data.model_dump(exclude_unset=True)
        if values:
            if not await self.products.update(product_id, values):
                raise self._product_not_found(product_id)
            log.info("product_updated", product_id=str(product_id), fields=sorted(values))
        return await self.get_product(product_id)

    async def delete_product(self, product_id: UUID) -> None:
        """Delete a product with its variants, prices and stock.

        Raises:
            NotFoundError: If the product does not exist in this tenant
        """
        if not await self.products.delete(product_id):
            raise self._product_not_found(product_id)
        log.info("product_deleted", product_id=str(product_id))

    @staticmethod
    def _product_not_found(product_id: UUID) -> NotFoundError:
        return NotFoundError("Product not found", resource="product", resource_id=str(product_id))

    # ============================================================
    # Store Settings
    # ============================================================

    def _default_settings(self) -> dict[str, str | None]:
        return {
            "title": default_store_title(self.tenant.slug, self.tenant.name),
            "brand_color": brand_color_for(self.tenant.slug),
            "logo_path": None,
            "currency": settings.default_currency,
        }

    async def _currency(self) -> str:
        return (await self.get_settings()).currency

    async def get_settings(self) -> StoreSettingsResponse:
        """Get store settings, falling back to generated defaults."""
        row = await self.store_settings.get()
        if row is None:
            return StoreSettingsResponse.model_validate(self._default_settings())
        return StoreSettingsResponse.model_validate(row)

    async def update_settings(self, data: StoreSettingsUpdate) -> StoreSettingsResponse:
        """Update store settings.

        Only fields present in the request are changed.
        """
        values = data.model_dump(exclude_unset=True)
        if not values:
            return await self.get_settings()

        row = await self.store_settings.upsert(values, self._default_settings())
        log.info("store_settings_updated", fields=sorted(values))
        return StoreSettingsResponse.model_validate(row)

    # ============================================================
    # Orders
    # ============================================================

    async def place_order(self, data: OrderCreate) -> OrderCreated:
        """Place an order.

        The order total is computed from the lines. The customer is
        matched by Telegram id, then phone, and created if neither matches.

        Returns:
            The order's id, number, total and currency
        """
        lines = [
            {
                "variant_id": item.variant_id,
                "product_name": item.product_name,
                "variant_title": item.variant_title,
                "quantity": item.quantity,
                "price": item.price,
                "total": item.price * item.quantity,
            }
            for item in data.items
        ]
        total = sum((line["total"] for line in lines), Decimal("0"))

        order = await self.orders.create(
            order_values={
                "order_number": generate_order_number(),
                "total": total,
                "currency": data.currency or await self._currency(),
                "status": OrderStatus.PENDING.value,
                "delivery_type": data.delivery_type,
                "delivery_details": data.delivery_details,
            },
            customer=data.customer.model_dump(exclude_none=True),
            items=lines,
        )

        log.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(lines),
        )
        return OrderCreated(
            id=order.id,
            order_number=order.order_number,
            total=order.total,
            currency=order.currency,
        )

    async def get_order(self, order_number: str) -> OrderResponse:
        """Get an order by its number.

        Raises:
            NotFoundError: If the order does not exist in this tenant
        """
        found = await self.orders.get_by_number(order_number)
        if found is None:
            raise NotFoundError(
                "Order not found",
                resource="order",
                resource_id=order_number,
            )
        return self._order_response(*found)

    async def list_orders(
        self,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        status: OrderStatus | None = None,
        paid: bool | None = None,
    ) -> OrderListResponse:
        """List orders newest first, optionally filtered.

        Paging values are clamped like the product listing.
        """
        page = clamp(page, 1, MAX_PAGE)
        page_size = clamp(page_size, 1, MAX_PAGE_SIZE)

        rows, total = await self.orders.list_all(
            page, page_size, status.value if status is not None else None, paid
        )
        return OrderListResponse(
            items=[self._order_summary(row) for row in rows],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
        )

    async def update_order_status(self, order_id: UUID, data: OrderStatusUpdate) -> OrderResponse:
        """Change an order's status and, optionally, its payment flag.

        Raises:
            NotFoundError: If the order does not exist in this tenant
        """
        found = await self.orders.update_status(order_id, data.status.value, data.paid)
        if found is None:
            raise NotFoundError("Order not found", resource="order", resource_id=str(order_id))

        log.info(
            "order_status_changed",
            order_id=str(order_id),
            status=data.status.value,
            paid=data.paid,
        )
        return self._order_response(*found)

    @staticmethod
    def _order_summary(row: Any) -> OrderSummary:
        customer = None
        if row.customer_id is not None:
            customer = CustomerResponse(
                **{name: getattr(row, f"customer_{name}") for name in CUSTOMER_FIELDS}
            )
        return OrderSummary(
            id=row.id,
            order_number=row.order_number,
            status=row.status,
            total=row.total,
            currency=row.currency,
            delivery_type=row.delivery_type,
            paid=row.paid,
            paid_at=row.paid_at,
            customer=customer,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _order_response(order: Any, customer: Any, lines: list[Any]) -> OrderResponse:
        return OrderResponse(
            id=order.id,
            order_number=order.order_number,
            status=order.status,
            total=order.total,
            currency=order.currency,
            delivery_type=order.delivery_type,
            delivery_details=order.delivery_details,
            paid=order.paid,
            paid_at=order.paid_at,
            customer=CustomerResponse.model_validate(customer) if customer is not None else None,
            items=[OrderItemResponse.model_validate(line) for line in lines],
            created_at=order.created_at,
        )

    # ============================================================
    # Dashboard
    # ============================================================

    async def get_dashboard(self) -> DashboardStats:
        """Count products, orders and customers and total the revenue."""
        counts = await self.orders.dashboard_counts()
        return DashboardStats(
            products=counts.products,
            orders=counts.orders,
            customers=counts.customers,
            revenue=RevenueStats(
                total=counts.revenue_total,
                paid=counts.revenue_paid,
                paid_orders=counts.paid_orders,
            ),
        )


# Type alias for dependency injection
StorefrontSvc = Annotated[StorefrontService, Depends(StorefrontService)]

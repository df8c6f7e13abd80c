"""Storefront repositories over a tenant partition.

Every method is one unit of work on the request's ``PartitionHandle``, so
all statements in it run inside a single narrowed transaction. Tables are
referenced without a schema; the transaction's search path selects the
tenant's partition.
"""

from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy import ColumnElement, Row, and_, delete, func, insert, select, true, update
from sqlalchemy.ext.asyncio import AsyncSession

from shopgrid.core.database.partition import (
    customers,
    inventory,
    order_items,
    orders,
    outbox,
    prices,
    product_variants,
    products,
    store_settings,
)
from shopgrid.core.tenancy.dependencies import ScopedDB


DEFAULT_VARIANT_TITLE = "Default"
ORDER_CREATED_EVENT = "order.created"
ORDER_STATUS_CHANGED_EVENT = "order.status_changed"
CUSTOMER_FIELDS = ("id", "email", "phone", "full_name", "telegram_id", "telegram_username")


def _lowest_active_price() -> Any:
    return func.coalesce(func.min(prices.c.amount), 0).label("price")


class ProductRepository:
    """Repository for products, variants, prices and stock."""

    def __init__(self, handle: ScopedDB) -> None:
        self.handle = handle

    async def list_active(self, page: int, page_size: int) -> tuple[list[Row[Any]], int]:
        """List active products with their lowest active price.

        Args:
            page: Page number (1-indexed)
            page_size: Number of items per page

        Returns:
            Tuple of (product rows, total active products)
        """
        joined = products.outerjoin(
            product_variants, product_variants.c.product_id == products.c.id
        ).outerjoin(
            prices,
            and_(prices.c.variant_id == product_variants.c.id, prices.c.is_active.is_(true())),
        )
        stmt = (
            select(
                products.c.id,
                products.c.name,
                products.c.description,
                products.c.category,
                products.c.tags,
                products.c.created_at,
                _lowest_active_price(),
            )
            .select_from(joined)
            .where(products.c.is_active.is_(true()))
            .group_by(products.c.id)
            .order_by(products.c.created_at.desc(), products.c.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        count_stmt = (
            select(func.count()).select_from(products).where(products.c.is_active.is_(true()))
        )

        async with self.handle.transaction() as session:
            rows = list((await session.execute(stmt)).all())
            total = (await session.execute(count_stmt)).scalar_one()
        return rows, total

    async def get(self, product_id: UUID) -> tuple[Row[Any], list[Row[Any]]] | None:
        """Get a product and its active variants.

        Returns:
            Tuple of (product row, variant rows), or None if not found
        """
        price_sq = (
            select(func.min(prices.c.amount))
            .where(prices.c.variant_id == product_variants.c.id, prices.c.is_active.is_(true()))
            .scalar_subquery()
        )
        stock_sq = (
            select(func.coalesce(func.sum(inventory.c.quantity - inventory.c.reserved), 0))
            .where(inventory.c.variant_id == product_variants.c.id)
            .scalar_subquery()
        )
        variants_stmt = (
            select(
                product_variants.c.id,
                product_variants.c.title,
                product_variants.c.sku,
                product_variants.c.option1,
                product_variants.c.option2,
                product_variants.c.option3,
                product_variants.c.position,
                price_sq.label("price"),
                stock_sq.label("available"),
            )
            .where(
                product_variants.c.product_id == product_id,
                product_variants.c.is_active.is_(true()),
            )
            .order_by(product_variants.c.position, product_variants.c.created_at)
        )

        async with self.handle.transaction() as session:
            product = (
                await session.execute(select(products).where(products.c.id == product_id))
            ).one_or_none()
            if product is None:
                return None
            variants = list((await session.execute(variants_stmt)).all())
        return product, variants

    async def create(
        self,
        values: dict[str, Any],
        sku: str | None,
        amount: Decimal,
        currency: str,
        quantity: int,
    ) -> UUID:
        """Create a product with one default variant, its price and stock.

        Args:
            values: Product column values
            sku: Optional SKU of the default variant
            amount: Price of the default variant
            currency: Price currency
            quantity: Initial stock

        Returns:
            The new product's id
        """
        async with self.handle.transaction() as session:
            product_id = (
                await session.execute(insert(products).values(**values).returning(products.c.id))
            ).scalar_one()
            variant_id = (
                await session.execute(
                    insert(product_variants)
                    .values(product_id=product_id, title=DEFAULT_VARIANT_TITLE, sku=sku)
                    .returning(product_variants.c.id)
                )
            ).scalar_one()
            await session.execute(
                insert(prices).values(variant_id=variant_id, amount=amount, currency=currency)
            )
            await session.execute(
                insert(inventory).values(variant_id=variant_id, quantity=quantity)
            )
        return product_id

    async def update(self, product_id: UUID, values: dict[str, Any]) -> bool:
        """Change product columns.

        Returns:
            True if the product exists
        """
        stmt = (
            update(products)
            .where(products.c.id == product_id)
            .values(**values, updated_at=func.now())
        )
        return await self.handle.execute(stmt) > 0

    async def delete(self, product_id: UUID) -> bool:
        """Delete a product with its variants, prices and stock.

        Order lines keep their copied names; their variant reference is
        cleared by the foreign key.

        Returns:
            True if the product existed
        """
        return await self.handle.execute(delete(products).where(products.c.id == product_id)) > 0


class StoreSettingsRepository:
    """Repository for the single store_settings row."""

    def __init__(self, handle: ScopedDB) -> None:
        self.handle = handle

    async def get(self) -> Row[Any] | None:
        """Get the settings row, if one exists."""
        stmt = select(store_settings).order_by(store_settings.c.created_at).limit(1)
        return await self.handle.one_or_none(stmt)

    async def upsert(self, values: dict[str, Any], defaults: dict[str, Any]) -> Row[Any]:
        """Update the settings row, creating it from defaults if missing.

        Args:
            values: Columns to change
            defaults: Full column values used when no row exists

        Returns:
            The stored settings row
        """
        async with self.handle.transaction() as session:
            current_id = (
                await session.execute(
                    select(store_settings.c.id)
                    .order_by(store_settings.c.created_at)
                    .limit(1)
                    .with_for_update()
                )
            ).scalar_one_or_none()

            if current_id is None:
                stmt = insert(store_settings).values(**{**defaults, **values})
            else:
                stmt = (
                    update(store_settings)
                    .where(store_settings.c.id == current_id)
                    .values(**values, updated_at=func.now())
                )
            return (await session.execute(stmt.returning(*store_settings.c))).one()


class OrderRepository:
    """Repository for customers, orders, order lines and outbox events."""

    def __init__(self, handle: ScopedDB) -> None:
        self.handle = handle

    async def _find_or_create_customer(
        self, session: AsyncSession, customer: dict[str, Any]
    ) -> UUID:
        """Match a customer by Telegram id, then phone; create one otherwise."""
        for column in (customers.c.telegram_id, customers.c.phone):
            value = customer.get(column.name)
            if not value:
                continue
            existing = (
                await session.execute(select(customers.c.id).where(column == value).limit(1))
            ).scalar_one_or_none()
            if existing is not None:
                return existing

        return (
            await session.execute(
                insert(customers).values(**customer).returning(customers.c.id)
            )
        ).scalar_one()

    async def create(
        self,
        order_values: dict[str, Any],
        customer: dict[str, Any],
        items: list[dict[str, Any]],
    ) -> Row[Any]:
        """Create an order with its lines and an ``order.created`` event.

        Customer matching, the order, its lines and the outbox event are
        written in one transaction.

        Args:
            order_values: Order column values (number, total, currency, ...)
            customer: Customer column values
            items: Order line column values, without ``order_id``

        Returns:
            Row with the order's id, number, total and currency
        """
        async with self.handle.transaction() as session:
            customer_id = await self._find_or_create_customer(session, customer)
            order = (
                await session.execute(
                    insert(orders)
                    .values(**order_values, customer_id=customer_id)
                    .returning(
                        orders.c.id, orders.c.order_number, orders.c.total, orders.c.currency
                    )
                )
            ).one()
            await session.execute(
                insert(order_items), [{**item, "order_id": order.id} for item in items]
            )
            await session.execute(
                insert(outbox).values(
                    event_type=ORDER_CREATED_EVENT,
                    aggregate_type="order",
                    aggregate_id=order.id,
                    payload={
                        "order_id": str(order.id),
                        "order_number": order.order_number,
                        "customer_id": str(customer_id),
                        "total": str(order.total),
                        "currency": order.currency,
                        "item_count": len(items),
                    },
                )
            )
        return order

    async def _load(
        self, session: AsyncSession, condition: ColumnElement[bool]
    ) -> tuple[Row[Any], Row[Any] | None, list[Row[Any]]] | None:
        order = (await session.execute(select(orders).where(condition))).one_or_none()
        if order is None:
            return None

        customer = None
        if order.customer_id is not None:
            customer = (
                await session.execute(select(customers).where(customers.c.id == order.customer_id))
            ).one_or_none()

        lines = list(
            (
                await session.execute(
                    select(order_items)
                    .where(order_items.c.order_id == order.id)
                    .order_by(order_items.c.created_at, order_items.c.id)
                )
            ).all()
        )
        return order, customer, lines

    async def get_by_number(
        self, order_number: str
    ) -> tuple[Row[Any], Row[Any] | None, list[Row[Any]]] | None:
        """Get an order with its customer and lines.

        Returns:
            Tuple of (order row, customer row or None, line rows), or None
        """
        async with self.handle.transaction() as session:
            return await self._load(session, orders.c.order_number == order_number)

    async def list_all(
        self,
        page: int,
        page_size: int,
        status: str | None = None,
        paid: bool | None = None,
    ) -> tuple[list[Row[Any]], int]:
        """List orders newest first, each with its customer's columns.

        Customer columns are prefixed with ``customer_`` and are null for
        orders whose customer was deleted.

        Args:
            page: Page number (1-indexed)
            page_size: Number of items per page
            status: Only orders with this status
            paid: Only paid (True) or unpaid (False) orders

        Returns:
            Tuple of (order rows, total matching orders)
        """
        filters: list[ColumnElement[bool]] = []
        if status is not None:
            filters.append(orders.c.status == status)
        if paid is not None:
            filters.append(orders.c.paid == paid)

        stmt = (
            select(
                orders.c.id,
                orders.c.order_number,
                orders.c.status,
                orders.c.total,
                orders.c.currency,
                orders.c.delivery_type,
                orders.c.paid,
                orders.c.paid_at,
                orders.c.created_at,
                orders.c.updated_at,
                *(customers.c[name].label(f"customer_{name}") for name in CUSTOMER_FIELDS),
            )
            .select_from(orders.outerjoin(customers, customers.c.id == orders.c.customer_id))
            .where(*filters)
            .order_by(orders.c.created_at.desc(), orders.c.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        count_stmt = select(func.count()).select_from(orders).where(*filters)

        async with self.handle.transaction() as session:
            rows = list((await session.execute(stmt)).all())
            total = (await session.execute(count_stmt)).scalar_one()
        return rows, total

    async def update_status(
        self, order_id: UUID, status: str, paid: bool | None = None
    ) -> tuple[Row[Any], Row[Any] | None, list[Row[Any]]] | None:
        """Change an order's status and payment flag.

        ``paid_at`` is stamped the first time the order is marked paid. An
        ``order.status_changed`` event is written in the same transaction.

        Args:
            order_id: The order's id
            status: New status
            paid: New payment flag; unchanged when None

        Returns:
            The updated order as returned by ``get_by_number``, or None
        """
        values: dict[str, Any] = {"status": status, "updated_at": func.now()}
        if paid is not None:
            values["paid"] = paid
            if paid:
                values["paid_at"] = func.coalesce(orders.c.paid_at, func.now())

        async with self.handle.transaction() as session:
            changed = (
                await session.execute(
                    update(orders)
                    .where(orders.c.id == order_id)
                    .values(**values)
                    .returning(orders.c.id, orders.c.order_number, orders.c.paid)
                )
            ).one_or_none()
            if changed is None:
                return None

            await session.execute(
                insert(outbox).values(
                    event_type=ORDER_STATUS_CHANGED_EVENT,
                    aggregate_type="order",
                    aggregate_id=changed.id,
                    payload={
                        "order_id": str(changed.id),
                        "order_number": changed.order_number,
                        "status": status,
                        "paid": changed.paid,
                    },
                )
            )
            return await self._load(session, orders.c.id == order_id)

    async def dashboard_counts(self) -> Row[Any]:
        """Count active products, orders and customers, and sum revenue."""
        paid = orders.c.paid.is_(true())
        stmt = select(
            select(func.count())
            .select_from(products)
            .where(products.c.is_active.is_(true()))
            .scalar_subquery()
            .label("products"),
            select(func.count()).select_from(orders).scalar_subquery().label("orders"),
            select(func.count()).select_from(customers).scalar_subquery().label("customers"),
            select(func.coalesce(func.sum(orders.c.total), 0))
            .scalar_subquery()
            .label("revenue_total"),
            select(func.coalesce(func.sum(orders.c.total), 0))
            .where(paid)
            .scalar_subquery()
            .label("revenue_paid"),
            select(func.count())
            .select_from(orders)
            .where(paid)
            .scalar_subquery()
            .label("paid_orders"),
        )
        async with self.handle.transaction() as session:
            return (await session.execute(stmt)).one()


# Type aliases for dependency injection
ProductRepo = Annotated[ProductRepository, Depends(ProductRepository)]
SettingsRepo = Annotated[StoreSettingsRepository, Depends(StoreSettingsRepository)]
OrderRepo = Annotated[OrderRepository, Depends(OrderRepository)]
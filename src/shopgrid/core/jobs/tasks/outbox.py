"""Outbox relay.

Tenant partitions record domain events (``order.created``, ...) in their
``outbox`` table in the same transaction as the change itself. This task
claims unprocessed events per tenant, emits them, and stamps
``processed_at``.
"""

from functools import partial
from typing import Any

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from shopgrid.config import settings
from shopgrid.core.database.partition import outbox
from shopgrid.core.database.scoped import with_partition
from shopgrid.core.errors import TenantUnavailableError
from shopgrid.core.utils.text import partition_name_for
from shopgrid.modules.tenants.models import Tenant, TenantStatus


log = structlog.get_logger()


async def relay_batch(session: AsyncSession, batch_size: int, tenant_slug: str) -> int:
    """Claim and relay one batch of events from the narrowed partition.

    Rows are locked with ``SKIP LOCKED`` so that concurrent workers never
    relay the same event twice.

    Args:
        session: Session inside a narrowed transaction
        batch_size: Maximum number of events to claim
        tenant_slug: Tenant slug, for logging

    Returns:
        Number of events relayed
    """
    claim = (
        select(
            outbox.c.id,
            outbox.c.event_type,
            outbox.c.aggregate_type,
            outbox.c.aggregate_id,
            outbox.c.payload,
        )
        .where(outbox.c.processed_at.is_(None))
        .order_by(outbox.c.created_at)
        .limit(batch_size)
        .with_for_update(skip_locked=True)
    )
    events = (await session.execute(claim)).all()
    if not events:
        return 0

    for event in events:
        log.info(
            "outbox_event_relayed",
            tenant_slug=tenant_slug,
            event_id=str(event.id),
            event_type=event.event_type,
            aggregate_type=event.aggregate_type,
            aggregate_id=str(event.aggregate_id),
            payload=event.payload,
        )

    await session.execute(
        update(outbox)
        .where(outbox.c.id.in_([event.id for event in events]))
        .values(processed_at=func.now())
    )
    return len(events)


async def relay_outbox(ctx: dict[str, Any]) -> dict[str, int]:
    """Relay pending outbox events for every active tenant.

    A tenant whose partition cannot be reached is skipped, and one whose
    relay fails for any other reason is logged; both are retried on the
    next run while the remaining tenants are still relayed.

    Args:
        ctx: Worker context containing database session factory

    Returns:
        Dict with tenant, event, skipped and failed partition counts
    """
    session_factory = ctx["db_session_factory"]

    async with session_factory() as session:
        tenants = (
            await session.execute(
                select(Tenant.id, Tenant.slug)
                .where(Tenant.status == TenantStatus.ACTIVE)
                .order_by(Tenant.created_at)
            )
        ).all()

    relayed = 0
    skipped = 0
    failed = 0
    for tenant in tenants:
        partition = partition_name_for(tenant.id, settings.partition_prefix)
        relay = partial(
            relay_batch, batch_size=settings.outbox_batch_size, tenant_slug=tenant.slug
        )
        try:
            relayed += await with_partition(
                partition,
                relay,
                session_factory=session_factory,
            )
        except TenantUnavailableError:
            log.warning(
                "outbox_partition_unavailable", tenant_slug=tenant.slug, partition=partition
            )
            skipped += 1
        except Exception:
            log.exception("outbox_relay_failed", tenant_slug=tenant.slug, partition=partition)
            failed += 1

    log.info(
        "relay_outbox_complete",
        tenants=len(tenants),
        events_relayed=relayed,
        partitions_skipped=skipped,
        partitions_failed=failed,
    )

    return {
        "tenants": len(tenants),
        "events_relayed": relayed,
        "partitions_skipped": skipped,
        "partitions_failed": failed,
    }

"""Order status transitions."""

import uuid
from typing import Awaitable, Callable, Optional

from fastapi import HTTPException, status
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.distribution_service.models import Order, OrderStatus
from services.distribution_service.services.cash_service import get_order
from services.distribution_service.services.settlement_service import (
    invalidate_company_summary,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# Forward path; CANCELLED is reachable from any non-terminal status.
ORDER_FLOW = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)
TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    if current in TERMINAL_ORDER_STATUSES:
        return False
    if target == OrderStatus.CANCELLED:
        return True
    index = ORDER_FLOW.index(current)
    return index + 1 < len(ORDER_FLOW) and ORDER_FLOW[index + 1] == target


async def update_order_status(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    new_status: OrderStatus,
    changed_by: str,
    authorize: Optional[Callable[[Order], Awaitable[None]]] = None,
) -> Order:
    order = await get_order(db, order_id, for_update=True)
    if authorize is not None:
        await authorize(order)

    previous = order.status
    if not can_transition(previous, new_status):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot move order from {previous.value} to {new_status.value}",
        )

    now = utc_now()
    order.status = new_status
    order.updated_at = now
    if new_status == OrderStatus.DELIVERED:
        order.delivered_at = now
    elif new_status == OrderStatus.CANCELLED:
        order.cancelled_at = now

    await db.commit()
    await db.refresh(order)
    await invalidate_company_summary(order.company_id)

    logger.info(
        "Order %s moved %s -> %s by %s",
        order.order_number,
        previous.value,
        new_status.value,
        changed_by,
    )
    return order

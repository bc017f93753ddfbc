"""Cash-on-delivery collection and reconciliation."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Awaitable, Callable, Optional

from fastapi import HTTPException, status
from libs.common.currency import ZERO, sum_money, to_decimal, to_money
from libs.common.datetime_utils import to_utc, utc_now
from libs.common.logging import get_logger
from services.distribution_service.models import (
    CashCollection,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    Settlement,
    SettlementStatus,
)
from services.distribution_service.services.settlement_service import (
    collected_amounts,
    get_company,
    invalidate_company_summary,
)
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# Raises HTTPException when the caller may not touch the order
OrderAuthorizer = Callable[[Order], Awaitable[None]]


async def get_order(
    db: AsyncSession, order_id: uuid.UUID, *, for_update: bool = False
) -> Order:
    query = select(Order).where(Order.id == order_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found",
        )
    return order


async def collected_amount(db: AsyncSession, order_id: uuid.UUID) -> Decimal:
    result = await db.execute(
        select(func.coalesce(func.sum(CashCollection.amount), 0)).where(
            CashCollection.order_id == order_id
        )
    )
    return to_money(result.scalar_one())


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


async def mark_cash_collected(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    amount,
    collected_by: str,
    notes: Optional[str] = None,
    authorize: Optional[OrderAuthorizer] = None,
) -> tuple[CashCollection, Order, Decimal]:
    """Record cash handed over for a delivered cash order.

    Partial hand-overs are appended; the order becomes PARTIALLY_PAID until
    the collected sum reaches its total, then PAID. Over-collection is kept
    as recorded and shows up as a reconciliation discrepancy.

    Returns ``(collection, order, collected_total)``.
    """
    order = await get_order(db, order_id, for_update=True)
    if authorize is not None:
        await authorize(order)

    if order.payment_status == PaymentStatus.PAID:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cash for this order has already been collected",
        )
    if order.payment_method != PaymentMethod.CASH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Order is not a cash-on-delivery order",
        )
    if order.status != OrderStatus.DELIVERED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cash can only be collected for delivered orders",
        )
    amount = to_money(amount)
    if amount <= ZERO:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Amount must be greater than zero",
        )

    previously_collected = await collected_amount(db, order.id)
    collected_total = to_money(previously_collected + amount)
    order_total = to_money(order.total)

    collection = CashCollection(
        order_id=order.id,
        amount=amount,
        collected_by=collected_by,
        notes=notes,
    )
    db.add(collection)

    now = utc_now()
    if collected_total >= order_total:
        order.payment_status = PaymentStatus.PAID
        order.paid_at = now
    else:
        order.payment_status = PaymentStatus.PARTIALLY_PAID
    order.updated_at = now

    if collected_total > order_total:
        logger.warning(
            "Over-collection on order %s: collected %s against total %s",
            order.order_number,
            collected_total,
            order_total,
        )

    await db.commit()
    await db.refresh(collection)
    await invalidate_company_summary(order.company_id)

    logger.info(
        "Cash collected for order %s: amount=%s total_collected=%s status=%s by=%s",
        order.order_number,
        amount,
        collected_total,
        order.payment_status.value,
        collected_by,
    )
    return collection, order, collected_total


async def bulk_mark_cash_collected(
    db: AsyncSession,
    *,
    items: list,
    collected_by: str,
    authorize: Optional[OrderAuthorizer] = None,
) -> list[dict]:
    """Apply several collections; each item succeeds or fails on its own."""
    results = []
    for item in items:
        try:
            _, order, _ = await mark_cash_collected(
                db,
                order_id=item.order_id,
                amount=item.amount,
                collected_by=collected_by,
                notes=item.notes,
                authorize=authorize,
            )
            results.append(
                {
                    "order_id": item.order_id,
                    "success": True,
                    "payment_status": order.payment_status,
                }
            )
        except HTTPException as e:
            await db.rollback()
            results.append(
                {"order_id": item.order_id, "success": False, "error": e.detail}
            )
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Bulk cash collection failed for order %s: %s", item.order_id, e)
            results.append(
                {
                    "order_id": item.order_id,
                    "success": False,
                    "error": "Failed to record collection",
                }
            )

    succeeded = sum(1 for r in results if r["success"])
    logger.info(
        "Bulk cash collection by %s: %d succeeded, %d failed",
        collected_by,
        succeeded,
        len(results) - succeeded,
    )
    return results


async def list_cash_collections(
    db: AsyncSession, order_id: uuid.UUID
) -> list[CashCollection]:
    result = await db.execute(
        select(CashCollection)
        .where(CashCollection.order_id == order_id)
        .order_by(CashCollection.collected_at)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


def _is_covered(delivered_at: datetime, settlements: list[Settlement]) -> bool:
    delivered_at = to_utc(delivered_at)
    return any(
        to_utc(s.period_start) <= delivered_at < to_utc(s.period_end)
        for s in settlements
    )


async def reconcile_cash(
    db: AsyncSession,
    *,
    company_id: uuid.UUID,
    start: datetime,
    end: datetime,
) -> dict:
    """Compare expected and collected cash for delivered cash orders.

    ``discrepancy = collected - expected``; nothing is corrected here. An
    order counts as verified only when a VERIFIED or SETTLED settlement
    covers its delivery time.
    """
    start, end = to_utc(start), to_utc(end)
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be after end_date",
        )
    await get_company(db, company_id)

    orders_result = await db.execute(
        select(Order)
        .where(
            Order.company_id == company_id,
            Order.status == OrderStatus.DELIVERED,
            Order.payment_method == PaymentMethod.CASH,
            Order.delivered_at >= start,
            Order.delivered_at < end,
        )
        .order_by(Order.delivered_at)
    )
    orders = list(orders_result.scalars().all())

    settlements_result = await db.execute(
        select(Settlement).where(
            Settlement.company_id == company_id,
            Settlement.status.in_([SettlementStatus.VERIFIED, SettlementStatus.SETTLED]),
            Settlement.period_start < end,
            Settlement.period_end > start,
        )
    )
    settlements = list(settlements_result.scalars().all())

    items = []
    for order in orders:
        # A failed lookup only rolls back its own savepoint
        try:
            async with db.begin_nested():
                collected = await collected_amount(db, order.id)
            expected = to_money(order.total)
            items.append(
                {
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "success": True,
                    "expected_amount": float(expected),
                    "collected_amount": float(collected),
                    "discrepancy": float(to_money(collected - expected)),
                    "verified": _is_covered(order.delivered_at, settlements),
                }
            )
        except SQLAlchemyError as e:
            logger.error("Reconciliation lookup failed for order %s: %s", order.id, e)
            items.append(
                {
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "success": False,
                    "error": "Failed to load collections for order",
                }
            )

    ok = [i for i in items if i["success"]]
    total_expected = sum_money(to_decimal(i["expected_amount"]) for i in ok)
    total_collected = sum_money(to_decimal(i["collected_amount"]) for i in ok)
    discrepancies = [i for i in ok if i["discrepancy"] != 0]
    if discrepancies:
        logger.warning(
            "Cash reconciliation for company %s found %d discrepant orders",
            company_id,
            len(discrepancies),
        )

    return {
        "company_id": company_id,
        "start_date": start,
        "end_date": end,
        "total_orders": len(items),
        "total_expected": float(total_expected),
        "total_collected": float(total_collected),
        "total_discrepancy": float(to_money(total_collected - total_expected)),
        "items": items,
    }


async def get_pending_cash_collections(db: AsyncSession, company_id: uuid.UUID) -> dict:
    """Delivered cash orders whose cash has not been fully collected."""
    await get_company(db, company_id)
    result = await db.execute(
        select(Order)
        .where(
            Order.company_id == company_id,
            Order.status == OrderStatus.DELIVERED,
            Order.payment_method == PaymentMethod.CASH,
            Order.payment_status != PaymentStatus.PAID,
        )
        .order_by(Order.delivered_at)
    )
    orders = list(result.scalars().all())
    collected_by_order = await collected_amounts(db, [o.id for o in orders])

    now = utc_now()
    pending = []
    total_outstanding = ZERO
    for order in orders:
        collected = collected_by_order.get(order.id, ZERO)
        outstanding = max(to_money(to_decimal(order.total) - collected), ZERO)
        total_outstanding += outstanding
        delivered_at = to_utc(order.delivered_at) if order.delivered_at else None
        pending.append(
            {
                "order_id": order.id,
                "order_number": order.order_number,
                "shop_id": order.shop_id,
                "total": float(to_money(order.total)),
                "collected": float(collected),
                "outstanding": float(outstanding),
                "delivered_at": delivered_at,
                "days_pending": (now - delivered_at).days if delivered_at else 0,
            }
        )
    return {
        "company_id": company_id,
        "orders": pending,
        "total_outstanding": float(to_money(total_outstanding)),
    }

"""Settlement computation and lifecycle.

Status flow: PENDING -> VERIFIED -> SETTLED, or PENDING -> DISPUTED.
Figures are recomputed in place while PENDING and frozen afterwards.
"""

import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from libs.common.cache import cache_delete_prefix, cache_get, cache_set, make_key
from libs.common.config import get_settings
from libs.common.currency import ZERO, apply_rate, sum_money, to_decimal, to_money
from libs.common.datetime_utils import local_day_bounds, local_today, to_utc, utc_now
from libs.common.logging import get_logger
from services.distribution_service.models import (
    CashCollection,
    Company,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    Settlement,
    SettlementStatus,
)
from services.distribution_service.models.enums import (
    IN_FLIGHT_ORDER_STATUSES,
    LOCKED_SETTLEMENT_STATUSES,
)
from services.distribution_service.services.settlement_calculator import (
    OrderFigures,
    calculate_settlement_totals,
)
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

SUMMARY_CACHE_PREFIX = "settlement-summary"


def summary_cache_prefix(company_id: uuid.UUID) -> str:
    return make_key(SUMMARY_CACHE_PREFIX, company_id)


async def invalidate_company_summary(company_id: uuid.UUID) -> None:
    await cache_delete_prefix(summary_cache_prefix(company_id))


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_company(db: AsyncSession, company_id: uuid.UUID) -> Company:
    company = await db.get(Company, company_id)
    if not company:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Company not found",
        )
    return company


async def get_settlement(
    db: AsyncSession, settlement_id: uuid.UUID, *, for_update: bool = False
) -> Settlement:
    query = select(Settlement).where(Settlement.id == settlement_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    settlement = result.scalar_one_or_none()
    if not settlement:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Settlement not found",
        )
    return settlement


async def load_delivered_orders(
    db: AsyncSession,
    company_id: uuid.UUID,
    period_start: datetime,
    period_end: datetime,
) -> list[Order]:
    """Delivered orders with ``delivered_at`` in ``[period_start, period_end)``."""
    result = await db.execute(
        select(Order)
        .where(
            Order.company_id == company_id,
            Order.status == OrderStatus.DELIVERED,
            Order.delivered_at >= period_start,
            Order.delivered_at < period_end,
        )
        .order_by(Order.delivered_at)
    )
    return list(result.scalars().all())


async def collected_amounts(
    db: AsyncSession, order_ids: list[uuid.UUID]
) -> dict[uuid.UUID, Decimal]:
    """Cash collected so far per order; orders without collections are absent."""
    if not order_ids:
        return {}
    result = await db.execute(
        select(CashCollection.order_id, func.sum(CashCollection.amount))
        .where(CashCollection.order_id.in_(order_ids))
        .group_by(CashCollection.order_id)
    )
    return {order_id: to_money(total) for order_id, total in result.all()}


# ---------------------------------------------------------------------------
# Compute
# ---------------------------------------------------------------------------


async def create_settlement(
    db: AsyncSession,
    *,
    company_id: uuid.UUID,
    period_start: datetime,
    period_end: datetime,
    created_by: Optional[str] = None,
) -> Settlement:
    """Compute (or recompute) the settlement for one company and period.

    A PENDING row for the same period is refreshed in place. A VERIFIED,
    SETTLED or DISPUTED row is never touched again and yields 409.
    """
    if period_start is None or period_end is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="period_start and period_end are required",
        )
    period_start, period_end = to_utc(period_start), to_utc(period_end)
    if period_start > period_end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="period_start must not be after period_end",
        )

    company = await get_company(db, company_id)

    result = await db.execute(
        select(Settlement)
        .where(
            Settlement.company_id == company_id,
            Settlement.period_start == period_start,
            Settlement.period_end == period_end,
        )
        .with_for_update()
    )
    settlement = result.scalar_one_or_none()
    if settlement and settlement.status in LOCKED_SETTLEMENT_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Settlement for this period is already {settlement.status.value}",
        )

    orders = await load_delivered_orders(db, company_id, period_start, period_end)
    totals = calculate_settlement_totals(
        (
            OrderFigures(
                total=to_decimal(o.total),
                payment_method=o.payment_method,
                payment_status=o.payment_status,
                status=o.status,
            )
            for o in orders
        ),
        company.commission_rate,
    )

    if settlement is None:
        settlement = Settlement(
            company_id=company_id,
            period_start=period_start,
            period_end=period_end,
            status=SettlementStatus.PENDING,
            created_by=created_by,
        )
        db.add(settlement)
        action = "Created"
    else:
        action = "Recomputed"

    settlement.total_orders = totals.total_orders
    settlement.total_revenue = totals.total_revenue
    settlement.total_commission = totals.total_commission
    settlement.total_payout = totals.total_payout
    settlement.cash_collected = totals.cash_collected
    settlement.cash_to_remit = totals.cash_to_remit
    settlement.online_revenue = totals.online_revenue
    settlement.commission_rate = totals.commission_rate
    settlement.updated_at = utc_now()

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning(
            "Concurrent settlement insert for company %s period %s..%s",
            company_id,
            period_start.isoformat(),
            period_end.isoformat(),
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Settlement for this period already exists",
        )
    await db.refresh(settlement)
    await invalidate_company_summary(company_id)

    logger.info(
        "%s settlement %s for company %s: orders=%d revenue=%s commission=%s payout=%s",
        action,
        settlement.id,
        company_id,
        totals.total_orders,
        totals.total_revenue,
        totals.total_commission,
        totals.total_payout,
    )
    return settlement


async def process_daily_settlement(
    db: AsyncSession,
    *,
    company_id: uuid.UUID,
    day: Optional[date] = None,
    created_by: Optional[str] = "system",
) -> Settlement:
    """Settle one local calendar day (``Settings.TIMEZONE``) for a company."""
    tz_name = get_settings().TIMEZONE
    day = day or local_today(tz_name)
    period_start, period_end = local_day_bounds(day, tz_name)
    return await create_settlement(
        db,
        company_id=company_id,
        period_start=period_start,
        period_end=period_end,
        created_by=created_by,
    )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


async def _transition(
    db: AsyncSession,
    settlement_id: uuid.UUID,
    *,
    expected: SettlementStatus,
    target: SettlementStatus,
) -> Settlement:
    settlement = await get_settlement(db, settlement_id, for_update=True)
    if settlement.status != expected:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=(
                f"Cannot move settlement from {settlement.status.value} "
                f"to {target.value}"
            ),
        )
    settlement.status = target
    settlement.updated_at = utc_now()
    return settlement


async def _commit_transition(db: AsyncSession, settlement: Settlement) -> Settlement:
    await db.commit()
    await db.refresh(settlement)
    await invalidate_company_summary(settlement.company_id)
    logger.info(
        "Settlement %s for company %s is now %s",
        settlement.id,
        settlement.company_id,
        settlement.status.value,
    )
    return settlement


async def verify_settlement(
    db: AsyncSession,
    *,
    settlement_id: uuid.UUID,
    verified_by: str,
    notes: Optional[str] = None,
) -> Settlement:
    settlement = await _transition(
        db,
        settlement_id,
        expected=SettlementStatus.PENDING,
        target=SettlementStatus.VERIFIED,
    )
    settlement.verified_by = verified_by
    settlement.verified_at = utc_now()
    if notes:
        settlement.notes = notes
    return await _commit_transition(db, settlement)


async def mark_settlement_settled(
    db: AsyncSession,
    *,
    settlement_id: uuid.UUID,
    settled_by: str,
    notes: Optional[str] = None,
) -> Settlement:
    settlement = await _transition(
        db,
        settlement_id,
        expected=SettlementStatus.VERIFIED,
        target=SettlementStatus.SETTLED,
    )
    settlement.settled_by = settled_by
    settlement.settled_at = utc_now()
    if notes:
        settlement.notes = notes
    return await _commit_transition(db, settlement)


async def dispute_settlement(
    db: AsyncSession,
    *,
    settlement_id: uuid.UUID,
    raised_by: str,
    reason: str,
) -> Settlement:
    settlement = await _transition(
        db,
        settlement_id,
        expected=SettlementStatus.PENDING,
        target=SettlementStatus.DISPUTED,
    )
    settlement.disputed_by = raised_by
    settlement.disputed_at = utc_now()
    settlement.dispute_reason = reason
    return await _commit_transition(db, settlement)


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


async def get_settlement_history(
    db: AsyncSession, company_id: uuid.UUID, limit: int = 30
) -> list[Settlement]:
    result = await db.execute(
        select(Settlement)
        .where(Settlement.company_id == company_id)
        .order_by(Settlement.period_start.desc(), Settlement.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


def _resolve_window(
    start: Optional[datetime], end: Optional[datetime]
) -> tuple[datetime, datetime]:
    end = to_utc(end) if end else utc_now()
    if start:
        start = to_utc(start)
    else:
        start = end - timedelta(days=get_settings().SUMMARY_WINDOW_DAYS)
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be after end_date",
        )
    return start, end


async def get_settlement_summary(
    db: AsyncSession,
    company_id: uuid.UUID,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> dict:
    """Order counts, financials and cash flow for a company over a window.

    Orders are selected by creation time. The result is cached per window
    when only explicit bounds are given.
    """
    explicit_window = start is not None and end is not None
    start, end = _resolve_window(start, end)
    cache_key = make_key(
        summary_cache_prefix(company_id), start.isoformat(), end.isoformat()
    )
    if explicit_window:
        cached = await cache_get(cache_key)
        if cached is not None:
            return cached

    company = await get_company(db, company_id)
    rate = to_decimal(company.commission_rate)

    result = await db.execute(
        select(Order).where(
            Order.company_id == company_id,
            Order.created_at >= start,
            Order.created_at < end,
        )
    )
    orders = list(result.scalars().all())

    delivered = [o for o in orders if o.status == OrderStatus.DELIVERED]
    cash_orders = [o for o in orders if o.payment_method == PaymentMethod.CASH]
    online_orders = [o for o in orders if o.payment_method == PaymentMethod.ONLINE]

    total_revenue = sum_money(o.total for o in delivered)
    cash_collected = sum_money(
        o.total
        for o in delivered
        if o.payment_method == PaymentMethod.CASH
        and o.payment_status == PaymentStatus.PAID
    )
    unpaid_cash = [
        o
        for o in delivered
        if o.payment_method == PaymentMethod.CASH
        and o.payment_status != PaymentStatus.PAID
    ]
    collected_by_order = await collected_amounts(db, [o.id for o in unpaid_cash])
    pending_cash = sum_money(
        max(to_decimal(o.total) - collected_by_order.get(o.id, ZERO), ZERO)
        for o in unpaid_cash
    )
    online_payments = sum_money(
        o.total for o in delivered if o.payment_method == PaymentMethod.ONLINE
    )
    to_collect = sum_money(
        o.total for o in cash_orders if o.status in IN_FLIGHT_ORDER_STATUSES
    )
    commission = apply_rate(total_revenue, rate)

    remitted_result = await db.execute(
        select(func.coalesce(func.sum(Settlement.cash_to_remit), 0)).where(
            Settlement.company_id == company_id,
            Settlement.status == SettlementStatus.SETTLED,
            Settlement.period_start >= start,
            Settlement.period_end <= end,
        )
    )
    remitted = to_money(remitted_result.scalar_one())

    summary = {
        "company_id": str(company_id),
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "orders": {
            "total": len(orders),
            "delivered": len(delivered),
            "cash": len(cash_orders),
            "online": len(online_orders),
        },
        "financials": {
            "total_revenue": float(total_revenue),
            "cash_collected": float(cash_collected),
            "online_payments": float(online_payments),
            "total_commission": float(commission),
            "net_payout": float(to_money(total_revenue - commission)),
            "pending_cash": float(pending_cash),
        },
        "cash_flow": {
            "to_collect": float(to_collect),
            "collected": float(cash_collected),
            "to_remit": float(apply_rate(cash_collected, rate)),
            "remitted": float(remitted),
        },
    }
    if explicit_window:
        await cache_set(cache_key, summary, ttl=get_settings().SUMMARY_CACHE_TTL)
    return summary


async def calculate_platform_earnings(
    db: AsyncSession, start: datetime, end: datetime
) -> dict:
    """Revenue and commission across every company for delivered orders."""
    start, end = to_utc(start), to_utc(end)
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be after end_date",
        )

    result = await db.execute(
        select(
            Company.id,
            Company.name_en,
            Company.commission_rate,
            func.count(Order.id),
            func.coalesce(func.sum(Order.total), 0),
        )
        .join(Order, Order.company_id == Company.id)
        .where(
            Order.status == OrderStatus.DELIVERED,
            Order.delivered_at >= start,
            Order.delivered_at < end,
        )
        .group_by(Company.id, Company.name_en, Company.commission_rate)
        .order_by(Company.name_en)
    )

    companies = []
    total_orders = 0
    total_revenue = ZERO
    total_commission = ZERO
    for company_id, name, rate, order_count, revenue in result.all():
        revenue = to_money(revenue)
        commission = apply_rate(revenue, rate)
        total_orders += order_count
        total_revenue += revenue
        total_commission += commission
        companies.append(
            {
                "company_id": company_id,
                "company_name": name,
                "total_orders": order_count,
                "revenue": float(revenue),
                "commission": float(commission),
            }
        )

    return {
        "period": {"start": start, "end": end},
        "total_orders": total_orders,
        "total_revenue": float(to_money(total_revenue)),
        "total_commission": float(to_money(total_commission)),
        "companies": companies,
    }


async def list_active_company_ids(db: AsyncSession) -> list[uuid.UUID]:
    result = await db.execute(
        select(Company.id).where(Company.is_active.is_(True)).order_by(Company.created_at)
    )
    return list(result.scalars().all())

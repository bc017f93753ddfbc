"""Settlement arithmetic, kept free of I/O.

The service layer loads orders and hands plain ``OrderFigures`` here, so the
money rules can be exercised without a database.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from libs.common.currency import ZERO, apply_rate, sum_money, to_decimal, to_money
from services.distribution_service.models.enums import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)


@dataclass(frozen=True)
class OrderFigures:
    """The fields of a delivered order that feed a settlement."""

    total: Decimal
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    status: OrderStatus = OrderStatus.DELIVERED


@dataclass(frozen=True)
class SettlementTotals:
    total_orders: int
    total_revenue: Decimal
    total_commission: Decimal
    total_payout: Decimal
    cash_collected: Decimal
    cash_to_remit: Decimal
    online_revenue: Decimal
    commission_rate: Decimal


def validate_commission_rate(rate) -> Decimal:
    rate = to_decimal(rate)
    if rate < 0 or rate > 1:
        raise ValueError(f"commission rate must be within [0, 1], got {rate}")
    return rate


def calculate_settlement_totals(
    orders: Iterable[OrderFigures], commission_rate
) -> SettlementTotals:
    """Aggregate delivered orders into settlement figures.

    Non-delivered orders are ignored. Commission is taken on the rounded
    revenue and payout is the remainder, so ``payout + commission == revenue``
    holds exactly. Cash collected counts fully paid cash orders only; the
    platform's share of that cash is what the company remits.
    """
    rate = validate_commission_rate(commission_rate)
    delivered = [o for o in orders if o.status == OrderStatus.DELIVERED]

    total_revenue = sum_money(o.total for o in delivered)
    total_commission = apply_rate(total_revenue, rate)
    total_payout = to_money(total_revenue - total_commission)

    cash_collected = sum_money(
        o.total
        for o in delivered
        if o.payment_method == PaymentMethod.CASH
        and o.payment_status == PaymentStatus.PAID
    )
    online_revenue = sum_money(
        o.total for o in delivered if o.payment_method == PaymentMethod.ONLINE
    )
    cash_to_remit = apply_rate(cash_collected, rate)

    return SettlementTotals(
        total_orders=len(delivered),
        total_revenue=total_revenue,
        total_commission=total_commission,
        total_payout=max(total_payout, ZERO),
        cash_collected=cash_collected,
        cash_to_remit=cash_to_remit,
        online_revenue=online_revenue,
        commission_rate=rate,
    )

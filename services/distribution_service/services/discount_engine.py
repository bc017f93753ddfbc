"""Promotion discount engine.

Pure functions: callers load promotions and cart lines, this module picks the
best promotion per line and prices it. Promotions never stack; each cart line
gets at most one.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from libs.common.currency import ZERO, percent_of, sum_money, to_decimal, to_money
from libs.common.datetime_utils import to_utc
from services.distribution_service.models.enums import PromotionType


@dataclass(frozen=True)
class PromotionTerms:
    id: uuid.UUID
    promotion_type: PromotionType
    value: Decimal
    start_date: datetime
    end_date: datetime
    zones: tuple[str, ...]
    created_at: datetime
    name_en: str = ""
    name_ar: str = ""
    is_active: bool = True
    min_purchase: Optional[Decimal] = None
    max_discount: Optional[Decimal] = None
    buy_quantity: Optional[int] = None
    get_quantity: Optional[int] = None
    product_ids: frozenset = field(default_factory=frozenset)
    category_ids: frozenset = field(default_factory=frozenset)
    usage_limit: Optional[int] = None
    usage_count: int = 0

    @classmethod
    def from_model(cls, promotion) -> "PromotionTerms":
        return cls(
            id=promotion.id,
            promotion_type=PromotionType(promotion.promotion_type),
            value=to_decimal(promotion.value),
            start_date=to_utc(promotion.start_date),
            end_date=to_utc(promotion.end_date),
            zones=tuple(promotion.zones or ()),
            created_at=to_utc(promotion.created_at),
            name_en=promotion.name_en,
            name_ar=promotion.name_ar,
            is_active=promotion.is_active,
            min_purchase=(
                to_decimal(promotion.min_purchase)
                if promotion.min_purchase is not None
                else None
            ),
            max_discount=(
                to_decimal(promotion.max_discount)
                if promotion.max_discount is not None
                else None
            ),
            buy_quantity=promotion.buy_quantity,
            get_quantity=promotion.get_quantity,
            product_ids=frozenset(promotion.product_ids),
            category_ids=frozenset(promotion.category_ids),
            usage_limit=promotion.usage_limit,
            usage_count=promotion.usage_count or 0,
        )

    @property
    def exhausted(self) -> bool:
        return self.usage_limit is not None and self.usage_count >= self.usage_limit

    @property
    def is_targeted(self) -> bool:
        return bool(self.product_ids or self.category_ids)


@dataclass(frozen=True)
class CartLine:
    product_id: uuid.UUID
    quantity: int
    unit_price: Decimal
    category_id: Optional[uuid.UUID] = None

    @property
    def subtotal(self) -> Decimal:
        return to_money(to_decimal(self.unit_price) * self.quantity)


@dataclass(frozen=True)
class LineDiscount:
    product_id: uuid.UUID
    subtotal: Decimal
    discount: Decimal
    promotion_id: Optional[uuid.UUID] = None


@dataclass
class AppliedPromotion:
    promotion_id: uuid.UUID
    name_en: str
    name_ar: str
    promotion_type: PromotionType
    discount: Decimal = ZERO
    applied_to: list[uuid.UUID] = field(default_factory=list)


@dataclass
class CartDiscount:
    subtotal: Decimal
    total_discount: Decimal
    lines: list[LineDiscount]
    applied_promotions: list[AppliedPromotion]

    @property
    def total(self) -> Decimal:
        return to_money(self.subtotal - self.total_discount)


# ---------------------------------------------------------------------------
# Per-line pricing
# ---------------------------------------------------------------------------


def _raw_discount(terms: PromotionTerms, line: CartLine, subtotal: Decimal) -> Decimal:
    if terms.promotion_type == PromotionType.PERCENTAGE:
        return percent_of(subtotal, terms.value)
    if terms.promotion_type == PromotionType.FIXED:
        return to_money(terms.value)
    if terms.promotion_type == PromotionType.BUY_X_GET_Y:
        buy, get = terms.buy_quantity or 0, terms.get_quantity or 0
        if buy <= 0 or get <= 0:
            return ZERO
        free_units = (line.quantity // (buy + get)) * get
        return to_money(to_decimal(line.unit_price) * free_units)
    return ZERO


def compute_line_discount(terms: PromotionTerms, line: CartLine) -> Decimal:
    """Discount a promotion gives one cart line.

    Zero below ``min_purchase``; otherwise capped at ``max_discount`` (when
    set) and at the line subtotal.
    """
    subtotal = line.subtotal
    if terms.min_purchase is not None and subtotal < terms.min_purchase:
        return ZERO

    discount = _raw_discount(terms, line, subtotal)
    if terms.max_discount is not None:
        discount = min(discount, to_money(terms.max_discount))
    discount = min(discount, subtotal)
    return to_money(max(discount, ZERO))


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def is_live(terms: PromotionTerms, now: datetime) -> bool:
    """Active flag set, inside ``[start_date, end_date)`` and usage left."""
    now = to_utc(now)
    return (
        terms.is_active
        and terms.start_date <= now < terms.end_date
        and not terms.exhausted
    )


def covers_zone(terms: PromotionTerms, zone) -> bool:
    zone_value = getattr(zone, "value", zone)
    return zone_value in terms.zones


def targets_line(terms: PromotionTerms, line: CartLine) -> bool:
    if not terms.is_targeted:
        return True
    if line.product_id in terms.product_ids:
        return True
    return line.category_id is not None and line.category_id in terms.category_ids


def is_applicable(terms: PromotionTerms, line: CartLine, zone, now: datetime) -> bool:
    return is_live(terms, now) and covers_zone(terms, zone) and targets_line(terms, line)


def select_best_promotion(
    promotions: Iterable[PromotionTerms],
    line: CartLine,
    zone,
    now: datetime,
) -> tuple[Optional[PromotionTerms], Decimal]:
    """Pick the promotion giving ``line`` the largest discount.

    Ties go to the earliest-created promotion. Returns ``(None, 0)`` when
    nothing applicable gives a positive discount.
    """
    best: Optional[PromotionTerms] = None
    best_discount = ZERO
    for terms in sorted(promotions, key=lambda t: (t.created_at, str(t.id))):
        if not is_applicable(terms, line, zone, now):
            continue
        discount = compute_line_discount(terms, line)
        if discount > best_discount:
            best, best_discount = terms, discount
    return best, best_discount


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


def apply_promotions(
    lines: Iterable[CartLine],
    promotions: Iterable[PromotionTerms],
    zone,
    now: datetime,
) -> CartDiscount:
    """Price a whole cart.

    ``applied_promotions`` lists each promotion once, in the order it was
    first used, with its summed discount and the products it touched.
    """
    lines = list(lines)
    promotions = list(promotions)

    line_results: list[LineDiscount] = []
    applied: dict[uuid.UUID, AppliedPromotion] = {}

    for line in lines:
        terms, discount = select_best_promotion(promotions, line, zone, now)
        line_results.append(
            LineDiscount(
                product_id=line.product_id,
                subtotal=line.subtotal,
                discount=discount,
                promotion_id=terms.id if terms else None,
            )
        )
        if terms is None:
            continue
        entry = applied.get(terms.id)
        if entry is None:
            entry = applied[terms.id] = AppliedPromotion(
                promotion_id=terms.id,
                name_en=terms.name_en,
                name_ar=terms.name_ar,
                promotion_type=terms.promotion_type,
            )
        entry.discount = to_money(entry.discount + discount)
        if line.product_id not in entry.applied_to:
            entry.applied_to.append(line.product_id)

    return CartDiscount(
        subtotal=sum_money(r.subtotal for r in line_results),
        total_discount=sum_money(r.discount for r in line_results),
        lines=line_results,
        applied_promotions=list(applied.values()),
    )

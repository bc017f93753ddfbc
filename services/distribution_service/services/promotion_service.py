"""Promotion management and cart pricing."""

import uuid
from datetime import datetime
from typing import Iterable, Optional

from fastapi import HTTPException, status
from libs.common.currency import to_decimal
from libs.common.datetime_utils import to_utc, utc_now
from libs.common.logging import get_logger
from services.distribution_service.models import (
    Category,
    Product,
    Promotion,
    PromotionCategory,
    PromotionProduct,
    PromotionType,
    Zone,
)
from services.distribution_service.schemas.promotion import (
    CartItemRequest,
    PromotionCreate,
    PromotionUpdate,
)
from services.distribution_service.services.discount_engine import (
    CartDiscount,
    CartLine,
    PromotionTerms,
    apply_promotions,
    covers_zone,
    is_live,
    targets_line,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# Fields an update may explicitly reset to null
CLEARABLE_FIELDS = frozenset(
    {
        "description_en",
        "description_ar",
        "buy_quantity",
        "get_quantity",
        "min_purchase",
        "max_discount",
        "usage_limit",
    }
)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _validate_terms(
    *,
    promotion_type: PromotionType,
    value,
    start_date: datetime,
    end_date: datetime,
    buy_quantity: Optional[int],
    get_quantity: Optional[int],
) -> None:
    if to_utc(end_date) <= to_utc(start_date):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="End date must be after start date",
        )
    if promotion_type == PromotionType.PERCENTAGE and to_decimal(value) > 100:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Percentage discount cannot exceed 100",
        )
    if promotion_type == PromotionType.BUY_X_GET_Y and not (buy_quantity and get_quantity):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="buy_quantity and get_quantity are required for buy_x_get_y promotions",
        )


async def _ensure_targets_exist(
    db: AsyncSession,
    product_ids: Iterable[uuid.UUID],
    category_ids: Iterable[uuid.UUID],
) -> None:
    product_ids, category_ids = set(product_ids), set(category_ids)
    if product_ids:
        result = await db.execute(select(Product.id).where(Product.id.in_(product_ids)))
        missing = product_ids - set(result.scalars().all())
        if missing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Products not found: {', '.join(sorted(str(m) for m in missing))}",
            )
    if category_ids:
        result = await db.execute(
            select(Category.id).where(Category.id.in_(category_ids))
        )
        missing = category_ids - set(result.scalars().all())
        if missing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Categories not found: {', '.join(sorted(str(m) for m in missing))}",
            )


def _sync_targets(
    promotion: Promotion,
    product_ids: Optional[Iterable[uuid.UUID]],
    category_ids: Optional[Iterable[uuid.UUID]],
) -> None:
    """Bring link rows in line with the requested ids without re-inserting kept ones."""
    if product_ids is not None:
        wanted = list(dict.fromkeys(product_ids))
        promotion.products = [
            link for link in promotion.products if link.product_id in wanted
        ]
        kept = {link.product_id for link in promotion.products}
        promotion.products.extend(
            PromotionProduct(product_id=pid) for pid in wanted if pid not in kept
        )
    if category_ids is not None:
        wanted = list(dict.fromkeys(category_ids))
        promotion.categories = [
            link for link in promotion.categories if link.category_id in wanted
        ]
        kept = {link.category_id for link in promotion.categories}
        promotion.categories.extend(
            PromotionCategory(category_id=cid) for cid in wanted if cid not in kept
        )


async def _warn_on_overlap(db: AsyncSession, promotion: Promotion) -> None:
    """Log other active promotions competing for the same zone, window and targets."""
    result = await db.execute(
        select(Promotion).where(
            Promotion.id != promotion.id,
            Promotion.is_active.is_(True),
            Promotion.start_date < promotion.end_date,
            Promotion.end_date > promotion.start_date,
        )
    )
    mine = PromotionTerms.from_model(promotion)
    for other in result.scalars().all():
        theirs = PromotionTerms.from_model(other)
        if not set(mine.zones) & set(theirs.zones):
            continue
        shares_targets = (
            not mine.is_targeted
            or not theirs.is_targeted
            or mine.product_ids & theirs.product_ids
            or mine.category_ids & theirs.category_ids
        )
        if shares_targets:
            logger.warning(
                "Promotion %s overlaps active promotion %s; the larger discount wins per line",
                promotion.id,
                other.id,
            )


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def get_promotion(db: AsyncSession, promotion_id: uuid.UUID) -> Promotion:
    promotion = await db.get(Promotion, promotion_id)
    if not promotion:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Promotion not found",
        )
    return promotion


async def create_promotion(
    db: AsyncSession, *, data: PromotionCreate, created_by: Optional[str] = None
) -> Promotion:
    _validate_terms(
        promotion_type=data.promotion_type,
        value=data.value,
        start_date=data.start_date,
        end_date=data.end_date,
        buy_quantity=data.buy_quantity,
        get_quantity=data.get_quantity,
    )
    await _ensure_targets_exist(db, data.product_ids, data.category_ids)

    promotion = Promotion(
        name_en=data.name_en,
        name_ar=data.name_ar,
        description_en=data.description_en,
        description_ar=data.description_ar,
        promotion_type=data.promotion_type,
        value=data.value,
        buy_quantity=data.buy_quantity,
        get_quantity=data.get_quantity,
        min_purchase=data.min_purchase,
        max_discount=data.max_discount,
        start_date=to_utc(data.start_date),
        end_date=to_utc(data.end_date),
        zones=[zone.value for zone in dict.fromkeys(data.zones)],
        is_active=data.is_active,
        usage_limit=data.usage_limit,
        usage_count=0,
        created_by=created_by,
        products=[PromotionProduct(product_id=pid) for pid in dict.fromkeys(data.product_ids)],
        categories=[
            PromotionCategory(category_id=cid) for cid in dict.fromkeys(data.category_ids)
        ],
    )
    db.add(promotion)
    await db.flush()
    await _warn_on_overlap(db, promotion)

    await db.commit()
    await db.refresh(promotion)
    logger.info(
        "Created %s promotion %s (value=%s zones=%s) by %s",
        promotion.promotion_type.value,
        promotion.id,
        promotion.value,
        ",".join(promotion.zones),
        created_by,
    )
    return promotion


async def update_promotion(
    db: AsyncSession, *, promotion_id: uuid.UUID, data: PromotionUpdate
) -> Promotion:
    promotion = await get_promotion(db, promotion_id)
    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field in CLEARABLE_FIELDS
    }
    product_ids = changes.pop("product_ids", None)
    category_ids = changes.pop("category_ids", None)

    _validate_terms(
        promotion_type=changes.get("promotion_type", promotion.promotion_type),
        value=changes.get("value", promotion.value),
        start_date=changes.get("start_date", promotion.start_date),
        end_date=changes.get("end_date", promotion.end_date),
        buy_quantity=changes.get("buy_quantity", promotion.buy_quantity),
        get_quantity=changes.get("get_quantity", promotion.get_quantity),
    )
    await _ensure_targets_exist(db, product_ids or [], category_ids or [])

    if "zones" in changes:
        changes["zones"] = [Zone(z).value for z in dict.fromkeys(changes["zones"])]
    for field in ("start_date", "end_date"):
        if changes.get(field) is not None:
            changes[field] = to_utc(changes[field])

    for field, value in changes.items():
        setattr(promotion, field, value)
    _sync_targets(promotion, product_ids, category_ids)
    promotion.updated_at = utc_now()

    await db.flush()
    await _warn_on_overlap(db, promotion)
    await db.commit()
    await db.refresh(promotion)
    logger.info("Updated promotion %s: %s", promotion.id, ", ".join(sorted(changes)))
    return promotion


async def toggle_promotion(db: AsyncSession, promotion_id: uuid.UUID) -> Promotion:
    promotion = await get_promotion(db, promotion_id)
    promotion.is_active = not promotion.is_active
    promotion.updated_at = utc_now()
    await db.commit()
    await db.refresh(promotion)
    logger.info("Promotion %s is_active=%s", promotion.id, promotion.is_active)
    return promotion


async def delete_promotion(db: AsyncSession, promotion_id: uuid.UUID) -> None:
    promotion = await get_promotion(db, promotion_id)
    await db.delete(promotion)
    await db.commit()
    logger.info("Deleted promotion %s", promotion_id)


async def list_promotions(
    db: AsyncSession,
    *,
    zone: Optional[Zone] = None,
    include_inactive: bool = False,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[Promotion], int]:
    """List promotions, active and unexpired unless ``include_inactive``."""
    query = select(Promotion).order_by(Promotion.created_at.desc())
    if not include_inactive:
        query = query.where(
            Promotion.is_active.is_(True), Promotion.end_date > utc_now()
        )
    result = await db.execute(query)
    promotions = list(result.scalars().all())
    if zone is not None:
        promotions = [p for p in promotions if zone.value in (p.zones or [])]
    return promotions[skip : skip + limit], len(promotions)


async def get_active_promotions_for_zone(
    db: AsyncSession, zone: Zone, now: Optional[datetime] = None
) -> list[Promotion]:
    """Promotions live right now in ``zone``, oldest first."""
    now = to_utc(now) if now else utc_now()
    result = await db.execute(
        select(Promotion)
        .where(
            Promotion.is_active.is_(True),
            Promotion.start_date <= now,
            Promotion.end_date > now,
        )
        .order_by(Promotion.created_at)
    )
    live = []
    for promotion in result.scalars().all():
        terms = PromotionTerms.from_model(promotion)
        if is_live(terms, now) and covers_zone(terms, zone):
            live.append(promotion)
    return live


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


def resolve_cart_zone(requested: Optional[Zone], user_zones: list[str]) -> Zone:
    """Zone from the request, else the caller's first zone."""
    if requested is not None:
        return requested
    for candidate in user_zones:
        try:
            return Zone(candidate)
        except ValueError:
            continue
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Zone is required",
    )


async def build_cart_lines(
    db: AsyncSession, items: list[CartItemRequest]
) -> list[CartLine]:
    """Attach each product's category. Unknown products get no category."""
    product_ids = {item.product_id for item in items}
    categories = {}
    if product_ids:
        result = await db.execute(
            select(Product.id, Product.category_id).where(Product.id.in_(product_ids))
        )
        categories = dict(result.all())
    return [
        CartLine(
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price=to_decimal(item.price),
            category_id=categories.get(item.product_id),
        )
        for item in items
    ]


async def apply_promotions_to_cart(
    db: AsyncSession,
    *,
    items: list[CartItemRequest],
    zone: Zone,
    now: Optional[datetime] = None,
) -> CartDiscount:
    """Price a cart against live promotions. Usage counters are not touched."""
    now = to_utc(now) if now else utc_now()
    if not items:
        return apply_promotions([], [], zone, now)
    lines = await build_cart_lines(db, items)
    promotions = await get_active_promotions_for_zone(db, zone, now)
    return apply_promotions(
        lines, [PromotionTerms.from_model(p) for p in promotions], zone, now
    )


async def preview_cart(
    db: AsyncSession,
    *,
    items: list[CartItemRequest],
    zone: Zone,
    now: Optional[datetime] = None,
) -> tuple[CartDiscount, list[Promotion]]:
    """Cart pricing plus the live promotions that target any cart line."""
    now = to_utc(now) if now else utc_now()
    lines = await build_cart_lines(db, items)
    promotions = await get_active_promotions_for_zone(db, zone, now)
    terms = [PromotionTerms.from_model(p) for p in promotions]

    discount = apply_promotions(lines, terms, zone, now)
    relevant_ids = {t.id for t in terms if any(targets_line(t, line) for line in lines)}
    available = [p for p in promotions if p.id in relevant_ids]
    return discount, available

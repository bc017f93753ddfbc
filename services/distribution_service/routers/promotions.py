"""Promotion endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user, require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.distribution_service.models import Zone
from services.distribution_service.schemas import (
    AppliedPromotionResponse,
    ApplyToCartRequest,
    ApplyToCartResponse,
    CartPreviewResponse,
    LineDiscountResponse,
    PromotionCreate,
    PromotionListResponse,
    PromotionResponse,
    PromotionUpdate,
)
from services.distribution_service.services import promotion_service
from services.distribution_service.services.discount_engine import CartDiscount
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/promotions", tags=["promotions"])


def _cart_payload(discount: CartDiscount, zone: Zone) -> dict:
    return {
        "zone": zone,
        "subtotal": float(discount.subtotal),
        "total_discount": float(discount.total_discount),
        "total": float(discount.total),
        "applied_promotions": [
            AppliedPromotionResponse(
                promotion_id=a.promotion_id,
                name_en=a.name_en,
                name_ar=a.name_ar,
                promotion_type=a.promotion_type,
                discount=float(a.discount),
                applied_to=a.applied_to,
            )
            for a in discount.applied_promotions
        ],
        "lines": [
            LineDiscountResponse(
                product_id=line.product_id,
                subtotal=float(line.subtotal),
                discount=float(line.discount),
                promotion_id=line.promotion_id,
            )
            for line in discount.lines
        ],
    }


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("", response_model=PromotionListResponse)
async def list_promotions(
    zone: Optional[Zone] = None,
    include_inactive: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    _user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Active, unexpired promotions unless ``include_inactive`` is set."""
    promotions, total = await promotion_service.list_promotions(
        db, zone=zone, include_inactive=include_inactive, skip=skip, limit=limit
    )
    return PromotionListResponse(
        promotions=[PromotionResponse.model_validate(p) for p in promotions],
        total=total,
    )


@router.get("/active/{zone}", response_model=list[PromotionResponse])
async def active_promotions(
    zone: Zone,
    _user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await promotion_service.get_active_promotions_for_zone(db, zone)


@router.get("/{promotion_id}", response_model=PromotionResponse)
async def get_promotion(
    promotion_id: uuid.UUID,
    _user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await promotion_service.get_promotion(db, promotion_id)


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


@router.post("/apply-to-cart", response_model=ApplyToCartResponse)
async def apply_to_cart(
    body: ApplyToCartRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Best promotion per cart line; usage counters are left alone."""
    zone = promotion_service.resolve_cart_zone(body.zone, current_user.zones)
    discount = await promotion_service.apply_promotions_to_cart(
        db, items=body.items, zone=zone
    )
    return ApplyToCartResponse(**_cart_payload(discount, zone))


@router.post("/preview", response_model=CartPreviewResponse)
async def preview_cart(
    body: ApplyToCartRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    zone = promotion_service.resolve_cart_zone(body.zone, current_user.zones)
    discount, available = await promotion_service.preview_cart(
        db, items=body.items, zone=zone
    )
    return CartPreviewResponse(
        **_cart_payload(discount, zone),
        available_promotions=[PromotionResponse.model_validate(p) for p in available],
    )


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@router.post("", response_model=PromotionResponse, status_code=status.HTTP_201_CREATED)
async def create_promotion(
    body: PromotionCreate,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await promotion_service.create_promotion(
        db, data=body, created_by=admin.user_id
    )


@router.patch("/{promotion_id}", response_model=PromotionResponse)
async def update_promotion(
    promotion_id: uuid.UUID,
    body: PromotionUpdate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await promotion_service.update_promotion(
        db, promotion_id=promotion_id, data=body
    )


@router.patch("/{promotion_id}/toggle", response_model=PromotionResponse)
async def toggle_promotion(
    promotion_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await promotion_service.toggle_promotion(db, promotion_id)


@router.delete("/{promotion_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_promotion(
    promotion_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await promotion_service.delete_promotion(db, promotion_id)

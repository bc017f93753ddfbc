"""Unit tests for promotion management and cart pricing."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi import HTTPException
from services.distribution_service.models import PromotionType, Zone
from services.distribution_service.schemas.promotion import (
    CartItemRequest,
    PromotionCreate,
    PromotionUpdate,
)
from services.distribution_service.services import promotion_service
from tests.factories import (
    CategoryFactory,
    CompanyFactory,
    ProductFactory,
    PromotionFactory,
)


def _now():
    return datetime.now(timezone.utc)


def _create_payload(**overrides) -> PromotionCreate:
    data = {
        "name_en": "Ramadan Offer",
        "name_ar": "عرض رمضان",
        "promotion_type": PromotionType.PERCENTAGE,
        "value": Decimal("15"),
        "start_date": _now() - timedelta(hours=1),
        "end_date": _now() + timedelta(days=3),
        "zones": [Zone.KARKH],
    }
    data.update(overrides)
    return PromotionCreate(**data)


async def _seed_product(db, **overrides):
    company = CompanyFactory.create()
    category = CategoryFactory.create()
    product = ProductFactory.create(
        company_id=company.id, category_id=category.id, **overrides
    )
    db.add_all([company, category, product])
    await db.commit()
    return category, product


# ---------------------------------------------------------------------------
# Create / update
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_promotion_with_targets(db_session):
    category, product = await _seed_product(db_session)

    promotion = await promotion_service.create_promotion(
        db_session,
        data=_create_payload(product_ids=[product.id], category_ids=[category.id]),
        created_by="admin-1",
    )

    assert promotion.usage_count == 0
    assert promotion.zones == ["KARKH"]
    assert promotion.product_ids == [product.id]
    assert promotion.category_ids == [category.id]
    assert promotion.created_by == "admin-1"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_rejects_unknown_product(db_session):
    with pytest.raises(HTTPException) as exc:
        await promotion_service.create_promotion(
            db_session, data=_create_payload(product_ids=[uuid.uuid4()])
        )
    assert exc.value.status_code == 404


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_rejects_end_before_start(db_session):
    start = _now()
    with pytest.raises(HTTPException) as exc:
        await promotion_service.create_promotion(
            db_session,
            data=_create_payload(start_date=start, end_date=start),
        )
    assert exc.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_rejects_percentage_over_hundred(db_session):
    with pytest.raises(HTTPException) as exc:
        await promotion_service.create_promotion(
            db_session, data=_create_payload(value=Decimal("120"))
        )
    assert exc.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.unit
async def test_buy_x_get_y_requires_quantities(db_session):
    with pytest.raises(HTTPException) as exc:
        await promotion_service.create_promotion(
            db_session,
            data=_create_payload(promotion_type=PromotionType.BUY_X_GET_Y, buy_quantity=2),
        )
    assert exc.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_replaces_targets_and_clears_cap(db_session):
    _, first = await _seed_product(db_session)
    _, second = await _seed_product(db_session)
    promotion = PromotionFactory.create(
        product_ids=[first.id], max_discount=Decimal("50")
    )
    db_session.add(promotion)
    await db_session.commit()

    updated = await promotion_service.update_promotion(
        db_session,
        promotion_id=promotion.id,
        data=PromotionUpdate(
            product_ids=[first.id, second.id], max_discount=None, name_en="Renamed"
        ),
    )

    assert set(updated.product_ids) == {first.id, second.id}
    assert updated.max_discount is None
    assert updated.name_en == "Renamed"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_ignores_null_for_required_fields(db_session):
    promotion = PromotionFactory.create(name_en="Keep Me")
    db_session.add(promotion)
    await db_session.commit()

    updated = await promotion_service.update_promotion(
        db_session, promotion_id=promotion.id, data=PromotionUpdate(name_en=None)
    )

    assert updated.name_en == "Keep Me"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_toggle_and_delete(db_session):
    promotion = PromotionFactory.create()
    db_session.add(promotion)
    await db_session.commit()

    toggled = await promotion_service.toggle_promotion(db_session, promotion.id)
    assert toggled.is_active is False

    await promotion_service.delete_promotion(db_session, promotion.id)
    with pytest.raises(HTTPException) as exc:
        await promotion_service.get_promotion(db_session, promotion.id)
    assert exc.value.status_code == 404


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_active_promotions_for_zone(db_session):
    karkh = PromotionFactory.create(zones=["KARKH"])
    rusafa = PromotionFactory.create(zones=["RUSAFA"])
    inactive = PromotionFactory.create(is_active=False)
    expired = PromotionFactory.create(
        start_date=_now() - timedelta(days=5), end_date=_now() - timedelta(days=1)
    )
    exhausted = PromotionFactory.create(usage_limit=3, usage_count=3)
    db_session.add_all([karkh, rusafa, inactive, expired, exhausted])
    await db_session.commit()

    live = await promotion_service.get_active_promotions_for_zone(db_session, Zone.KARKH)

    assert [p.id for p in live] == [karkh.id]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_promotions_filters_and_paginates(db_session):
    db_session.add_all(
        [
            PromotionFactory.create(zones=["KARKH"]),
            PromotionFactory.create(zones=["KARKH", "RUSAFA"]),
            PromotionFactory.create(zones=["RUSAFA"]),
            PromotionFactory.create(is_active=False),
        ]
    )
    await db_session.commit()

    promotions, total = await promotion_service.list_promotions(
        db_session, zone=Zone.KARKH, limit=1
    )
    assert total == 2
    assert len(promotions) == 1

    _, everything = await promotion_service.list_promotions(
        db_session, include_inactive=True
    )
    assert everything == 4


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_resolve_cart_zone_prefers_request():
    assert promotion_service.resolve_cart_zone(Zone.RUSAFA, ["KARKH"]) == Zone.RUSAFA


@pytest.mark.unit
def test_resolve_cart_zone_falls_back_to_user_zone():
    assert promotion_service.resolve_cart_zone(None, ["nowhere", "KARKH"]) == Zone.KARKH


@pytest.mark.unit
def test_resolve_cart_zone_without_any_zone_400():
    with pytest.raises(HTTPException) as exc:
        promotion_service.resolve_cart_zone(None, [])
    assert exc.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.unit
async def test_apply_to_cart_uses_category_targets(db_session):
    category, product = await _seed_product(db_session)
    promotion = PromotionFactory.create(
        category_ids=[category.id], value=Decimal("20")
    )
    db_session.add(promotion)
    await db_session.commit()

    result = await promotion_service.apply_promotions_to_cart(
        db_session,
        items=[
            CartItemRequest(product_id=product.id, quantity=2, price=Decimal("10")),
            CartItemRequest(product_id=uuid.uuid4(), quantity=1, price=Decimal("30")),
        ],
        zone=Zone.KARKH,
    )

    assert result.subtotal == Decimal("50.00")
    assert result.total_discount == Decimal("4.00")
    assert result.lines[0].promotion_id == promotion.id
    assert result.lines[1].promotion_id is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_apply_to_cart_does_not_consume_usage(db_session):
    promotion = PromotionFactory.create(usage_limit=10)
    db_session.add(promotion)
    await db_session.commit()

    await promotion_service.apply_promotions_to_cart(
        db_session,
        items=[CartItemRequest(product_id=uuid.uuid4(), quantity=1, price=Decimal("100"))],
        zone=Zone.KARKH,
    )

    refreshed = await promotion_service.get_promotion(db_session, promotion.id)
    assert refreshed.usage_count == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_empty_cart_prices_to_zero(db_session):
    result = await promotion_service.apply_promotions_to_cart(
        db_session, items=[], zone=Zone.KARKH
    )
    assert result.total_discount == Decimal("0.00")
    assert result.lines == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_preview_lists_only_relevant_promotions(db_session):
    _, product = await _seed_product(db_session)
    _, other_product = await _seed_product(db_session)
    general = PromotionFactory.create()
    elsewhere = PromotionFactory.create(product_ids=[other_product.id])
    db_session.add_all([general, elsewhere])
    await db_session.commit()

    discount, available = await promotion_service.preview_cart(
        db_session,
        items=[CartItemRequest(product_id=product.id, quantity=1, price=Decimal("10"))],
        zone=Zone.KARKH,
    )

    assert [p.id for p in available] == [general.id]
    assert discount.total_discount == Decimal("1.00")

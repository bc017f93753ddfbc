"""Integration tests for promotion endpoints."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from libs.auth.models import Role
from services.distribution_service.app.main import app
from tests.conftest import make_user, override_auth
from tests.factories import PromotionFactory


def _window():
    now = datetime.now(timezone.utc)
    return (now - timedelta(hours=1)).isoformat(), (now + timedelta(days=2)).isoformat()


def _promotion_body(**overrides):
    start, end = _window()
    body = {
        "name_en": "Summer Discount",
        "name_ar": "خصم الصيف",
        "promotion_type": "percentage",
        "value": "20",
        "start_date": start,
        "end_date": end,
        "zones": ["KARKH"],
    }
    body.update(overrides)
    return body


# ---------------------------------------------------------------------------
# Admin CRUD
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_promotion(client):
    """POST /promotions: admin creates a promotion."""
    response = await client.post("/promotions", json=_promotion_body())

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["value"] == 20.0
    assert data["usage_count"] == 0
    assert data["zones"] == ["KARKH"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_promotion_bad_dates_400(client):
    start, _ = _window()
    response = await client.post(
        "/promotions", json=_promotion_body(start_date=start, end_date=start)
    )

    assert response.status_code == 400
    assert response.json() == {
        "detail": "End date must be after start date",
        "code": "VALIDATION_ERROR",
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_promotion_invalid_zone_400(client):
    response = await client.post("/promotions", json=_promotion_body(zones=["MOSUL"]))
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_shop_owner_cannot_create_promotion(client):
    with override_auth(app, make_user(Role.SHOP_OWNER)):
        response = await client.post("/promotions", json=_promotion_body())
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_toggle_delete(client, db_session):
    promotion = PromotionFactory.create()
    db_session.add(promotion)
    await db_session.commit()

    update = await client.patch(
        f"/promotions/{promotion.id}", json={"value": "35", "max_discount": "100"}
    )
    assert update.status_code == 200, update.text
    assert update.json()["value"] == 35.0
    assert update.json()["max_discount"] == 100.0

    toggle = await client.patch(f"/promotions/{promotion.id}/toggle")
    assert toggle.status_code == 200
    assert toggle.json()["is_active"] is False

    delete = await client.delete(f"/promotions/{promotion.id}")
    assert delete.status_code == 204

    missing = await client.get(f"/promotions/{promotion.id}")
    assert missing.status_code == 404


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_and_active_by_zone(client, db_session):
    db_session.add_all(
        [
            PromotionFactory.create(zones=["KARKH"]),
            PromotionFactory.create(zones=["RUSAFA"]),
            PromotionFactory.create(is_active=False),
        ]
    )
    await db_session.commit()

    listing = await client.get("/promotions", params={"zone": "KARKH"})
    assert listing.status_code == 200
    assert listing.json()["total"] == 1

    active = await client.get("/promotions/active/RUSAFA")
    assert active.status_code == 200
    assert len(active.json()) == 1


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_apply_to_cart_uses_caller_zone(client, db_session):
    promotion = PromotionFactory.create(zones=["RUSAFA"])
    db_session.add(promotion)
    await db_session.commit()
    shop_owner = make_user(Role.SHOP_OWNER, zones=["RUSAFA"])

    with override_auth(app, shop_owner):
        response = await client.post(
            "/promotions/apply-to-cart",
            json={
                "items": [
                    {"product_id": str(uuid.uuid4()), "quantity": 2, "price": "25"}
                ]
            },
        )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["zone"] == "RUSAFA"
    assert data["subtotal"] == 50.0
    assert data["total_discount"] == 5.0
    assert data["total"] == 45.0
    assert data["applied_promotions"][0]["promotion_id"] == str(promotion.id)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_apply_to_cart_without_zone_400(client):
    with override_auth(app, make_user(Role.SHOP_OWNER, zones=[])):
        response = await client.post("/promotions/apply-to-cart", json={"items": []})
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_preview_lists_available_promotions(client, db_session):
    promotion = PromotionFactory.create()
    db_session.add(promotion)
    await db_session.commit()

    response = await client.post(
        "/promotions/preview",
        json={
            "zone": "KARKH",
            "items": [{"product_id": str(uuid.uuid4()), "quantity": 1, "price": "40"}],
        },
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["total_discount"] == 4.0
    assert [p["id"] for p in data["available_promotions"]] == [str(promotion.id)]

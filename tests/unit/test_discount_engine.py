"""Unit tests for the promotion discount engine.

Pure functions only: no database, no HTTP.
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from services.distribution_service.models import PromotionType
from services.distribution_service.services.discount_engine import (
    CartLine,
    PromotionTerms,
    apply_promotions,
    compute_line_discount,
    is_live,
    select_best_promotion,
    targets_line,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _terms(**overrides) -> PromotionTerms:
    defaults = {
        "id": uuid.uuid4(),
        "promotion_type": PromotionType.PERCENTAGE,
        "value": Decimal("20"),
        "start_date": NOW - timedelta(days=1),
        "end_date": NOW + timedelta(days=1),
        "zones": ("KARKH",),
        "created_at": NOW - timedelta(days=2),
        "name_en": "Promo",
        "name_ar": "عرض",
    }
    defaults.update(overrides)
    return PromotionTerms(**defaults)


def _line(quantity=2, price="10", product_id=None, category_id=None) -> CartLine:
    return CartLine(
        product_id=product_id or uuid.uuid4(),
        quantity=quantity,
        unit_price=Decimal(price),
        category_id=category_id,
    )


# ---------------------------------------------------------------------------
# compute_line_discount
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_percentage_discount_above_min_purchase():
    """2 x 10 at 20% with min purchase 15 gives 4."""
    terms = _terms(min_purchase=Decimal("15"))
    assert compute_line_discount(terms, _line()) == Decimal("4.00")


@pytest.mark.unit
def test_percentage_discount_below_min_purchase_is_zero():
    terms = _terms(min_purchase=Decimal("25"))
    assert compute_line_discount(terms, _line()) == Decimal("0.00")


@pytest.mark.unit
def test_min_purchase_equal_to_subtotal_applies():
    terms = _terms(min_purchase=Decimal("20"))
    assert compute_line_discount(terms, _line()) == Decimal("4.00")


@pytest.mark.unit
def test_percentage_discount_capped_by_max_discount():
    terms = _terms(value=Decimal("50"), max_discount=Decimal("3"))
    assert compute_line_discount(terms, _line()) == Decimal("3.00")


@pytest.mark.unit
def test_fixed_discount_capped_at_subtotal():
    """Fixed 50 on a 20 subtotal gives 20."""
    terms = _terms(promotion_type=PromotionType.FIXED, value=Decimal("50"))
    assert compute_line_discount(terms, _line()) == Decimal("20.00")


@pytest.mark.unit
def test_fixed_discount_below_subtotal():
    terms = _terms(promotion_type=PromotionType.FIXED, value=Decimal("5"))
    assert compute_line_discount(terms, _line()) == Decimal("5.00")


@pytest.mark.unit
def test_fixed_discount_respects_max_discount():
    terms = _terms(
        promotion_type=PromotionType.FIXED,
        value=Decimal("15"),
        max_discount=Decimal("12"),
    )
    assert compute_line_discount(terms, _line()) == Decimal("12.00")


@pytest.mark.unit
def test_hundred_percent_never_exceeds_subtotal():
    terms = _terms(value=Decimal("100"))
    assert compute_line_discount(terms, _line(quantity=3, price="7.35")) == Decimal(
        "22.05"
    )


@pytest.mark.unit
def test_percentage_rounds_half_up():
    """12.5% of 0.20 is 0.025, which rounds up to 0.03."""
    terms = _terms(value=Decimal("12.5"))
    assert compute_line_discount(terms, _line(quantity=1, price="0.20")) == Decimal(
        "0.03"
    )


@pytest.mark.unit
def test_buy_x_get_y_free_units():
    """Buy 2 get 1: seven units hold two complete groups, so two are free."""
    terms = _terms(
        promotion_type=PromotionType.BUY_X_GET_Y,
        value=Decimal("0"),
        buy_quantity=2,
        get_quantity=1,
    )
    assert compute_line_discount(terms, _line(quantity=7, price="10")) == Decimal(
        "20.00"
    )


@pytest.mark.unit
def test_buy_x_get_y_incomplete_group_gives_nothing():
    terms = _terms(
        promotion_type=PromotionType.BUY_X_GET_Y,
        buy_quantity=3,
        get_quantity=1,
    )
    assert compute_line_discount(terms, _line(quantity=3)) == Decimal("0.00")


@pytest.mark.unit
def test_buy_x_get_y_capped_by_max_discount():
    terms = _terms(
        promotion_type=PromotionType.BUY_X_GET_Y,
        buy_quantity=1,
        get_quantity=1,
        max_discount=Decimal("15"),
    )
    assert compute_line_discount(terms, _line(quantity=6)) == Decimal("15.00")


@pytest.mark.unit
def test_buy_x_get_y_without_quantities_is_zero():
    terms = _terms(promotion_type=PromotionType.BUY_X_GET_Y)
    assert compute_line_discount(terms, _line(quantity=10)) == Decimal("0.00")


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_window_is_half_open():
    terms = _terms(start_date=NOW, end_date=NOW + timedelta(hours=1))
    assert is_live(terms, NOW)
    assert not is_live(terms, NOW + timedelta(hours=1))
    assert not is_live(terms, NOW - timedelta(seconds=1))


@pytest.mark.unit
def test_inactive_promotion_is_not_live():
    assert not is_live(_terms(is_active=False), NOW)


@pytest.mark.unit
def test_exhausted_usage_limit_is_not_live():
    assert not is_live(_terms(usage_limit=5, usage_count=5), NOW)
    assert is_live(_terms(usage_limit=5, usage_count=4), NOW)


@pytest.mark.unit
def test_naive_now_is_treated_as_utc():
    assert is_live(_terms(), NOW.replace(tzinfo=None))


@pytest.mark.unit
def test_untargeted_promotion_matches_any_line():
    assert targets_line(_terms(), _line())


@pytest.mark.unit
def test_product_target_matches_only_listed_products():
    product_id = uuid.uuid4()
    terms = _terms(product_ids=frozenset({product_id}))
    assert targets_line(terms, _line(product_id=product_id))
    assert not targets_line(terms, _line())


@pytest.mark.unit
def test_category_target_matches_line_category():
    category_id = uuid.uuid4()
    terms = _terms(category_ids=frozenset({category_id}))
    assert targets_line(terms, _line(category_id=category_id))
    assert not targets_line(terms, _line(category_id=None))


@pytest.mark.unit
def test_best_promotion_wins_per_line():
    small = _terms(value=Decimal("10"))
    big = _terms(value=Decimal("25"), created_at=NOW - timedelta(hours=1))
    best, discount = select_best_promotion([small, big], _line(), "KARKH", NOW)
    assert best.id == big.id
    assert discount == Decimal("5.00")


@pytest.mark.unit
def test_tie_keeps_earliest_created_promotion():
    older = _terms(created_at=NOW - timedelta(days=5))
    newer = _terms(created_at=NOW - timedelta(days=1))
    best, _ = select_best_promotion([newer, older], _line(), "KARKH", NOW)
    assert best.id == older.id


@pytest.mark.unit
def test_other_zone_promotion_is_ignored():
    best, discount = select_best_promotion(
        [_terms(zones=("RUSAFA",))], _line(), "KARKH", NOW
    )
    assert best is None
    assert discount == Decimal("0.00")


@pytest.mark.unit
def test_promotion_without_zones_never_matches():
    best, _ = select_best_promotion([_terms(zones=())], _line(), "KARKH", NOW)
    assert best is None


# ---------------------------------------------------------------------------
# apply_promotions
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_empty_cart_has_no_discount():
    result = apply_promotions([], [_terms()], "KARKH", NOW)
    assert result.total_discount == Decimal("0.00")
    assert result.applied_promotions == []


@pytest.mark.unit
def test_applied_promotions_aggregate_per_promotion():
    promo = _terms(value=Decimal("10"))
    first, second = _line(quantity=1, price="50"), _line(quantity=3, price="10")
    result = apply_promotions([first, second], [promo], "KARKH", NOW)

    assert result.subtotal == Decimal("80.00")
    assert result.total_discount == Decimal("8.00")
    assert result.total == Decimal("72.00")
    assert len(result.applied_promotions) == 1
    applied = result.applied_promotions[0]
    assert applied.promotion_id == promo.id
    assert applied.discount == Decimal("8.00")
    assert applied.applied_to == [first.product_id, second.product_id]


@pytest.mark.unit
def test_lines_can_use_different_promotions():
    target = uuid.uuid4()
    targeted = _terms(value=Decimal("50"), product_ids=frozenset({target}))
    general = _terms(value=Decimal("10"))
    lines = [_line(product_id=target), _line()]

    result = apply_promotions(lines, [general, targeted], "KARKH", NOW)

    assert [line.promotion_id for line in result.lines] == [targeted.id, general.id]
    assert result.total_discount == Decimal("12.00")
    assert {a.promotion_id for a in result.applied_promotions} == {
        targeted.id,
        general.id,
    }


@pytest.mark.unit
def test_line_below_min_purchase_gets_no_promotion():
    promo = _terms(min_purchase=Decimal("100"))
    result = apply_promotions([_line()], [promo], "KARKH", NOW)
    assert result.lines[0].promotion_id is None
    assert result.applied_promotions == []

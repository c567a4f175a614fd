"""Tests for folding a promo code discount into order totals."""

import pytest

from sales.pricing import CartLine, apply_promo_discount, compute_totals


@pytest.fixture
def totals():
    cart = [
        CartLine(product_id="brut", quantity=6, unit_price_cents=1000),
        CartLine(product_id="rose", quantity=6, unit_price_cents=1200),
    ]
    return compute_totals(cart, apply_bundle_discount=True, delivery_fee_cents=500)


class TestApplyPromoDiscount:
    def test_discount_subtracted_from_total(self, totals):
        discounted = apply_promo_discount(totals, 500)

        assert discounted.promo_discount_cents == 500
        assert discounted.total_cents == totals.total_cents - 500
        assert discounted.subtotal_cents == totals.subtotal_cents
        assert discounted.bundle_discount_cents == totals.bundle_discount_cents
        assert discounted.delivery_fee_cents == totals.delivery_fee_cents

    def test_discount_larger_than_total_floors_at_zero(self, totals):
        discounted = apply_promo_discount(totals, 100_000)
        assert discounted.total_cents == 0

    def test_zero_discount_keeps_total(self, totals):
        assert apply_promo_discount(totals, 0).total_cents == totals.total_cents

    def test_discount_also_covers_delivery_fee(self, totals):
        discounted = apply_promo_discount(totals, totals.total_cents - 100)
        assert discounted.total_cents == 100

    def test_negative_discount_rejected(self, totals):
        with pytest.raises(ValueError):
            apply_promo_discount(totals, -100)

    def test_cannot_apply_twice(self, totals):
        discounted = apply_promo_discount(totals, 500)
        with pytest.raises(ValueError):
            apply_promo_discount(discounted, 500)

    def test_original_totals_unchanged(self, totals):
        apply_promo_discount(totals, 500)
        assert totals.promo_discount_cents == 0

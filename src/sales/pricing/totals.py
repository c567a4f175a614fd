"""Order totals: subtotal, flat-rate bundle discount, delivery fee, promo discount."""

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sales.pricing.cart import CartLine, total_units

BUNDLE_SIZE = 12
BUNDLE_DISCOUNT_CENTS = 1000


class OrderTotals(BaseModel):
    """Price breakdown of an order, all amounts in cents.

    ``total_cents`` is the subtotal minus the bundle discount (floored at
    zero), plus the delivery fee, minus the promo discount (floored at zero).
    """

    model_config = ConfigDict(frozen=True)

    subtotal_cents: int = Field(ge=0)
    bundle_discount_cents: int = Field(default=0, ge=0)
    delivery_fee_cents: int = Field(default=0, ge=0)
    promo_discount_cents: int = Field(default=0, ge=0)
    total_cents: int = Field(ge=0)

    @model_validator(mode="after")
    def total_must_match_breakdown(self):
        before_promo = max(0, self.subtotal_cents - self.bundle_discount_cents) + self.delivery_fee_cents
        expected = max(0, before_promo - self.promo_discount_cents)
        if self.total_cents != expected:
            raise ValueError(f"total_cents must be {expected} for this breakdown, got {self.total_cents}")
        return self

    @property
    def total_discount_cents(self) -> int:
        return self.bundle_discount_cents + self.promo_discount_cents


def bundle_discount_for(units: int) -> int:
    """Flat discount per complete group of twelve units, whatever their price."""
    return (units // BUNDLE_SIZE) * BUNDLE_DISCOUNT_CENTS


def compute_totals(
    cart: Sequence[CartLine],
    apply_bundle_discount: bool,
    delivery_fee_cents: int = 0,
) -> OrderTotals:
    """Price a cart before any promo code is applied."""
    if not cart:
        raise ValueError("Cannot compute totals of an empty cart")
    if delivery_fee_cents < 0:
        raise ValueError(f"Delivery fee cannot be negative, got {delivery_fee_cents}")

    subtotal = sum(line.line_total_cents for line in cart)
    bundle_discount = bundle_discount_for(total_units(cart)) if apply_bundle_discount else 0

    return OrderTotals(
        subtotal_cents=subtotal,
        bundle_discount_cents=bundle_discount,
        delivery_fee_cents=delivery_fee_cents,
        total_cents=max(0, subtotal - bundle_discount) + delivery_fee_cents,
    )


def apply_promo_discount(totals: OrderTotals, promo_discount_cents: int) -> OrderTotals:
    """Fold an already-verified promo discount into pre-promo totals.

    A discount larger than the remaining total is capped; nothing carries
    over.
    """
    if promo_discount_cents < 0:
        raise ValueError(f"Promo discount cannot be negative, got {promo_discount_cents}")
    if totals.promo_discount_cents:
        raise ValueError("A promo discount has already been applied to these totals")

    return OrderTotals(
        subtotal_cents=totals.subtotal_cents,
        bundle_discount_cents=totals.bundle_discount_cents,
        delivery_fee_cents=totals.delivery_fee_cents,
        promo_discount_cents=promo_discount_cents,
        total_cents=max(0, totals.total_cents - promo_discount_cents),
    )

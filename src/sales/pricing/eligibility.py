"""Delivery eligibility of a cart."""

from collections.abc import Sequence

from sales.pricing.cart import CartLine, total_units
from sales.pricing.config import EventSettings
from sales.pricing.errors import BelowMinimum, DeliveryDisabled, ZipNotServed


def check_delivery_eligibility(cart: Sequence[CartLine], settings: EventSettings, zip_code: str | None) -> None:
    """Raise the first rule a delivery request breaks; return None when eligible.

    Rules run in order: delivery enabled, minimum unit count, served postal
    code (only when the event restricts postal codes).
    """
    if not settings.delivery_enabled:
        raise DeliveryDisabled()

    units = total_units(cart)
    if units < settings.delivery_min_units:
        raise BelowMinimum(required=settings.delivery_min_units, actual=units)

    if not settings.serves_zip(zip_code):
        raise ZipNotServed(zip_code)

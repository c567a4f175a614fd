"""Order pricing and eligibility engine.

Pure functions over a cart, an event's settings and snapshots of stock and
slot bookings. Nothing here reads or writes storage.
"""

from sales.pricing.capacity import SlotCapacityFact, check_capacity_reduction, check_slot_capacity
from sales.pricing.cart import CartLine, total_units
from sales.pricing.config import EventSettings, migrate_settings
from sales.pricing.eligibility import check_delivery_eligibility
from sales.pricing.errors import (
    BelowMinimum,
    CapacityBelowBooked,
    DeliveryDisabled,
    InsufficientStock,
    ProductNotFound,
    SlotFull,
    ZipNotServed,
)
from sales.pricing.references import (
    generate_order_code,
    generate_payment_communication,
    prefix_from_slug,
    scan_payload,
)
from sales.pricing.stock import StockFact, StockValidation, validate_stock
from sales.pricing.totals import OrderTotals, apply_promo_discount, compute_totals

__all__ = [
    "BelowMinimum",
    "CapacityBelowBooked",
    "CartLine",
    "DeliveryDisabled",
    "EventSettings",
    "InsufficientStock",
    "OrderTotals",
    "ProductNotFound",
    "SlotCapacityFact",
    "SlotFull",
    "StockFact",
    "StockValidation",
    "ZipNotServed",
    "apply_promo_discount",
    "check_capacity_reduction",
    "check_delivery_eligibility",
    "check_slot_capacity",
    "compute_totals",
    "generate_order_code",
    "generate_payment_communication",
    "migrate_settings",
    "prefix_from_slug",
    "scan_payload",
    "total_units",
    "validate_stock",
]

"""Failures reported by the pricing and eligibility checks.

Each failure keeps its facts as attributes so callers can build their own
wording; the ``messages`` dict holds the default one.
"""

from protean.exceptions import ValidationError


# ---------------------------------------------------------------------------
# Delivery eligibility (fail-fast, first failing rule wins)
# ---------------------------------------------------------------------------
class DeliveryDisabled(ValidationError):
    def __init__(self):
        super().__init__({"delivery_type": ["Delivery is not available for this event"]})


class BelowMinimum(ValidationError):
    def __init__(self, required: int, actual: int):
        self.required = required
        self.actual = actual
        super().__init__({"items": [f"At least {required} units are required for delivery, cart has {actual}"]})


class ZipNotServed(ValidationError):
    def __init__(self, zip_code: str | None):
        self.zip_code = zip_code
        super().__init__({"zip": [f"Delivery is not available for postal code {zip_code}"]})


# ---------------------------------------------------------------------------
# Stock (collected, one per offending line)
# ---------------------------------------------------------------------------
class ProductNotFound(ValidationError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__({"items": [f"Product {product_id} not found"]})


class InsufficientStock(ValidationError):
    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            {
                "items": [
                    f"Insufficient stock for product {product_id} (requested: {requested}, available: {available})"
                ]
            }
        )


# ---------------------------------------------------------------------------
# Slot capacity
# ---------------------------------------------------------------------------
class SlotFull(ValidationError):
    def __init__(self, slot_id: str, capacity: int, booked: int):
        self.slot_id = slot_id
        self.capacity = capacity
        self.booked = booked
        super().__init__({"slot_id": [f"This slot is full ({booked}/{capacity} booked)"]})


class CapacityBelowBooked(ValidationError):
    def __init__(self, new_capacity: int, booked: int):
        self.new_capacity = new_capacity
        self.booked = booked
        super().__init__(
            {"capacity": [f"Capacity cannot be reduced to {new_capacity}: {booked} order(s) already booked"]}
        )

"""Business failures raised by sales aggregates and command handlers.

Every failure is a Protean ``ValidationError`` carrying a ``messages`` dict
(field name to a list of human-readable messages). The API layer turns these
into 4xx responses; nothing below it swallows them.
"""

from protean.exceptions import ValidationError


def error_summary(messages) -> str:
    """One line out of a ``messages`` dict, for logs, CLI output and API bodies."""
    if isinstance(messages, dict):
        return "; ".join(message for field_messages in messages.values() for message in field_messages)
    return str(messages)


# ---------------------------------------------------------------------------
# Order submission
# ---------------------------------------------------------------------------
class SaleClosed(ValidationError):
    def __init__(self, event_name: str):
        self.event_name = event_name
        super().__init__({"event": [f"Orders are no longer accepted for {event_name}"]})


class ProductUnavailable(ValidationError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__({"items": [f"Product {product_id} is not available"]})


class PriceMismatch(ValidationError):
    def __init__(self, product_name: str, submitted_cents: int, catalog_cents: int):
        self.product_name = product_name
        self.submitted_cents = submitted_cents
        self.catalog_cents = catalog_cents
        super().__init__({"items": [f"The price of {product_name} does not match the catalog"]})


class OutOfStock(ValidationError):
    """Carries every stock failure of a cart at once."""

    def __init__(self, issues: list):
        self.issues = issues
        super().__init__({"items": [error_summary(issue.messages) for issue in issues]})


class InvalidPromoCode(ValidationError):
    def __init__(self, code: str):
        self.code = code
        super().__init__({"promo_code": ["Promo code is invalid or inactive"]})


class SlotNotBookable(ValidationError):
    def __init__(self, slot_id: str | None):
        self.slot_id = slot_id
        super().__init__({"slot_id": ["Slot is invalid or does not belong to this event"]})


class SlotInUse(ValidationError):
    def __init__(self, slot_id: str, order_count: int):
        self.slot_id = slot_id
        self.order_count = order_count
        super().__init__({"slot_id": [f"Slot has {order_count} associated order(s) and cannot be deleted"]})


class EventHasOrders(ValidationError):
    def __init__(self, event_id: str, order_count: int):
        self.event_id = event_id
        self.order_count = order_count
        super().__init__({"event": [f"Event has {order_count} order(s) and cannot be deleted"]})

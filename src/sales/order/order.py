"""Order aggregate — a customer's order for one event.

State Machine:
    PENDING → PAID → PREPARED → DELIVERED
    any active status → CANCELLED → PENDING/PAID (reactivation)

The back office may also step an order back one stage (e.g. PAID → PENDING
when a transfer was matched to the wrong order). An order holds a place in
its slot while PENDING, PAID or PREPARED.

Prices are locked at submission: line prices and the totals breakdown are
copied onto the order and never recomputed from the catalog.
"""

from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, Text

from sales.domain import sales
from sales.pricing import CartLine, OrderTotals
from sales.utils.clock import utcnow


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    PREPARED = "PREPARED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class DeliveryType(Enum):
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"
    ON_SITE = "ON_SITE"


class PaymentMethod(Enum):
    BANK_TRANSFER = "BANK_TRANSFER"
    ON_SITE = "ON_SITE"
    PAY_LINK = "PAY_LINK"


# Statuses that hold a place in a slot
BOOKED_STATUSES = {OrderStatus.PENDING, OrderStatus.PAID, OrderStatus.PREPARED}

SLOTTED_DELIVERY_TYPES = {DeliveryType.PICKUP, DeliveryType.ON_SITE}

# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.PREPARED, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.PENDING, OrderStatus.PREPARED, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.PREPARED: {OrderStatus.PAID, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: {OrderStatus.PREPARED},  # Scanned by mistake
    OrderStatus.CANCELLED: {OrderStatus.PENDING, OrderStatus.PAID},
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@sales.entity(part_of="Order")
class OrderItem:
    """A line of an order with the product name and price as they were at submission."""

    product_id: Identifier(required=True)
    product_name: String(required=True, max_length=200)
    quantity: Integer(required=True, min_value=1)
    unit_price_cents: Integer(required=True, min_value=0)
    line_total_cents: Integer(required=True, min_value=0)


@sales.entity(part_of="Order")
class OrderStatusChange:
    """History row written on every status change made by the back office."""

    from_status: String(required=True, max_length=10)
    to_status: String(required=True, max_length=10)
    capacity_override: Boolean(default=False)
    changed_at: DateTime(default=utcnow)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@sales.aggregate
class Order:
    event_id: Identifier(required=True)
    code: String(required=True, max_length=40)
    status: String(max_length=10, choices=OrderStatus, default=OrderStatus.PENDING.value)

    customer_name: String(required=True, max_length=100)
    email: String(required=True, max_length=255)
    phone: String(required=True, max_length=30)
    notes: Text()
    rgpd_consent: Boolean(default=False)

    delivery_type: String(required=True, max_length=10, choices=DeliveryType)
    slot_id: Identifier()
    address: String(max_length=200)
    city: String(max_length=100)
    zip: String(max_length=4)

    subtotal_cents: Integer(required=True)
    bundle_discount_cents: Integer(default=0)
    delivery_fee_cents: Integer(default=0)
    promo_code_id: Identifier()
    promo_code: String(max_length=50)
    promo_discount_cents: Integer(default=0)
    total_cents: Integer(required=True)

    payment_method: String(required=True, max_length=20, choices=PaymentMethod)
    payment_communication: String(required=True, max_length=140)
    bank_reference: String(max_length=100)
    admin_note: Text()

    created_at: DateTime(default=utcnow)
    updated_at: DateTime(default=utcnow)

    items: HasMany(OrderItem)
    status_changes: HasMany(OrderStatusChange)

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        event_id,
        code,
        customer,
        delivery_type,
        lines,
        product_names,
        totals: OrderTotals,
        payment_method,
        payment_communication,
        slot_id=None,
        promo_code=None,
    ):
        """Create a PENDING order from an already validated and priced cart.

        Args:
            customer: Dict with customer_name, email, phone, and optionally
                      notes, address, city, zip and rgpd_consent.
            lines: The cart as ``CartLine`` values.
            product_names: Product name by product id, copied onto the items.
            promo_code: The ``PromoCode`` that was applied, if any.
        """
        now = utcnow()
        order = cls(
            event_id=str(event_id),
            code=code,
            status=OrderStatus.PENDING.value,
            customer_name=customer["customer_name"],
            email=customer["email"],
            phone=customer["phone"],
            notes=customer.get("notes"),
            rgpd_consent=customer.get("rgpd_consent", False),
            delivery_type=delivery_type,
            slot_id=slot_id,
            address=customer.get("address"),
            city=customer.get("city"),
            zip=customer.get("zip"),
            subtotal_cents=totals.subtotal_cents,
            bundle_discount_cents=totals.bundle_discount_cents,
            delivery_fee_cents=totals.delivery_fee_cents,
            promo_code_id=str(promo_code.id) if promo_code else None,
            promo_code=promo_code.code if promo_code else None,
            promo_discount_cents=totals.promo_discount_cents,
            total_cents=totals.total_cents,
            payment_method=payment_method,
            payment_communication=payment_communication,
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(
                OrderItem(
                    product_id=line.product_id,
                    product_name=product_names.get(line.product_id, ""),
                    quantity=line.quantity,
                    unit_price_cents=line.unit_price_cents,
                    line_total_cents=line.line_total_cents,
                )
            )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def order_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def is_booked(self) -> bool:
        return self.order_status in BOOKED_STATUSES

    @property
    def totals(self) -> OrderTotals:
        return OrderTotals(
            subtotal_cents=self.subtotal_cents,
            bundle_discount_cents=self.bundle_discount_cents,
            delivery_fee_cents=self.delivery_fee_cents,
            promo_discount_cents=self.promo_discount_cents,
            total_cents=self.total_cents,
        )

    def cart(self) -> list[CartLine]:
        return [
            CartLine(product_id=item.product_id, quantity=item.quantity, unit_price_cents=item.unit_price_cents)
            for item in self.items
        ]

    @property
    def history(self) -> list[OrderStatusChange]:
        return sorted(self.status_changes, key=lambda change: change.changed_at)

    @property
    def total_units(self) -> int:
        return sum(item.quantity for item in self.items)

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    def change_status(self, new_status: OrderStatus, capacity_override: bool = False) -> OrderStatusChange | None:
        """Move to ``new_status`` and record the change; same status is a no-op."""
        current = self.order_status
        if new_status == current:
            return None
        if new_status not in _VALID_TRANSITIONS[current]:
            message = f"Cannot change order status from {current.value} to {new_status.value}"
            raise ValidationError({"status": [message]})

        change = OrderStatusChange(
            from_status=current.value,
            to_status=new_status.value,
            capacity_override=capacity_override,
            changed_at=utcnow(),
        )
        self.add_status_changes(change)
        self.status = new_status.value
        self.updated_at = utcnow()
        return change

    def update_notes(self, bank_reference=None, admin_note=None):
        if bank_reference is not None:
            self.bank_reference = bank_reference.strip() or None
        if admin_note is not None:
            self.admin_note = admin_note.strip() or None
        self.updated_at = utcnow()

"""Read-side queries over orders: bookings, sequence numbers, lookups, back-office views.

Filtering beyond exact field matches and all sorting happen in Python on the
records returned by the repository.
"""

from collections import Counter, defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from sales.event.event import SaleEvent
from sales.order.order import BOOKED_STATUSES, Order
from sales.pricing import SlotCapacityFact
from sales.section.section import Section
from sales.slot.slot import Slot
from sales.utils.queries import find_all, find_first

_BOOKED_VALUES = {status.value for status in BOOKED_STATUSES}

MIN_SEARCH_LENGTH = 2
SEARCH_LIMIT = 50


def newest_first(orders: Iterable[Order]) -> list[Order]:
    return sorted(orders, key=lambda order: order.created_at, reverse=True)


def booked_order_ids(slot_id: str) -> list[str]:
    return [str(order.id) for order in find_all(Order, slot_id=str(slot_id)) if order.status in _BOOKED_VALUES]


def slot_capacity_fact(slot: Slot) -> SlotCapacityFact:
    return slot.capacity_fact(booked_order_ids(str(slot.id)))


def count_orders_for_event(event_id: str) -> int:
    """All orders of the event, cancelled included; feeds the order sequence."""
    return len(find_all(Order, event_id=str(event_id)))


def count_orders_for_slot(slot_id: str) -> int:
    """All orders referencing the slot, whatever their status."""
    return len(find_all(Order, slot_id=str(slot_id)))


def find_by_code(code: str) -> Order | None:
    return find_first(Order, code=code.strip().upper())


@dataclass(frozen=True)
class SlotAvailability:
    slot: Slot
    booked: int

    @property
    def remaining(self) -> int:
        return max(0, self.slot.capacity - self.booked)

    @property
    def is_full(self) -> bool:
        return self.remaining == 0


def slot_availability(event_id: str) -> list[SlotAvailability]:
    """Slots of an event in chronological order with their booked counts."""
    booked = Counter(
        str(order.slot_id)
        for order in find_all(Order, event_id=str(event_id))
        if order.slot_id and order.status in _BOOKED_VALUES
    )
    slots = sorted(find_all(Slot, event_id=str(event_id)), key=lambda slot: (slot.date, slot.start_time))
    return [SlotAvailability(slot=slot, booked=booked.get(str(slot.id), 0)) for slot in slots]


# ---------------------------------------------------------------------------
# Back-office listings
# ---------------------------------------------------------------------------
def _matches_search(order: Order, search: str) -> bool:
    needle = search.strip().lower()
    return (
        needle in order.customer_name.lower()
        or needle in order.email.lower()
        or needle in order.code.lower()
        or needle in order.phone
    )


def filter_orders(
    event_id: str | None = None,
    section_id: str | None = None,
    statuses: Iterable[str] | None = None,
    delivery_type: str | None = None,
    slot_id: str | None = None,
    search: str | None = None,
) -> list[Order]:
    """Orders matching every given filter, newest first.

    ``section_id`` keeps orders whose event belongs to the section. ``search``
    is a case-insensitive substring of the customer name, email or order code,
    or a substring of the phone number.
    """
    filters = {}
    if event_id:
        filters["event_id"] = str(event_id)
    if delivery_type:
        filters["delivery_type"] = delivery_type
    if slot_id:
        filters["slot_id"] = str(slot_id)
    orders = find_all(Order, **filters)

    statuses = set(statuses or [])
    if statuses:
        orders = [order for order in orders if order.status in statuses]
    if section_id:
        event_ids = {str(event.id) for event in find_all(SaleEvent, section_id=str(section_id))}
        orders = [order for order in orders if str(order.event_id) in event_ids]
    if search and search.strip():
        orders = [order for order in orders if _matches_search(order, search)]
    return newest_first(orders)


def orders_for_export(
    event_id: str | None = None,
    statuses: Iterable[str] | None = None,
    delivery_type: str | None = None,
    slot_id: str | None = None,
) -> list[Order]:
    """Orders matching the filters, newest first."""
    return filter_orders(event_id=event_id, statuses=statuses, delivery_type=delivery_type, slot_id=slot_id)


def search_orders(query: str | None, limit: int = SEARCH_LIMIT) -> list[Order]:
    """Quick lookup across every event; shorter queries than two characters find nothing."""
    if not query or len(query.strip()) < MIN_SEARCH_LENGTH:
        return []
    return filter_orders(search=query)[:limit]


@dataclass(frozen=True)
class OrderDetail:
    order: Order
    event: SaleEvent | None
    section: Section | None
    slot: Slot | None


def order_detail(order_id: str) -> OrderDetail:
    order = current_domain.repository_for(Order).get(order_id)
    event = find_first(SaleEvent, id=str(order.event_id))
    section = find_first(Section, id=str(event.section_id)) if event else None
    slot = find_first(Slot, id=str(order.slot_id)) if order.slot_id else None
    return OrderDetail(order=order, event=event, section=section, slot=slot)


# ---------------------------------------------------------------------------
# Event statistics
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ProductSales:
    product_id: str
    product_name: str
    quantity: int
    revenue_cents: int


@dataclass(frozen=True)
class EventStats:
    """Sales figures for one event; every order counts, cancelled ones included."""

    total_orders: int
    total_revenue_cents: int
    total_items: int
    average_order_value_cents: int
    average_items_per_order: float
    orders_by_status: dict[str, int] = field(default_factory=dict)
    orders_by_delivery_type: dict[str, int] = field(default_factory=dict)
    orders_by_payment_method: dict[str, int] = field(default_factory=dict)
    subtotal_cents: int = 0
    bundle_discount_cents: int = 0
    promo_discount_cents: int = 0
    delivery_fee_cents: int = 0
    products: list[ProductSales] = field(default_factory=list)


def event_stats(event_id: str) -> EventStats:
    current_domain.repository_for(SaleEvent).get(event_id)
    orders = find_all(Order, event_id=str(event_id))

    total_orders = len(orders)
    total_revenue = sum(order.total_cents for order in orders)
    total_items = sum(order.total_units for order in orders)

    sold: dict[str, dict] = defaultdict(lambda: {"name": "", "quantity": 0, "revenue": 0})
    for order in orders:
        for item in order.items:
            line = sold[str(item.product_id)]
            line["name"] = item.product_name
            line["quantity"] += item.quantity
            line["revenue"] += item.line_total_cents
    products = sorted(
        (
            ProductSales(
                product_id=product_id,
                product_name=line["name"],
                quantity=line["quantity"],
                revenue_cents=line["revenue"],
            )
            for product_id, line in sold.items()
        ),
        key=lambda product: product.revenue_cents,
        reverse=True,
    )

    return EventStats(
        total_orders=total_orders,
        total_revenue_cents=total_revenue,
        total_items=total_items,
        average_order_value_cents=round(total_revenue / total_orders) if total_orders else 0,
        average_items_per_order=round(total_items / total_orders, 1) if total_orders else 0.0,
        orders_by_status=dict(Counter(order.status for order in orders)),
        orders_by_delivery_type=dict(Counter(order.delivery_type for order in orders)),
        orders_by_payment_method=dict(Counter(order.payment_method for order in orders)),
        subtotal_cents=sum(order.subtotal_cents for order in orders),
        bundle_discount_cents=sum(order.bundle_discount_cents or 0 for order in orders),
        promo_discount_cents=sum(order.promo_discount_cents or 0 for order in orders),
        delivery_fee_cents=sum(order.delivery_fee_cents or 0 for order in orders),
        products=products,
    )


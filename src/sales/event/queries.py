"""Back-office views of events with their catalog, slots and order counts."""

from collections import Counter
from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from sales.event.event import SaleEvent
from sales.order.order import Order
from sales.product.product import Product
from sales.slot.slot import Slot
from sales.utils.queries import find_all


@dataclass(frozen=True)
class EventSummary:
    event: SaleEvent
    orders_count: int
    products_count: int
    slots_count: int
    total_revenue_cents: int


@dataclass(frozen=True)
class EventDetail:
    event: SaleEvent
    products: list[Product]
    slots: list[Slot]
    orders_count: int
    orders_by_status: dict[str, int] = field(default_factory=dict)


def list_events(section_id: str | None = None, status: str | None = None) -> list[EventSummary]:
    """Events newest first, optionally limited to one section or status."""
    filters = {}
    if section_id:
        filters["section_id"] = str(section_id)
    if status:
        filters["status"] = status
    events = sorted(find_all(SaleEvent, **filters), key=lambda event: event.created_at, reverse=True)

    summaries = []
    for event in events:
        orders = find_all(Order, event_id=str(event.id))
        summaries.append(
            EventSummary(
                event=event,
                orders_count=len(orders),
                products_count=len(find_all(Product, event_id=str(event.id))),
                slots_count=len(find_all(Slot, event_id=str(event.id))),
                total_revenue_cents=sum(order.total_cents for order in orders),
            )
        )
    return summaries


def event_detail(event_id: str) -> EventDetail:
    event = current_domain.repository_for(SaleEvent).get(event_id)
    orders = find_all(Order, event_id=str(event.id))
    return EventDetail(
        event=event,
        products=sorted(
            find_all(Product, event_id=str(event.id)),
            key=lambda product: (product.sort_order or 0, product.name.lower()),
        ),
        slots=sorted(find_all(Slot, event_id=str(event.id)), key=lambda slot: (slot.date, slot.start_time)),
        orders_count=len(orders),
        orders_by_status=dict(Counter(order.status for order in orders)),
    )

"""Builders of API response models from aggregates."""

from sales.api.schemas import (
    AdminEventDetail,
    AdminEventSummary,
    AdminOrderDetail,
    AdminOrderSummary,
    EventDetail,
    EventOptions,
    EventSummary,
    OrderItemView,
    OrderView,
    ProductView,
    SectionSummary,
    SlotView,
    StatusChangeView,
    TotalsView,
)
from sales.event import queries as event_queries
from sales.event.event import SaleEvent
from sales.order.order import Order
from sales.order.queries import OrderDetail, booked_order_ids, slot_availability
from sales.pricing import scan_payload
from sales.product.product import Product
from sales.section.section import Section
from sales.slot.slot import Slot
from sales.utils import settings
from sales.utils.queries import find_all, find_first


def event_summary(event: SaleEvent, section: Section | None) -> EventSummary:
    return EventSummary(
        id=str(event.id),
        slug=event.slug,
        name=event.name,
        description=event.description,
        event_type=event.event_type,
        start_date=event.start_date,
        end_date=event.end_date,
        section=SectionSummary.model_validate(section) if section else None,
    )


def product_view(product: Product) -> ProductView:
    return ProductView(
        id=str(product.id),
        name=product.name,
        description=product.description,
        price_cents=product.price_cents,
        product_type=product.product_type,
        stock=product.stock,
        sort_order=product.sort_order or 0,
        allergens=product.allergen_list,
        is_vegetarian=bool(product.is_vegetarian),
        is_vegan=bool(product.is_vegan),
        is_active=bool(product.is_active),
    )


def _slot_view(slot: Slot, booked: int) -> SlotView:
    return SlotView(
        id=str(slot.id),
        date=slot.date,
        start_time=slot.start_time,
        end_time=slot.end_time,
        capacity=slot.capacity,
        remaining=max(0, slot.capacity - booked),
        location=slot.location,
    )


def event_detail(event: SaleEvent) -> EventDetail:
    section = find_first(Section, id=str(event.section_id))
    event_settings = event.settings
    products = sorted(
        (product for product in find_all(Product, event_id=str(event.id)) if product.is_active),
        key=lambda product: (product.sort_order or 0, product.name),
    )
    return EventDetail(
        **event_summary(event, section).model_dump(),
        options=EventOptions(
            delivery_enabled=event_settings.delivery_enabled,
            delivery_min_units=event_settings.delivery_min_units,
            delivery_fee_cents=event_settings.delivery_fee_cents,
            allowed_zip_codes=list(event_settings.allowed_zip_codes),
            bundle_discount_enabled=event_settings.bundle_discount_enabled,
            pickup_address=event_settings.pickup_address,
        ),
        products=[product_view(product) for product in products],
        slots=[
            _slot_view(availability.slot, availability.booked)
            for availability in slot_availability(str(event.id))
        ],
    )


def slot_view(slot: Slot) -> SlotView:
    return _slot_view(slot, len(booked_order_ids(str(slot.id))))


def order_view(order: Order) -> OrderView:
    event = find_first(SaleEvent, id=str(order.event_id))
    section = find_first(Section, id=str(event.section_id))
    slot = find_first(Slot, id=str(order.slot_id)) if order.slot_id else None
    event_settings = event.settings

    return OrderView(
        code=order.code,
        status=order.status,
        customer_name=order.customer_name,
        delivery_type=order.delivery_type,
        payment_method=order.payment_method,
        payment_communication=order.payment_communication,
        event_name=event.name,
        slot=slot_view(slot) if slot else None,
        address=order.address,
        city=order.city,
        zip=order.zip,
        items=[OrderItemView.model_validate(item) for item in order.items],
        totals=TotalsView.model_validate(order.totals),
        promo_code=order.promo_code,
        iban=event_settings.iban_override or (section.iban if section else None),
        iban_name=event_settings.iban_name_override or (section.iban_name if section else None),
        scan_payload=scan_payload(settings.SITE_URL, order.code),
        created_at=order.created_at,
    )


# ---------------------------------------------------------------------------
# Back office
# ---------------------------------------------------------------------------
def admin_event_summary(summary: event_queries.EventSummary) -> AdminEventSummary:
    event = summary.event
    return AdminEventSummary(
        id=str(event.id),
        section_id=str(event.section_id),
        slug=event.slug,
        name=event.name,
        event_type=event.event_type,
        status=event.status,
        start_date=event.start_date,
        end_date=event.end_date,
        created_at=event.created_at,
        orders_count=summary.orders_count,
        products_count=summary.products_count,
        slots_count=summary.slots_count,
        total_revenue_cents=summary.total_revenue_cents,
    )


def admin_event_detail(detail: event_queries.EventDetail) -> AdminEventDetail:
    event = detail.event
    return AdminEventDetail(
        id=str(event.id),
        section_id=str(event.section_id),
        slug=event.slug,
        name=event.name,
        description=event.description,
        event_type=event.event_type,
        status=event.status,
        start_date=event.start_date,
        end_date=event.end_date,
        settings=event.settings.to_blob(),
        products=[product_view(product) for product in detail.products],
        slots=[slot_view(slot) for slot in detail.slots],
        orders_count=detail.orders_count,
        orders_by_status=detail.orders_by_status,
    )


def _admin_order_fields(order: Order) -> dict:
    return {
        "id": str(order.id),
        "code": order.code,
        "status": order.status,
        "event_id": str(order.event_id),
        "customer_name": order.customer_name,
        "email": order.email,
        "phone": order.phone,
        "delivery_type": order.delivery_type,
        "payment_method": order.payment_method,
        "slot_id": str(order.slot_id) if order.slot_id else None,
        "total_cents": order.total_cents,
        "bank_reference": order.bank_reference,
        "created_at": order.created_at,
        "items": [OrderItemView.model_validate(item) for item in order.items],
    }


def admin_order_summary(order: Order) -> AdminOrderSummary:
    return AdminOrderSummary(**_admin_order_fields(order))


def admin_order_detail(detail: OrderDetail) -> AdminOrderDetail:
    order = detail.order
    return AdminOrderDetail(
        **_admin_order_fields(order),
        event_name=detail.event.name if detail.event else None,
        section_name=detail.section.name if detail.section else None,
        slot=slot_view(detail.slot) if detail.slot else None,
        notes=order.notes,
        address=order.address,
        city=order.city,
        zip=order.zip,
        totals=TotalsView.model_validate(order.totals),
        promo_code=order.promo_code,
        payment_communication=order.payment_communication,
        admin_note=order.admin_note,
        history=[StatusChangeView.model_validate(change) for change in order.history],
    )

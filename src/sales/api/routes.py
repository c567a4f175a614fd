"""FastAPI routes for the public storefront — sections, events, orders, promo codes."""

import json

from fastapi import APIRouter, Response
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from sales.api.schemas import (
    EventDetail,
    EventSummary,
    OrderView,
    PlacedOrderResponse,
    PlaceOrderRequest,
    PromoCodeView,
    SectionView,
    TotalsView,
    ValidatePromoCodeRequest,
    ValidatePromoCodeResponse,
)
from sales.api.views import event_detail, event_summary, order_view
from sales.event.event import EventStatus, SaleEvent
from sales.export.ics import generate_pickup_ics
from sales.order.placement import PlaceOrder
from sales.order.queries import find_by_code
from sales.promo.management import validate_promo_code
from sales.section.management import list_sections
from sales.section.section import Section
from sales.slot.slot import Slot
from sales.utils.queries import find_all, find_first

# ---------------------------------------------------------------------------
# Section Router
# ---------------------------------------------------------------------------
section_router = APIRouter(prefix="/sections", tags=["sections"])


@section_router.get("", response_model=list[SectionView])
async def get_sections() -> list[SectionView]:
    """Sections in display order with the number of events currently open."""
    return [
        SectionView(
            id=str(listing.section.id),
            name=listing.section.name,
            slug=listing.section.slug,
            color=listing.section.color,
            sort_order=listing.section.sort_order or 0,
            active_events_count=listing.active_events_count,
        )
        for listing in list_sections()
    ]


# ---------------------------------------------------------------------------
# Event Router
# ---------------------------------------------------------------------------
event_router = APIRouter(prefix="/events", tags=["events"])


@event_router.get("", response_model=list[EventSummary])
async def list_events() -> list[EventSummary]:
    events = sorted(find_all(SaleEvent, status=EventStatus.ACTIVE.value), key=lambda event: event.start_date)
    sections = {str(section.id): section for section in find_all(Section)}
    return [event_summary(event, sections.get(str(event.section_id))) for event in events]


@event_router.get("/{slug}", response_model=EventDetail)
async def get_event(slug: str) -> EventDetail:
    """Catalog of an active event with its slots and remaining places."""
    event = find_first(SaleEvent, slug=slug)
    if event is None or not event.is_active:
        raise ObjectNotFoundError(f"Event {slug} not found")
    return event_detail(event)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=PlacedOrderResponse)
async def place_order(body: PlaceOrderRequest) -> PlacedOrderResponse:
    command = PlaceOrder(
        **body.model_dump(exclude={"items"}, exclude_none=True),
        items=json.dumps([item.model_dump() for item in body.items]),
    )
    placed = current_domain.process(command, asynchronous=False)

    return PlacedOrderResponse(
        id=placed.order_id,
        code=placed.code,
        totals=TotalsView.model_validate(placed.totals),
        payment_communication=placed.payment_communication,
        iban=placed.iban,
        iban_name=placed.iban_name,
        scan_payload=placed.scan_payload,
    )


@order_router.get("/{code}", response_model=OrderView)
async def get_order(code: str) -> OrderView:
    order = find_by_code(code)
    if order is None:
        raise ObjectNotFoundError(f"Order {code} not found")
    return order_view(order)


@order_router.get("/{code}/ics")
async def get_order_calendar(code: str) -> Response:
    """Calendar reminder for the order's pickup slot."""
    order = find_by_code(code)
    if order is None or not order.slot_id:
        raise ObjectNotFoundError(f"Order {code} not found")
    slot = current_domain.repository_for(Slot).get(order.slot_id)
    event = current_domain.repository_for(SaleEvent).get(order.event_id)
    content = generate_pickup_ics(
        order_code=order.code,
        customer_name=order.customer_name,
        event_name=event.name,
        slot_date=slot.date,
        start_time=slot.start_time,
        location=slot.location or event.settings.pickup_address,
    )

    return Response(
        content=content,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="retrait-{order.code}.ics"'},
    )


# ---------------------------------------------------------------------------
# Promo Code Router
# ---------------------------------------------------------------------------
promo_router = APIRouter(prefix="/promo-codes", tags=["promo-codes"])


@promo_router.post("/validate", response_model=ValidatePromoCodeResponse)
async def validate_promo(body: ValidatePromoCodeRequest) -> ValidatePromoCodeResponse:
    check = validate_promo_code(body.code)
    return ValidatePromoCodeResponse(
        valid=check.valid,
        promo_code=PromoCodeView(
            id=str(check.promo_code.id),
            code=check.promo_code.code,
            discount_cents=check.promo_code.discount_cents,
            description=check.promo_code.description,
        )
        if check.promo_code
        else None,
        error=check.reason,
    )

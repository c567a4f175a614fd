"""FastAPI routes for the back office.

Every route requires the ``x-admin-key`` header.
"""

import json

from fastapi import APIRouter, Depends, Query, Response
from protean.utils.globals import current_domain

from sales.api.dependencies import require_admin
from sales.api.schemas import (
    AddProductRequest,
    AdjustStockRequest,
    AdminEventDetail,
    AdminEventSummary,
    AdminOrderDetail,
    AdminOrderResponse,
    AdminOrderSummary,
    BulkDeleteSlotsRequest,
    BulkDeleteSlotsResponse,
    ChangeOrderStatusRequest,
    CreateEventRequest,
    CreatePromoCodeRequest,
    CreateSectionRequest,
    CreateSlotRequest,
    EventSettingsResponse,
    EventStatsResponse,
    GenerateSlotsRequest,
    GenerateSlotsResponse,
    IdResponse,
    ImportProductsRequest,
    ImportProductsResponse,
    PromoCodeAdminView,
    StatusResponse,
    UpdateEventSettingsRequest,
    UpdateOrderNotesRequest,
    UpdateProductRequest,
    UpdatePromoCodeRequest,
    UpdateSlotRequest,
)
from sales.api.views import admin_event_detail, admin_event_summary, admin_order_detail, admin_order_summary
from sales.event import queries as event_queries
from sales.event.event import SaleEvent
from sales.event.management import ActivateEvent, CloseEvent, CreateEvent, DeleteEvent, UpdateEventSettings
from sales.export.orders_csv import export_filename, export_orders_csv
from sales.order import queries as order_queries
from sales.order.notes import UpdateOrderNotes
from sales.order.status import ChangeOrderStatus
from sales.product.csv_import import ImportProducts, read_csv
from sales.product.management import AddProduct, AdjustProductStock, UpdateProduct
from sales.promo.management import CreatePromoCode, DeactivatePromoCode, UpdatePromoCode, list_promo_codes
from sales.section.management import CreateSection
from sales.slot.generation import GenerateSlots
from sales.slot.management import CreateSlot, DeleteSlot, DeleteSlots, UpdateSlot
from sales.utils.clock import local_now
from sales.utils.queries import find_first

admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _admin_order(order) -> AdminOrderResponse:
    return AdminOrderResponse(
        id=str(order.id),
        code=order.code,
        status=order.status,
        bank_reference=order.bank_reference,
        admin_note=order.admin_note,
    )


# ---------------------------------------------------------------------------
# Sections and events
# ---------------------------------------------------------------------------
@admin_router.post("/sections", status_code=201, response_model=IdResponse)
async def create_section(body: CreateSectionRequest) -> IdResponse:
    command = CreateSection(**body.model_dump(exclude_none=True))
    return IdResponse(id=_process(command))


@admin_router.post("/events", status_code=201, response_model=IdResponse)
async def create_event(body: CreateEventRequest) -> IdResponse:
    command = CreateEvent(
        **body.model_dump(exclude={"settings"}, exclude_none=True),
        settings=json.dumps(body.settings or {}),
    )
    return IdResponse(id=_process(command))


@admin_router.get("/events", response_model=list[AdminEventSummary])
async def list_events(section_id: str | None = None, status: str | None = None) -> list[AdminEventSummary]:
    """Every event, newest first, with order, product and slot counts."""
    return [admin_event_summary(summary) for summary in event_queries.list_events(section_id, status)]


@admin_router.get("/events/{event_id}", response_model=AdminEventDetail)
async def get_event(event_id: str) -> AdminEventDetail:
    return admin_event_detail(event_queries.event_detail(event_id))


@admin_router.delete("/events/{event_id}", response_model=StatusResponse)
async def delete_event(event_id: str) -> StatusResponse:
    _process(DeleteEvent(event_id=event_id))
    return StatusResponse()


@admin_router.get("/events/{event_id}/stats", response_model=EventStatsResponse)
async def get_event_stats(event_id: str) -> EventStatsResponse:
    return EventStatsResponse.model_validate(order_queries.event_stats(event_id))


@admin_router.patch("/events/{event_id}/settings", response_model=EventSettingsResponse)
async def update_event_settings(event_id: str, body: UpdateEventSettingsRequest) -> EventSettingsResponse:
    command = UpdateEventSettings(event_id=event_id, changes=json.dumps(body.changes))
    event_settings = _process(command)
    return EventSettingsResponse(settings=event_settings.to_blob())


@admin_router.post("/events/{event_id}/activate", response_model=StatusResponse)
async def activate_event(event_id: str) -> StatusResponse:
    _process(ActivateEvent(event_id=event_id))
    return StatusResponse()


@admin_router.post("/events/{event_id}/close", response_model=StatusResponse)
async def close_event(event_id: str) -> StatusResponse:
    _process(CloseEvent(event_id=event_id))
    return StatusResponse()


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
@admin_router.post("/events/{event_id}/products", status_code=201, response_model=IdResponse)
async def add_product(event_id: str, body: AddProductRequest) -> IdResponse:
    command = AddProduct(
        event_id=event_id,
        **body.model_dump(exclude={"allergens"}, exclude_none=True),
        allergens=json.dumps(body.allergens),
    )
    return IdResponse(id=_process(command))


@admin_router.post("/events/{event_id}/products/import", response_model=ImportProductsResponse)
async def import_products(event_id: str, body: ImportProductsRequest) -> ImportProductsResponse:
    rows = body.rows if body.rows is not None else read_csv(body.csv or "")
    command = ImportProducts(event_id=event_id, rows=json.dumps(rows), preview=body.preview)
    report = _process(command)

    return ImportProductsResponse(
        preview=body.preview,
        total_rows=report.total_rows,
        valid_products=report.valid_count,
        invalid_products=report.invalid_count,
        errors=report.errors,
        warnings=report.warnings,
        products=report.products,
        imported_ids=report.imported_ids,
    )


@admin_router.patch("/products/{product_id}", response_model=StatusResponse)
async def update_product(product_id: str, body: UpdateProductRequest) -> StatusResponse:
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if "allergens" in changes:
        changes["allergens"] = json.dumps(changes["allergens"])
    _process(UpdateProduct(product_id=product_id, **changes))
    return StatusResponse()


@admin_router.put("/products/{product_id}/stock", response_model=StatusResponse)
async def adjust_product_stock(product_id: str, body: AdjustStockRequest) -> StatusResponse:
    _process(AdjustProductStock(product_id=product_id, stock=body.stock))
    return StatusResponse()


# ---------------------------------------------------------------------------
# Slots
# ---------------------------------------------------------------------------
@admin_router.post("/events/{event_id}/slots", status_code=201, response_model=IdResponse)
async def create_slot(event_id: str, body: CreateSlotRequest) -> IdResponse:
    command = CreateSlot(event_id=event_id, **body.model_dump(exclude_none=True))
    return IdResponse(id=_process(command))


@admin_router.post("/events/{event_id}/slots/bulk", status_code=201, response_model=GenerateSlotsResponse)
async def generate_slots(event_id: str, body: GenerateSlotsRequest) -> GenerateSlotsResponse:
    command = GenerateSlots(
        event_id=event_id,
        **body.model_dump(exclude={"weekdays"}, exclude_none=True),
        weekdays=json.dumps(body.weekdays),
    )
    slot_ids = _process(command)
    return GenerateSlotsResponse(count=len(slot_ids), slot_ids=slot_ids)


@admin_router.post("/events/{event_id}/slots/bulk-delete", response_model=BulkDeleteSlotsResponse)
async def delete_slots(event_id: str, body: BulkDeleteSlotsRequest) -> BulkDeleteSlotsResponse:
    """Delete several slots at once; nothing is deleted if one of them has orders."""
    deleted = _process(DeleteSlots(event_id=event_id, slot_ids=json.dumps(body.slot_ids)))
    return BulkDeleteSlotsResponse(deleted=deleted)


@admin_router.patch("/slots/{slot_id}", response_model=StatusResponse)
async def update_slot(slot_id: str, body: UpdateSlotRequest) -> StatusResponse:
    _process(UpdateSlot(slot_id=slot_id, **body.model_dump(exclude_unset=True, exclude_none=True)))
    return StatusResponse()


@admin_router.delete("/slots/{slot_id}", response_model=StatusResponse)
async def delete_slot(slot_id: str) -> StatusResponse:
    _process(DeleteSlot(slot_id=slot_id))
    return StatusResponse()


# ---------------------------------------------------------------------------
# Promo codes
# ---------------------------------------------------------------------------
@admin_router.get("/promo-codes", response_model=list[PromoCodeAdminView])
async def get_promo_codes() -> list[PromoCodeAdminView]:
    return [
        PromoCodeAdminView(
            id=str(promo.id),
            code=promo.code,
            discount_cents=promo.discount_cents,
            description=promo.description,
            is_active=promo.is_active,
            created_at=promo.created_at,
        )
        for promo in list_promo_codes()
    ]


@admin_router.post("/promo-codes", status_code=201, response_model=IdResponse)
async def create_promo_code(body: CreatePromoCodeRequest) -> IdResponse:
    return IdResponse(id=_process(CreatePromoCode(**body.model_dump(exclude_none=True))))


@admin_router.patch("/promo-codes/{promo_code_id}", response_model=StatusResponse)
async def update_promo_code(promo_code_id: str, body: UpdatePromoCodeRequest) -> StatusResponse:
    _process(UpdatePromoCode(promo_code_id=promo_code_id, **body.model_dump(exclude_none=True)))
    return StatusResponse()


@admin_router.delete("/promo-codes/{promo_code_id}", response_model=StatusResponse)
async def deactivate_promo_code(promo_code_id: str) -> StatusResponse:
    _process(DeactivatePromoCode(promo_code_id=promo_code_id))
    return StatusResponse()


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
@admin_router.get("/orders", response_model=list[AdminOrderSummary])
async def list_orders(
    event_id: str | None = None,
    section_id: str | None = None,
    status: list[str] | None = Query(None),
    delivery_type: str | None = None,
    slot_id: str | None = None,
    search: str | None = None,
) -> list[AdminOrderSummary]:
    """Orders matching the filters, newest first, with their lines."""
    orders = order_queries.filter_orders(
        event_id=event_id,
        section_id=section_id,
        statuses=status,
        delivery_type=delivery_type,
        slot_id=slot_id,
        search=search,
    )
    return [admin_order_summary(order) for order in orders]


@admin_router.get("/orders/export")
async def export_orders(
    event_id: str | None = None,
    status: list[str] | None = Query(None),
    delivery_type: str | None = None,
    slot_id: str | None = None,
) -> Response:
    """Orders as a CSV spreadsheet, newest first."""
    orders = order_queries.orders_for_export(
        event_id=event_id,
        statuses=status,
        delivery_type=delivery_type,
        slot_id=slot_id,
    )
    content = export_orders_csv(orders)
    event = find_first(SaleEvent, id=event_id) if event_id else None
    filename = export_filename(event, local_now().date())

    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@admin_router.get("/orders/{order_id}", response_model=AdminOrderDetail)
async def get_order(order_id: str) -> AdminOrderDetail:
    return admin_order_detail(order_queries.order_detail(order_id))


@admin_router.patch("/orders/{order_id}/status", response_model=AdminOrderResponse)
async def change_order_status(order_id: str, body: ChangeOrderStatusRequest) -> AdminOrderResponse:
    command = ChangeOrderStatus(order_id=order_id, status=body.status, override=body.override)
    return _admin_order(_process(command))


@admin_router.patch("/orders/{order_id}/notes", response_model=AdminOrderResponse)
async def update_order_notes(order_id: str, body: UpdateOrderNotesRequest) -> AdminOrderResponse:
    command = UpdateOrderNotes(order_id=order_id, **body.model_dump(exclude_none=True))
    return _admin_order(_process(command))


@admin_router.get("/search", response_model=list[AdminOrderSummary])
async def search_orders(q: str = "") -> list[AdminOrderSummary]:
    """Quick order lookup by code, customer name, email or phone across all events."""
    return [admin_order_summary(order) for order in order_queries.search_orders(q)]

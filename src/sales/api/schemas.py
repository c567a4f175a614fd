"""Pydantic request/response schemas for the sales API.

These are external contracts, separate from the internal commands.
"""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StatusResponse(BaseModel):
    status: str = "ok"


class IdResponse(BaseModel):
    id: str


class ErrorResponse(BaseModel):
    error: str
    details: dict[str, list[str]] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Storefront
# ---------------------------------------------------------------------------
class SectionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    color: str


class SectionView(SectionSummary):
    sort_order: int = 0
    active_events_count: int = 0


class EventSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    name: str
    description: str | None = None
    event_type: str
    start_date: dt.date
    end_date: dt.date
    section: SectionSummary | None = None


class ProductView(BaseModel):
    id: str
    name: str
    description: str | None = None
    price_cents: int
    product_type: str
    stock: int | None = None
    sort_order: int
    allergens: list[str] = Field(default_factory=list)
    is_vegetarian: bool
    is_vegan: bool
    is_active: bool = True


class SlotView(BaseModel):
    id: str
    date: dt.date
    start_time: str
    end_time: str
    capacity: int
    remaining: int
    location: str | None = None


class EventOptions(BaseModel):
    delivery_enabled: bool
    delivery_min_units: int
    delivery_fee_cents: int
    allowed_zip_codes: list[str]
    bundle_discount_enabled: bool
    pickup_address: str | None = None


class EventDetail(EventSummary):
    options: EventOptions
    products: list[ProductView]
    slots: list[SlotView]


class OrderLineRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)
    unit_price_cents: int = Field(ge=0)


class PlaceOrderRequest(BaseModel):
    event_id: str
    customer_name: str
    email: str
    phone: str
    delivery_type: str
    payment_method: str
    items: list[OrderLineRequest]
    rgpd_consent: bool = False
    slot_id: str | None = None
    address: str | None = None
    city: str | None = None
    zip: str | None = None
    notes: str | None = None
    promo_code: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "event_id": "8d3f6a1e-0c1b-4a39-9f4e-2f5e1d2c3b4a",
                    "customer_name": "Dupont Marie",
                    "email": "marie@example.be",
                    "phone": "0471 23 45 67",
                    "delivery_type": "PICKUP",
                    "payment_method": "BANK_TRANSFER",
                    "slot_id": "0b7c1f0e-5d0a-4f5e-8b1d-6f0c2e3a4b5c",
                    "items": [{"product_id": "c1", "quantity": 6, "unit_price_cents": 1000}],
                    "rgpd_consent": True,
                }
            ]
        }
    }


class TotalsView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subtotal_cents: int
    bundle_discount_cents: int
    delivery_fee_cents: int
    promo_discount_cents: int
    total_cents: int


class PlacedOrderResponse(BaseModel):
    id: str
    code: str
    totals: TotalsView
    payment_communication: str
    iban: str | None = None
    iban_name: str | None = None
    scan_payload: str


class OrderItemView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    product_name: str
    quantity: int
    unit_price_cents: int
    line_total_cents: int


class OrderView(BaseModel):
    code: str
    status: str
    customer_name: str
    delivery_type: str
    payment_method: str
    payment_communication: str
    event_name: str
    slot: SlotView | None = None
    address: str | None = None
    city: str | None = None
    zip: str | None = None
    items: list[OrderItemView]
    totals: TotalsView
    promo_code: str | None = None
    iban: str | None = None
    iban_name: str | None = None
    scan_payload: str
    created_at: dt.datetime


class ValidatePromoCodeRequest(BaseModel):
    code: str


class PromoCodeView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    discount_cents: int
    description: str | None = None


class ValidatePromoCodeResponse(BaseModel):
    valid: bool
    promo_code: PromoCodeView | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Back office
# ---------------------------------------------------------------------------
class CreateSectionRequest(BaseModel):
    name: str
    slug: str
    color: str | None = None
    iban: str | None = None
    iban_name: str | None = None
    sort_order: int = 0


class CreateEventRequest(BaseModel):
    section_id: str
    slug: str
    name: str
    start_date: dt.date
    end_date: dt.date
    event_type: str = "PRODUCT_SALE"
    description: str | None = None
    settings: dict[str, Any] | None = None


class UpdateEventSettingsRequest(BaseModel):
    changes: dict[str, Any]


class EventSettingsResponse(BaseModel):
    settings: dict[str, Any]


class AddProductRequest(BaseModel):
    name: str
    price_cents: int
    product_type: str = "ITEM"
    description: str | None = None
    stock: int | None = None
    is_active: bool = True
    sort_order: int = 0
    allergens: list[str] = Field(default_factory=list)
    is_vegetarian: bool = False
    is_vegan: bool = False


class UpdateProductRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    price_cents: int | None = None
    product_type: str | None = None
    is_active: bool | None = None
    sort_order: int | None = None
    allergens: list[str] | None = None
    is_vegetarian: bool | None = None
    is_vegan: bool | None = None


class AdjustStockRequest(BaseModel):
    stock: int | None


class ImportProductsRequest(BaseModel):
    """Either parsed ``rows`` or raw ``csv`` text."""

    rows: list[dict[str, Any]] | None = None
    csv: str | None = None
    preview: bool = False


class ImportProductsResponse(BaseModel):
    preview: bool
    total_rows: int
    valid_products: int
    invalid_products: int
    errors: list[str]
    warnings: list[str]
    products: list[dict[str, Any]]
    imported_ids: list[str] = Field(default_factory=list)


class CreateSlotRequest(BaseModel):
    date: dt.date
    start_time: str
    end_time: str
    capacity: int
    location: str | None = None


class UpdateSlotRequest(BaseModel):
    date: dt.date | None = None
    start_time: str | None = None
    end_time: str | None = None
    capacity: int | None = None
    location: str | None = None


class GenerateSlotsRequest(BaseModel):
    start_date: dt.date
    end_date: dt.date
    start_time: str
    end_time: str
    interval_minutes: int
    capacity: int
    weekdays: list[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4, 5, 6])
    location: str | None = None


class GenerateSlotsResponse(BaseModel):
    count: int
    slot_ids: list[str]


class CreatePromoCodeRequest(BaseModel):
    code: str
    discount_cents: int
    description: str | None = None
    is_active: bool = True


class UpdatePromoCodeRequest(BaseModel):
    discount_cents: int | None = None
    description: str | None = None
    is_active: bool | None = None


class ChangeOrderStatusRequest(BaseModel):
    status: str
    override: bool = False


class UpdateOrderNotesRequest(BaseModel):
    bank_reference: str | None = None
    admin_note: str | None = None


class AdminOrderResponse(BaseModel):
    id: str
    code: str
    status: str
    bank_reference: str | None = None
    admin_note: str | None = None


class BulkDeleteSlotsRequest(BaseModel):
    slot_ids: list[str] = Field(min_length=1)


class BulkDeleteSlotsResponse(BaseModel):
    deleted: int


class PromoCodeAdminView(PromoCodeView):
    is_active: bool
    created_at: dt.datetime | None = None


class AdminEventSummary(BaseModel):
    id: str
    section_id: str
    slug: str
    name: str
    event_type: str
    status: str
    start_date: dt.date
    end_date: dt.date
    created_at: dt.datetime | None = None
    orders_count: int
    products_count: int
    slots_count: int
    total_revenue_cents: int


class AdminEventDetail(BaseModel):
    id: str
    section_id: str
    slug: str
    name: str
    description: str | None = None
    event_type: str
    status: str
    start_date: dt.date
    end_date: dt.date
    settings: dict[str, Any]
    products: list[ProductView]
    slots: list[SlotView]
    orders_count: int
    orders_by_status: dict[str, int]


class ProductSalesView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    product_name: str
    quantity: int
    revenue_cents: int


class EventStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_orders: int
    total_revenue_cents: int
    total_items: int
    average_order_value_cents: int
    average_items_per_order: float
    orders_by_status: dict[str, int]
    orders_by_delivery_type: dict[str, int]
    orders_by_payment_method: dict[str, int]
    subtotal_cents: int
    bundle_discount_cents: int
    promo_discount_cents: int
    delivery_fee_cents: int
    products: list[ProductSalesView]


class StatusChangeView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    from_status: str
    to_status: str
    capacity_override: bool
    changed_at: dt.datetime


class AdminOrderSummary(BaseModel):
    id: str
    code: str
    status: str
    event_id: str
    customer_name: str
    email: str
    phone: str
    delivery_type: str
    payment_method: str
    slot_id: str | None = None
    total_cents: int
    bank_reference: str | None = None
    created_at: dt.datetime
    items: list[OrderItemView]


class AdminOrderDetail(AdminOrderSummary):
    event_name: str | None = None
    section_name: str | None = None
    slot: SlotView | None = None
    notes: str | None = None
    address: str | None = None
    city: str | None = None
    zip: str | None = None
    totals: TotalsView
    promo_code: str | None = None
    payment_communication: str
    admin_note: str | None = None
    history: list[StatusChangeView]

"""Order submission — command and handler.

The handler gathers facts from storage (event, catalog, slot bookings, stock,
promo code), hands them to the pricing engine and persists the result. Every
failure is a ``ValidationError`` subclass and nothing is written when one is
raised.
"""

import json
from collections import OrderedDict
from dataclasses import dataclass

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from sales.domain import sales
from sales.errors import (
    InvalidPromoCode,
    OutOfStock,
    PriceMismatch,
    ProductUnavailable,
    SlotNotBookable,
)
from sales.event.event import EventStatus, SaleEvent
from sales.order.order import SLOTTED_DELIVERY_TYPES, DeliveryType, Order, PaymentMethod
from sales.order.queries import count_orders_for_event, slot_capacity_fact
from sales.pricing import (
    CartLine,
    OrderTotals,
    apply_promo_discount,
    check_delivery_eligibility,
    check_slot_capacity,
    compute_totals,
    generate_order_code,
    generate_payment_communication,
    scan_payload,
    validate_stock,
)
from sales.product.product import Product
from sales.promo.promo_code import find_promo_code
from sales.section.section import Section
from sales.slot.slot import Slot
from sales.utils import settings
from sales.utils.clock import local_now
from sales.utils.logging import get_logger
from sales.utils.queries import find_all, find_first
from sales.utils.validation import clean_phone, is_valid_belgian_phone, is_valid_belgian_zip, is_valid_email

logger = get_logger(__name__)

MAX_CART_LINES = 20
MAX_NOTES_LENGTH = 500


class OrderLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    quantity: int
    unit_price_cents: int


@sales.command(part_of="Order")
class PlaceOrder:
    event_id = Identifier(required=True)
    customer_name = String(required=True, max_length=200)
    email = String(required=True, max_length=255)
    phone = String(required=True, max_length=30)
    delivery_type = String(required=True, max_length=10)
    payment_method = String(required=True, max_length=20)
    items = Text(required=True)  # JSON: list of {product_id, quantity, unit_price_cents}
    rgpd_consent = Boolean(default=False)
    slot_id = Identifier()
    address = String(max_length=200)
    city = String(max_length=100)
    zip = String(max_length=10)
    notes = Text()
    promo_code = String(max_length=50)


def order_lines(command) -> list[OrderLine]:
    """The cart lines carried by a ``PlaceOrder`` command."""
    try:
        raw = json.loads(command.items)
        if not isinstance(raw, list):
            raise ValueError("items must be a list")
        return [OrderLine.model_validate(line) for line in raw]
    except (PydanticValidationError, ValueError, TypeError) as exc:
        raise ValidationError({"items": ["Order lines are malformed"]}) from exc


@dataclass(frozen=True)
class PlacedOrder:
    order_id: str
    code: str
    totals: OrderTotals
    payment_communication: str
    iban: str | None
    iban_name: str | None
    scan_payload: str


def merge_lines(items: list[OrderLine]) -> list[OrderLine]:
    """Fold repeated products into one line, keeping first-seen order."""
    merged: OrderedDict[str, OrderLine] = OrderedDict()
    for item in items:
        if item.product_id in merged:
            previous = merged[item.product_id]
            merged[item.product_id] = previous.model_copy(update={"quantity": previous.quantity + item.quantity})
        else:
            merged[item.product_id] = item
    return list(merged.values())


def _validate_customer(command, lines: list[OrderLine]) -> None:
    errors = {}

    name = command.customer_name.strip()
    if not 2 <= len(name) <= 100:
        errors["customer_name"] = ["Name must be between 2 and 100 characters"]
    if not is_valid_email(command.email):
        errors["email"] = ["Invalid email address"]
    if not is_valid_belgian_phone(command.phone):
        errors["phone"] = ["Invalid Belgian phone number"]
    if command.notes and len(command.notes) > MAX_NOTES_LENGTH:
        errors["notes"] = [f"Notes are limited to {MAX_NOTES_LENGTH} characters"]
    if command.payment_method not in {member.value for member in PaymentMethod}:
        errors["payment_method"] = [f"Unknown payment method {command.payment_method}"]
    if not command.rgpd_consent:
        errors["rgpd_consent"] = ["Consent to the privacy policy is required"]
    if not 1 <= len(lines) <= MAX_CART_LINES:
        errors["items"] = [f"An order must contain between 1 and {MAX_CART_LINES} lines"]
    elif any(item.quantity < 1 for item in lines):
        errors["items"] = ["Quantities must be at least 1"]

    try:
        delivery_type = DeliveryType(command.delivery_type)
    except ValueError:
        errors["delivery_type"] = [f"Unknown delivery type {command.delivery_type}"]
    else:
        if delivery_type in SLOTTED_DELIVERY_TYPES and not command.slot_id:
            errors["slot_id"] = ["A slot is required for pickup and on-site orders"]
        if delivery_type == DeliveryType.DELIVERY:
            if not command.address or len(command.address.strip()) < 5:
                errors["address"] = ["A delivery address is required"]
            if not command.city or len(command.city.strip()) < 2:
                errors["city"] = ["A city is required for delivery"]
            if not is_valid_belgian_zip(command.zip):
                errors["zip"] = ["Belgian postal codes have 4 digits"]

    if errors:
        raise ValidationError(errors)


@sales.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command) -> PlacedOrder:
        lines = order_lines(command)

        # 1. Event open for orders
        event = find_first(SaleEvent, id=str(command.event_id))
        if event is None or event.status != EventStatus.ACTIVE.value:
            raise ObjectNotFoundError(f"Event {command.event_id} not found")
        today = local_now().date()
        event.ensure_accepting_orders(today)
        event_settings = event.settings

        # 2. Catalog: products exist, are active, belong to the event, prices match
        product_ids = {item.product_id for item in lines}
        products = {
            str(product.id): product
            for product in find_all(Product, event_id=str(event.id))
            if str(product.id) in product_ids
        }
        for item in lines:
            product = products.get(item.product_id)
            if product is None or not product.is_active:
                raise ProductUnavailable(item.product_id)
            if item.unit_price_cents != product.price_cents:
                raise PriceMismatch(product.name, item.unit_price_cents, product.price_cents)

        # 3. Customer and cart shape
        _validate_customer(command, lines)
        delivery_type = DeliveryType(command.delivery_type)
        cart = [CartLine(**line.model_dump()) for line in merge_lines(lines)]

        # 4. Delivery rules or slot capacity
        slot = None
        if delivery_type == DeliveryType.DELIVERY:
            check_delivery_eligibility(cart, event_settings, command.zip)
        else:
            slot = find_first(Slot, id=str(command.slot_id))
            if slot is None or str(slot.event_id) != str(event.id):
                raise SlotNotBookable(command.slot_id)
            check_slot_capacity(slot_capacity_fact(slot))

        # 5. Stock
        stock = validate_stock(cart, [product.stock_fact() for product in products.values()])
        if not stock.valid:
            raise OutOfStock(list(stock.errors))

        # 6. Promo code
        promo = None
        if command.promo_code and command.promo_code.strip():
            promo = find_promo_code(command.promo_code)
            if promo is None or not promo.is_active:
                raise InvalidPromoCode(command.promo_code)

        # 7. Totals
        delivery_fee = event_settings.delivery_fee_cents if delivery_type == DeliveryType.DELIVERY else 0
        totals = compute_totals(cart, event_settings.bundle_discount_enabled, delivery_fee)
        if promo is not None:
            totals = apply_promo_discount(totals, promo.discount_cents)

        # 8. References
        sequence = count_orders_for_event(str(event.id)) + 1
        code = generate_order_code(event_settings.order_code_prefix, today.year, sequence)
        communication = generate_payment_communication(command.customer_name, event.name)

        # 9. Persist and take stock
        order = Order.place(
            event_id=event.id,
            code=code,
            customer={
                "customer_name": command.customer_name.strip(),
                "email": command.email.strip(),
                "phone": clean_phone(command.phone),
                "notes": command.notes or None,
                "rgpd_consent": command.rgpd_consent,
                "address": command.address if delivery_type == DeliveryType.DELIVERY else None,
                "city": command.city if delivery_type == DeliveryType.DELIVERY else None,
                "zip": command.zip if delivery_type == DeliveryType.DELIVERY else None,
            },
            delivery_type=delivery_type.value,
            lines=cart,
            product_names={str(product.id): product.name for product in products.values()},
            totals=totals,
            payment_method=command.payment_method,
            payment_communication=communication,
            slot_id=str(slot.id) if slot else None,
            promo_code=promo,
        )
        current_domain.repository_for(Order).add(order)
        product_repo = current_domain.repository_for(Product)
        for line in cart:
            product = products[line.product_id]
            product.deduct_stock(line.quantity)
            product_repo.add(product)

        section = find_first(Section, id=str(event.section_id))
        logger.info(
            "Order placed",
            order_id=str(order.id),
            code=order.code,
            event_id=str(event.id),
            delivery_type=order.delivery_type,
            total_cents=order.total_cents,
            promo_code=order.promo_code,
        )
        return PlacedOrder(
            order_id=str(order.id),
            code=order.code,
            totals=totals,
            payment_communication=communication,
            iban=event_settings.iban_override or (section.iban if section else None),
            iban_name=event_settings.iban_name_override or (section.iban_name if section else None),
            scan_payload=scan_payload(settings.SITE_URL, order.code),
        )

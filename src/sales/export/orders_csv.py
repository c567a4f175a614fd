"""Orders spreadsheet export (French labels, amounts in euros)."""

import csv
import datetime as dt
import io
from collections.abc import Iterable
from zoneinfo import ZoneInfo

from sales.event.event import SaleEvent
from sales.order.order import Order
from sales.section.section import Section
from sales.slot.slot import Slot
from sales.utils import settings
from sales.utils.queries import find_first

STATUS_LABELS = {
    "PENDING": "En attente",
    "PAID": "Payé",
    "PREPARED": "Préparé",
    "DELIVERED": "Livré",
    "CANCELLED": "Annulé",
}

DELIVERY_LABELS = {
    "PICKUP": "Retrait",
    "DELIVERY": "Livraison",
    "ON_SITE": "Sur place",
}

HEADERS = [
    "Code",
    "Date",
    "Événement",
    "Section",
    "Nom",
    "Email",
    "Téléphone",
    "Produits",
    "Quantités",
    "Créneau",
    "Type livraison",
    "Adresse",
    "Code postal",
    "Ville",
    "Sous-total (€)",
    "Remise groupée (€)",
    "Frais livraison (€)",
    "Code promo",
    "Remise promo (€)",
    "Total (€)",
    "Statut",
    "Méthode paiement",
    "Communication virement",
    "Référence bancaire",
    "Notes",
]

# Spreadsheet apps need the BOM to read the file as UTF-8
BOM = "\ufeff"


def format_price(cents: int | None) -> str:
    return f"{(cents or 0) / 100:.2f}"


def format_date(value: dt.datetime | None) -> str:
    """Local calendar date of a stored timestamp; naive values are UTC."""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.UTC)
    return value.astimezone(ZoneInfo(settings.TIMEZONE)).strftime("%d/%m/%Y")


def _by_id(aggregate_cls, ids) -> dict:
    records = (find_first(aggregate_cls, id=record_id) for record_id in ids)
    return {str(record.id): record for record in records if record is not None}


def _row(order: Order, events: dict, sections: dict, slots: dict) -> list[str]:
    event = events.get(str(order.event_id))
    section = sections.get(str(event.section_id)) if event else None
    slot = slots.get(str(order.slot_id)) if order.slot_id else None

    return [
        order.code,
        format_date(order.created_at),
        event.name if event else "",
        section.name if section else "",
        order.customer_name,
        order.email,
        order.phone,
        "; ".join(item.product_name or "Inconnu" for item in order.items),
        "; ".join(f"{item.quantity}x" for item in order.items),
        slot.label if slot else "",
        DELIVERY_LABELS.get(order.delivery_type, order.delivery_type),
        order.address or "",
        order.zip or "",
        order.city or "",
        format_price(order.subtotal_cents),
        format_price(order.bundle_discount_cents),
        format_price(order.delivery_fee_cents),
        order.promo_code or "",
        format_price(order.promo_discount_cents),
        format_price(order.total_cents),
        STATUS_LABELS.get(order.status, order.status),
        order.payment_method or "",
        order.payment_communication or "",
        order.bank_reference or "",
        order.notes or "",
    ]


def export_orders_csv(orders: Iterable[Order]) -> str:
    """Render orders (already filtered and sorted) as CSV text."""
    orders = list(orders)
    events = _by_id(SaleEvent, {str(order.event_id) for order in orders})
    sections = _by_id(Section, {str(event.section_id) for event in events.values()})
    slots = _by_id(Slot, {str(order.slot_id) for order in orders if order.slot_id})

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(HEADERS)
    for order in orders:
        writer.writerow(_row(order, events, sections, slots))
    return BOM + buffer.getvalue()


def export_filename(event: SaleEvent | None, today) -> str:
    stamp = today.isoformat()
    if event is not None:
        return f"commandes_{event.slug}_{stamp}.csv"
    return f"commandes_{stamp}.csv"

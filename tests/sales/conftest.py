import json
from dataclasses import dataclass, field
from datetime import timedelta

import pytest
from protean import current_domain

from sales.event.event import SaleEvent
from sales.order.placement import PlaceOrder
from sales.product.product import Product
from sales.promo.promo_code import PromoCode
from sales.section.section import Section
from sales.slot.slot import Slot
from sales.utils.clock import local_now


@dataclass
class Sale:
    """Ids of a seeded, open sale."""

    section_id: str
    event_id: str
    event_slug: str
    product_ids: dict[str, str] = field(default_factory=dict)
    slot_id: str | None = None
    promo_code_id: str | None = None


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _add(*records):
    for record in records:
        current_domain.repository_for(type(record)).add(record)


@pytest.fixture
def process():
    """Run one command synchronously through its handler."""
    return _process


@pytest.fixture
def today():
    return local_now().date()


@pytest.fixture
def sale(today):
    """An active sale with two priced products, one pickup slot and a promo code."""
    section = Section.create(
        name="Pionniers",
        slug="pionniers",
        iban="BE68 5390 0754 7034",
        iban_name="Unité scoute",
    )
    _add(section)

    event = SaleEvent.create(
        section_id=section.id,
        slug="vente-cremant-2025",
        name="Vente de Crémant 2025",
        start_date=today - timedelta(days=1),
        end_date=today + timedelta(days=30),
        settings={
            "delivery_enabled": True,
            "delivery_min_units": 5,
            "delivery_fee_cents": 500,
            "allowed_zip_codes": ["7190", "7191"],
            "bundle_discount_enabled": True,
            "order_code_prefix": "CRE",
        },
    )
    event.activate()
    _add(event)

    brut = Product.create(event_id=event.id, name="Crémant Brut", price_cents=1000, stock=50)
    rose = Product.create(event_id=event.id, name="Crémant Rosé", price_cents=1200)
    slot = Slot.create(event_id=event.id, date=today + timedelta(days=10), start_time="10:00", end_time="10:30", capacity=2)
    promo = PromoCode.create(code="scout5", discount_cents=500)
    _add(brut, rose, slot, promo)

    return Sale(
        section_id=str(section.id),
        event_id=str(event.id),
        event_slug=event.slug,
        product_ids={"brut": str(brut.id), "rose": str(rose.id)},
        slot_id=str(slot.id),
        promo_code_id=str(promo.id),
    )


@pytest.fixture
def order_payload(sale):
    """Builder of a valid pickup order submission for the seeded sale."""

    def build(**overrides):
        payload = {
            "event_id": sale.event_id,
            "customer_name": "Dupont Marie",
            "email": "marie.dupont@example.be",
            "phone": "0471 23 45 67",
            "delivery_type": "PICKUP",
            "payment_method": "BANK_TRANSFER",
            "slot_id": sale.slot_id,
            "items": [
                {"product_id": sale.product_ids["brut"], "quantity": 6, "unit_price_cents": 1000},
                {"product_id": sale.product_ids["rose"], "quantity": 6, "unit_price_cents": 1200},
            ],
            "rgpd_consent": True,
        }
        payload.update(overrides)
        return payload

    return build


@pytest.fixture
def place_order(order_payload):
    """Place an order for the seeded sale; keyword overrides go to the submission."""

    def place(**overrides):
        payload = order_payload(**overrides)
        payload["items"] = json.dumps(payload["items"])
        return _process(PlaceOrder(**payload))

    return place

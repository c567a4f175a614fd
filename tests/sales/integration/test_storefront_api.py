"""Integration tests for the storefront endpoints via TestClient."""

from datetime import timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from protean import current_domain

from sales.api import event_router, order_router, promo_router, register_exception_handlers, section_router
from sales.event.event import SaleEvent
from sales.section.section import Section


@pytest.fixture()
def client():
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(section_router)
    app.include_router(event_router)
    app.include_router(order_router)
    app.include_router(promo_router)
    return TestClient(app)


def _place(client, payload):
    response = client.post("/orders", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestSections:
    def test_sections_in_display_order(self, client, sale):
        scouts = Section.create(name="Scouts", slug="scouts", sort_order=1)
        baladins = Section.create(name="Baladins", slug="baladins", sort_order=1)
        for section in (scouts, baladins):
            current_domain.repository_for(Section).add(section)

        response = client.get("/sections")

        assert response.status_code == 200
        assert [section["slug"] for section in response.json()] == ["pionniers", "baladins", "scouts"]

    def test_active_events_counted(self, client, sale):
        [section] = client.get("/sections").json()
        assert section["active_events_count"] == 1
        assert section["sort_order"] == 0


class TestEvents:
    def test_list_active_events(self, client, sale):
        response = client.get("/events")
        assert response.status_code == 200
        [event] = response.json()
        assert event["slug"] == "vente-cremant-2025"
        assert event["section"]["slug"] == "pionniers"

    def test_event_detail(self, client, sale):
        response = client.get(f"/events/{sale.event_slug}")
        assert response.status_code == 200
        body = response.json()
        assert [product["name"] for product in body["products"]] == ["Crémant Brut", "Crémant Rosé"]
        assert body["options"]["delivery_fee_cents"] == 500
        assert body["slots"][0]["remaining"] == 2

    def test_remaining_places_follow_orders(self, client, sale, order_payload):
        _place(client, order_payload())
        assert client.get(f"/events/{sale.event_slug}").json()["slots"][0]["remaining"] == 1

    def test_closed_event_not_found(self, client, sale):
        repo = current_domain.repository_for(SaleEvent)
        event = repo.get(sale.event_id)
        event.close()
        repo.add(event)
        assert client.get(f"/events/{sale.event_slug}").status_code == 404


class TestPlaceOrder:
    def test_created(self, client, sale, order_payload, today):
        body = _place(client, order_payload(promo_code="scout5"))

        assert body["code"] == f"CRE-{today.year}-00001"
        assert body["totals"] == {
            "subtotal_cents": 13200,
            "bundle_discount_cents": 1000,
            "delivery_fee_cents": 0,
            "promo_discount_cents": 500,
            "total_cents": 11700,
        }
        assert body["iban"] == "BE68539007547034"

    def test_business_failure_is_a_400_with_details(self, client, sale, order_payload):
        items = [{"product_id": sale.product_ids["brut"], "quantity": 6, "unit_price_cents": 1}]
        response = client.post("/orders", json=order_payload(items=items))

        assert response.status_code == 400
        assert set(response.json()) == {"error", "details"}
        assert "items" in response.json()["details"]

    def test_malformed_body_is_a_400(self, client, sale, order_payload):
        payload = order_payload()
        del payload["email"]
        response = client.post("/orders", json=payload)
        assert response.status_code == 400
        assert "email" in response.json()["details"]

    def test_closed_sale_is_a_410(self, client, sale, order_payload, today):
        repo = current_domain.repository_for(SaleEvent)
        event = repo.get(sale.event_id)
        event.start_date = today - timedelta(days=30)
        event.end_date = today - timedelta(days=1)
        repo.add(event)
        response = client.post("/orders", json=order_payload())
        assert response.status_code == 410

    def test_unknown_event_is_a_404(self, client, sale, order_payload):
        assert client.post("/orders", json=order_payload(event_id="missing")).status_code == 404


class TestOrderLookup:
    def test_get_order_by_code(self, client, sale, order_payload):
        placed = _place(client, order_payload())

        response = client.get(f"/orders/{placed['code'].lower()}")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "PENDING"
        assert body["event_name"] == "Vente de Crémant 2025"
        assert body["slot"]["start_time"] == "10:00"
        assert len(body["items"]) == 2

    def test_unknown_code(self, client, sale):
        assert client.get("/orders/CRE-2025-99999").status_code == 404

    def test_pickup_calendar(self, client, sale, order_payload):
        placed = _place(client, order_payload())

        response = client.get(f"/orders/{placed['code']}/ics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/calendar")
        assert f'filename="retrait-{placed["code"]}.ics"' in response.headers["content-disposition"]
        assert "BEGIN:VEVENT" in response.text

    def test_no_calendar_for_home_delivery(self, client, sale, order_payload):
        placed = _place(
            client,
            order_payload(
                delivery_type="DELIVERY",
                slot_id=None,
                address="Rue de la Station 12",
                city="Ecaussinnes",
                zip="7190",
            ),
        )
        assert client.get(f"/orders/{placed['code']}/ics").status_code == 404


class TestValidatePromoCode:
    def test_valid_code(self, client, sale):
        response = client.post("/promo-codes/validate", json={"code": "scout5"})
        assert response.status_code == 200
        assert response.json()["valid"] is True
        assert response.json()["promo_code"]["discount_cents"] == 500

    def test_unknown_code(self, client, sale):
        body = client.post("/promo-codes/validate", json={"code": "nope"}).json()
        assert body == {"valid": False, "promo_code": None, "error": "Invalid promo code"}

    def test_blank_code(self, client, sale):
        assert client.post("/promo-codes/validate", json={"code": " "}).status_code == 400

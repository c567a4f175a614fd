import json
from datetime import date, timedelta

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from sales.errors import EventHasOrders
from sales.event.event import SaleEvent
from sales.event.management import (
    ActivateEvent,
    CloseEvent,
    CreateEvent,
    DeleteEvent,
    UpdateEventSettings,
)
from sales.order.placement import PlaceOrder
from sales.product.product import Product
from sales.section.management import CreateSection, list_sections
from sales.section.section import Section
from sales.slot.slot import Slot
from sales.utils.queries import find_all


@pytest.fixture
def section_id(process):
    return process(CreateSection(name="Louveteaux", slug="louveteaux"))


def _get(aggregate_cls, identifier):
    return current_domain.repository_for(aggregate_cls).get(identifier)


def _create_event(process, section_id, **overrides):
    data = {
        "section_id": section_id,
        "slug": "souper-2025",
        "name": "Souper 2025",
        "start_date": date(2025, 3, 1),
        "end_date": date(2025, 3, 15),
    }
    data.update(overrides)
    return process(CreateEvent(**data))


class TestSections:
    def test_default_color(self, section_id):
        assert _get(Section, section_id).color == "#f59e0b"

    def test_duplicate_slug(self, process, section_id):
        with pytest.raises(ValidationError) as exc_info:
            process(CreateSection(name="Autre", slug="louveteaux"))
        assert "slug" in exc_info.value.messages

    def test_listing_in_display_order_with_active_events(self, process, section_id, sale):
        process(CreateSection(name="Baladins", slug="baladins", sort_order=-1))

        listings = list_sections()

        assert [listing.section.slug for listing in listings] == ["baladins", "louveteaux", "pionniers"]
        assert [listing.active_events_count for listing in listings] == [0, 0, 1]


class TestEventLifecycle:
    def test_created_as_draft(self, process, section_id):
        event_id = _create_event(process, section_id)
        event = _get(SaleEvent, event_id)
        assert event.status == "DRAFT"
        assert event.settings.order_code_prefix == "S2025"

    def test_unknown_section(self, process, section_id):
        with pytest.raises(ObjectNotFoundError):
            _create_event(process, "missing")

    def test_duplicate_slug(self, process, section_id):
        _create_event(process, section_id)
        with pytest.raises(ValidationError):
            _create_event(process, section_id, name="Autre souper")

    def test_activate_then_close(self, process, section_id):
        event_id = _create_event(process, section_id)
        process(ActivateEvent(event_id=event_id))
        assert _get(SaleEvent, event_id).is_active

        process(CloseEvent(event_id=event_id))
        assert _get(SaleEvent, event_id).status == "CLOSED"


class TestOrderCodePrefix:
    def test_explicit_prefix_taken_in_same_year_rejected(self, process, section_id):
        _create_event(process, section_id, settings=json.dumps({"order_code_prefix": "SOU"}))

        with pytest.raises(ValidationError) as exc_info:
            _create_event(
                process,
                section_id,
                slug="souper-automne-2025",
                start_date=date(2025, 10, 1),
                end_date=date(2025, 10, 2),
                settings=json.dumps({"order_code_prefix": "SOU"}),
            )
        assert "order_code_prefix" in exc_info.value.messages

    def test_same_prefix_allowed_in_another_year(self, process, section_id):
        _create_event(process, section_id, settings=json.dumps({"order_code_prefix": "SOU"}))
        event_id = _create_event(
            process,
            section_id,
            slug="souper-2026",
            start_date=date(2026, 3, 1),
            end_date=date(2026, 3, 15),
            settings=json.dumps({"order_code_prefix": "SOU"}),
        )
        assert _get(SaleEvent, event_id).settings.order_code_prefix == "SOU"

    def test_default_prefix_avoids_explicit_one(self, process, section_id):
        _create_event(process, section_id, slug="tombola-2025", settings=json.dumps({"order_code_prefix": "S2025"}))
        event_id = _create_event(process, section_id)
        assert _get(SaleEvent, event_id).settings.order_code_prefix == "S20252"

    def test_update_to_taken_prefix_rejected(self, process, section_id):
        _create_event(process, section_id, settings=json.dumps({"order_code_prefix": "SOU"}))
        other_id = _create_event(process, section_id, slug="tombola-2025", name="Tombola 2025")

        with pytest.raises(ValidationError) as exc_info:
            process(UpdateEventSettings(event_id=other_id, changes=json.dumps({"order_code_prefix": "SOU"})))
        assert "order_code_prefix" in exc_info.value.messages
        assert _get(SaleEvent, other_id).settings.order_code_prefix == "T2025"

    def test_update_keeping_own_prefix_allowed(self, process, section_id):
        event_id = _create_event(process, section_id, settings=json.dumps({"order_code_prefix": "SOU"}))
        settings = process(UpdateEventSettings(event_id=event_id, changes=json.dumps({"order_code_prefix": "SOU"})))
        assert settings.order_code_prefix == "SOU"


class TestEventSettings:
    def test_changes_merged_into_current_settings(self, process, sale):
        settings = process(UpdateEventSettings(event_id=sale.event_id, changes=json.dumps({"delivery_fee_cents": 750})))
        assert settings.delivery_fee_cents == 750
        assert settings.order_code_prefix == "CRE"
        assert _get(SaleEvent, sale.event_id).settings.delivery_fee_cents == 750

    def test_invalid_settings_rejected(self, process, sale):
        with pytest.raises(ValidationError) as exc_info:
            process(UpdateEventSettings(event_id=sale.event_id, changes=json.dumps({"delivery_fee_cents": -1})))
        assert "settings" in exc_info.value.messages


class TestEventDeletion:
    def test_removes_catalog_and_slots(self, process, sale):
        process(DeleteEvent(event_id=sale.event_id))

        assert find_all(SaleEvent) == []
        assert find_all(Product) == []
        assert find_all(Slot) == []

    def test_refused_once_orders_exist(self, process, sale, order_payload):
        payload = order_payload()
        process(PlaceOrder(**{**payload, "items": json.dumps(payload["items"])}))

        with pytest.raises(EventHasOrders) as exc_info:
            process(DeleteEvent(event_id=sale.event_id))
        assert exc_info.value.order_count == 1
        assert len(find_all(Product, event_id=sale.event_id)) == 2

    def test_unknown_event(self, process):
        with pytest.raises(ObjectNotFoundError):
            process(DeleteEvent(event_id="missing"))


class TestEventYears:
    def test_event_spanning_new_year(self, process, section_id):
        event_id = _create_event(
            process,
            section_id,
            slug="calendriers",
            start_date=date(2025, 12, 1),
            end_date=date(2025, 12, 1) + timedelta(days=45),
        )
        assert _get(SaleEvent, event_id).years == {2025, 2026}

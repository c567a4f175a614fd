"""SaleEvent aggregate — a time-boxed sale run by a section.

Lifecycle:
    DRAFT → ACTIVE → CLOSED

Orders are accepted only while the event is ACTIVE and today falls within
``start_date``..``end_date`` (inclusive, organization-local dates). Per-event
options are stored as JSON text and always read back through
``EventSettings`` so defaults are resolved in one place. An event that never
chose an order code prefix gets one derived from its slug.
"""

import json
from datetime import date
from enum import Enum
from typing import Any

from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, Identifier, String, Text
from pydantic import ValidationError as PydanticValidationError

from sales.domain import sales
from sales.errors import SaleClosed
from sales.pricing import EventSettings, prefix_from_slug
from sales.utils.clock import utcnow
from sales.utils.validation import is_valid_slug


class EventType(Enum):
    PRODUCT_SALE = "PRODUCT_SALE"
    MEAL = "MEAL"
    RAFFLE = "RAFFLE"


class EventStatus(Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


def _settings_from(data: dict[str, Any] | None, slug: str) -> EventSettings:
    try:
        return EventSettings.from_blob(data, default_prefix=prefix_from_slug(slug))
    except (PydanticValidationError, ValueError) as exc:
        raise ValidationError({"settings": [str(exc)]}) from exc


@sales.aggregate
class SaleEvent:
    section_id: Identifier(required=True)
    slug: String(required=True, max_length=100)
    name: String(required=True, max_length=200)
    description: Text()
    event_type: String(max_length=20, choices=EventType, default=EventType.PRODUCT_SALE.value)
    status: String(max_length=10, choices=EventStatus, default=EventStatus.DRAFT.value)
    start_date: Date(required=True)
    end_date: Date(required=True)
    settings_data: Text()  # JSON: EventSettings blob
    created_at: DateTime(default=utcnow)

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        section_id,
        slug,
        name,
        start_date,
        end_date,
        event_type=EventType.PRODUCT_SALE.value,
        description=None,
        settings=None,
    ):
        errors = {}
        if not name or not name.strip():
            errors["name"] = ["Event name is required"]
        if not is_valid_slug(slug):
            errors["slug"] = ["Slug must contain only lowercase alphanumeric characters and hyphens"]
        if event_type not in {member.value for member in EventType}:
            errors["event_type"] = [f"Unknown event type {event_type}"]
        if start_date and end_date and end_date < start_date:
            errors["end_date"] = ["End date cannot be before start date"]
        if errors:
            raise ValidationError(errors)

        return cls(
            section_id=str(section_id),
            slug=slug,
            name=name.strip(),
            description=description,
            event_type=event_type,
            status=EventStatus.DRAFT.value,
            start_date=start_date,
            end_date=end_date,
            settings_data=json.dumps(_settings_from(settings, slug).to_blob()),
            created_at=utcnow(),
        )

    # -------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------
    @property
    def settings(self) -> EventSettings:
        return _settings_from(json.loads(self.settings_data) if self.settings_data else None, self.slug)

    def update_settings(self, changes: dict[str, Any]) -> EventSettings:
        """Merge ``changes`` into the current settings and store the result."""
        merged = {**self.settings.to_blob(), **changes}
        settings = _settings_from(merged, self.slug)
        self.settings_data = json.dumps(settings.to_blob())
        return settings

    @property
    def years(self) -> set[int]:
        """Calendar years the sale runs in; order codes carry the year."""
        return set(range(self.start_date.year, self.end_date.year + 1))

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def activate(self):
        if self.status == EventStatus.ACTIVE.value:
            return
        self.status = EventStatus.ACTIVE.value

    def close(self):
        self.status = EventStatus.CLOSED.value

    @property
    def is_active(self) -> bool:
        return self.status == EventStatus.ACTIVE.value

    def accepts_orders_on(self, today: date) -> bool:
        return self.is_active and self.start_date <= today <= self.end_date

    def ensure_accepting_orders(self, today: date):
        if not self.accepts_orders_on(today):
            raise SaleClosed(self.name)

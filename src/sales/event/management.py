"""Event management — commands and handler.

Order codes are ``{prefix}-{year}-{sequence}`` with a per-event sequence, so
two events running in the same calendar year must not share a prefix. An
explicit prefix that is taken is rejected; a prefix derived from the slug is
suffixed with a counter until it is free.
"""

import json
from itertools import count

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Date, Identifier, String, Text
from protean.utils.globals import current_domain

from sales.domain import sales
from sales.errors import EventHasOrders
from sales.event.event import EventType, SaleEvent
from sales.order.order import Order
from sales.pricing import prefix_from_slug
from sales.pricing.config import MAX_PREFIX_LENGTH
from sales.product.product import Product
from sales.section.section import Section
from sales.slot.slot import Slot
from sales.utils.logging import get_logger
from sales.utils.queries import find_all, find_first

logger = get_logger(__name__)


@sales.command(part_of="SaleEvent")
class CreateEvent:
    section_id = Identifier(required=True)
    slug = String(required=True, max_length=100)
    name = String(required=True, max_length=200)
    start_date = Date(required=True)
    end_date = Date(required=True)
    event_type = String(max_length=20, default=EventType.PRODUCT_SALE.value)
    description = Text()
    settings = Text()  # JSON: partial settings blob


@sales.command(part_of="SaleEvent")
class UpdateEventSettings:
    event_id = Identifier(required=True)
    changes = Text(required=True)  # JSON: settings keys to overwrite


@sales.command(part_of="SaleEvent")
class ActivateEvent:
    event_id = Identifier(required=True)


@sales.command(part_of="SaleEvent")
class CloseEvent:
    event_id = Identifier(required=True)


@sales.command(part_of="SaleEvent")
class DeleteEvent:
    event_id = Identifier(required=True)


def prefixes_in_use(years: set[int], exclude_event_id: str | None = None) -> set[str]:
    """Order code prefixes of the other events running in any of ``years``."""
    return {
        event.settings.order_code_prefix
        for event in find_all(SaleEvent)
        if str(event.id) != str(exclude_event_id) and event.years & years
    }


def available_prefix(slug: str, taken: set[str]) -> str:
    base = prefix_from_slug(slug)
    if base not in taken:
        return base
    for number in count(2):
        suffix = str(number)
        candidate = f"{base[: MAX_PREFIX_LENGTH - len(suffix)]}{suffix}"
        if candidate not in taken:
            return candidate


def _prefix_taken_error(prefix: str) -> ValidationError:
    return ValidationError(
        {"order_code_prefix": [f"Order code prefix {prefix} is already used by another event this year"]}
    )


@sales.command_handler(part_of=SaleEvent)
class ManageEventHandler:
    @handle(CreateEvent)
    def create_event(self, command):
        current_domain.repository_for(Section).get(command.section_id)
        if find_first(SaleEvent, slug=command.slug) is not None:
            raise ValidationError({"slug": [f"An event with slug '{command.slug}' already exists"]})

        settings = json.loads(command.settings) if command.settings else {}
        explicit_prefix = settings.get("order_code_prefix")
        years = set(range(command.start_date.year, command.end_date.year + 1))
        taken = prefixes_in_use(years)
        if not explicit_prefix:
            settings = {**settings, "order_code_prefix": available_prefix(command.slug, taken)}

        event = SaleEvent.create(
            section_id=command.section_id,
            slug=command.slug,
            name=command.name,
            start_date=command.start_date,
            end_date=command.end_date,
            event_type=command.event_type,
            description=command.description,
            settings=settings,
        )
        if event.settings.order_code_prefix in taken:
            raise _prefix_taken_error(event.settings.order_code_prefix)

        current_domain.repository_for(SaleEvent).add(event)
        logger.info(
            "Event created",
            event_id=str(event.id),
            slug=event.slug,
            order_code_prefix=event.settings.order_code_prefix,
        )
        return str(event.id)

    @handle(UpdateEventSettings)
    def update_event_settings(self, command):
        repo = current_domain.repository_for(SaleEvent)
        event = repo.get(command.event_id)
        changes = json.loads(command.changes)
        settings = event.update_settings(changes)
        if "order_code_prefix" in changes and settings.order_code_prefix in prefixes_in_use(event.years, event.id):
            raise _prefix_taken_error(settings.order_code_prefix)

        repo.add(event)
        logger.info("Event settings updated", event_id=str(event.id), changed=sorted(changes))
        return settings

    @handle(ActivateEvent)
    def activate_event(self, command):
        repo = current_domain.repository_for(SaleEvent)
        event = repo.get(command.event_id)
        event.activate()
        repo.add(event)
        logger.info("Event activated", event_id=str(event.id))

    @handle(CloseEvent)
    def close_event(self, command):
        repo = current_domain.repository_for(SaleEvent)
        event = repo.get(command.event_id)
        event.close()
        repo.add(event)
        logger.info("Event closed", event_id=str(event.id))

    @handle(DeleteEvent)
    def delete_event(self, command):
        """Remove an event with its catalog and slots; refused once it has orders."""
        repo = current_domain.repository_for(SaleEvent)
        event = repo.get(command.event_id)
        orders = find_all(Order, event_id=str(event.id))
        if orders:
            raise EventHasOrders(str(event.id), len(orders))

        for product in find_all(Product, event_id=str(event.id)):
            current_domain.repository_for(Product)._dao.delete(product)
        for slot in find_all(Slot, event_id=str(event.id)):
            current_domain.repository_for(Slot)._dao.delete(slot)
        repo._dao.delete(event)
        logger.info("Event deleted", event_id=command.event_id, name=event.name)

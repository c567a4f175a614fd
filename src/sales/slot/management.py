"""Slot management — commands and handler."""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Date, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from sales.domain import sales
from sales.errors import SlotInUse
from sales.event.event import SaleEvent
from sales.order.queries import booked_order_ids, count_orders_for_slot
from sales.slot.slot import Slot
from sales.utils.logging import get_logger
from sales.utils.queries import find_all

logger = get_logger(__name__)


@sales.command(part_of="Slot")
class CreateSlot:
    event_id = Identifier(required=True)
    date = Date(required=True)
    start_time = String(required=True, max_length=5)
    end_time = String(required=True, max_length=5)
    capacity = Integer(required=True)
    location = String(max_length=255)


@sales.command(part_of="Slot")
class UpdateSlot:
    slot_id = Identifier(required=True)
    date = Date()
    start_time = String(max_length=5)
    end_time = String(max_length=5)
    capacity = Integer()
    location = String(max_length=255)


@sales.command(part_of="Slot")
class DeleteSlot:
    slot_id = Identifier(required=True)


@sales.command(part_of="Slot")
class DeleteSlots:
    event_id = Identifier(required=True)
    slot_ids = Text(required=True)  # JSON: list of slot ids


@sales.command_handler(part_of=Slot)
class ManageSlotHandler:
    @handle(CreateSlot)
    def create_slot(self, command):
        current_domain.repository_for(SaleEvent).get(command.event_id)
        slot = Slot.create(
            event_id=command.event_id,
            date=command.date,
            start_time=command.start_time,
            end_time=command.end_time,
            capacity=command.capacity,
            location=command.location,
        )
        current_domain.repository_for(Slot).add(slot)
        logger.info("Slot created", slot_id=str(slot.id), event_id=slot.event_id)
        return str(slot.id)

    @handle(UpdateSlot)
    def update_slot(self, command):
        repo = current_domain.repository_for(Slot)
        slot = repo.get(command.slot_id)
        slot.reschedule(
            date=command.date,
            start_time=command.start_time,
            end_time=command.end_time,
            location=command.location,
        )
        if command.capacity is not None and command.capacity != slot.capacity:
            slot.resize(command.capacity, len(booked_order_ids(str(slot.id))))
        repo.add(slot)
        logger.info("Slot updated", slot_id=str(slot.id), capacity=slot.capacity)

    @handle(DeleteSlot)
    def delete_slot(self, command):
        repo = current_domain.repository_for(Slot)
        slot = repo.get(command.slot_id)
        order_count = count_orders_for_slot(str(slot.id))
        if order_count:
            raise SlotInUse(str(slot.id), order_count)
        repo._dao.delete(slot)
        logger.info("Slot deleted", slot_id=command.slot_id)

    @handle(DeleteSlots)
    def delete_slots(self, command):
        """All-or-nothing: every slot must belong to the event and have no orders."""
        slot_ids = list(dict.fromkeys(str(slot_id) for slot_id in json.loads(command.slot_ids)))
        slots = {str(slot.id): slot for slot in find_all(Slot, event_id=command.event_id)}
        missing = [slot_id for slot_id in slot_ids if slot_id not in slots]
        if missing:
            raise ObjectNotFoundError(f"Slots {', '.join(missing)} not found in event {command.event_id}")

        for slot_id in slot_ids:
            order_count = count_orders_for_slot(slot_id)
            if order_count:
                raise SlotInUse(slot_id, order_count)

        repo = current_domain.repository_for(Slot)
        for slot_id in slot_ids:
            repo._dao.delete(slots[slot_id])
        logger.info("Slots deleted", event_id=command.event_id, count=len(slot_ids))
        return len(slot_ids)

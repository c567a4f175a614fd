import json
from datetime import timedelta

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from sales.errors import SlotInUse
from sales.pricing import CapacityBelowBooked
from sales.slot.generation import GenerateSlots
from sales.slot.management import CreateSlot, DeleteSlot, DeleteSlots, UpdateSlot
from sales.slot.slot import Slot
from sales.utils.queries import find_all, find_first


def _slot(slot_id):
    return current_domain.repository_for(Slot).get(slot_id)


class TestCreateSlot:
    def test_create(self, process, sale, today):
        slot_id = process(
            CreateSlot(event_id=sale.event_id, date=today, start_time="14:00", end_time="14:30", capacity=8)
        )
        slot = _slot(slot_id)
        assert slot.capacity == 8
        assert str(slot.event_id) == sale.event_id

    def test_unknown_event(self, process, sale, today):
        with pytest.raises(ObjectNotFoundError):
            process(CreateSlot(event_id="missing", date=today, start_time="14:00", end_time="14:30", capacity=8))

    def test_end_before_start(self, process, sale, today):
        with pytest.raises(ValidationError):
            process(
                CreateSlot(event_id=sale.event_id, date=today, start_time="15:00", end_time="14:30", capacity=8)
            )


class TestResizeSlot:
    def test_grow(self, process, sale):
        process(UpdateSlot(slot_id=sale.slot_id, capacity=10))
        assert _slot(sale.slot_id).capacity == 10

    def test_shrink_below_booked_orders(self, process, sale, place_order):
        place_order()
        place_order(customer_name="Martin Paul")
        with pytest.raises(CapacityBelowBooked):
            process(UpdateSlot(slot_id=sale.slot_id, capacity=1))

    def test_shrink_down_to_booked_orders(self, process, sale, place_order):
        place_order()
        process(UpdateSlot(slot_id=sale.slot_id, capacity=1))
        assert _slot(sale.slot_id).capacity == 1


class TestDeleteSlot:
    def test_delete_unused_slot(self, process, sale):
        process(DeleteSlot(slot_id=sale.slot_id))
        assert find_first(Slot, id=sale.slot_id) is None

    def test_slot_with_orders_kept(self, process, sale, place_order):
        place_order()
        with pytest.raises(SlotInUse) as exc_info:
            process(DeleteSlot(slot_id=sale.slot_id))
        assert exc_info.value.order_count == 1


class TestDeleteSlots:
    @pytest.fixture
    def extra_slot_ids(self, process, sale, today):
        return [
            process(
                CreateSlot(event_id=sale.event_id, date=today, start_time=start, end_time=end, capacity=4)
            )
            for start, end in (("14:00", "14:30"), ("14:30", "15:00"))
        ]

    def test_deletes_every_listed_slot(self, process, sale, extra_slot_ids):
        deleted = process(DeleteSlots(event_id=sale.event_id, slot_ids=json.dumps(extra_slot_ids)))

        assert deleted == 2
        assert [str(slot.id) for slot in find_all(Slot, event_id=sale.event_id)] == [sale.slot_id]

    def test_repeated_ids_counted_once(self, process, sale, extra_slot_ids):
        slot_ids = extra_slot_ids + extra_slot_ids[:1]
        assert process(DeleteSlots(event_id=sale.event_id, slot_ids=json.dumps(slot_ids))) == 2

    def test_slot_of_another_event_rejected(self, process, sale, extra_slot_ids):
        with pytest.raises(ObjectNotFoundError):
            process(DeleteSlots(event_id=sale.event_id, slot_ids=json.dumps([*extra_slot_ids, "missing"])))
        assert len(find_all(Slot, event_id=sale.event_id)) == 3

    def test_slot_with_orders_blocks_the_whole_batch(self, process, sale, extra_slot_ids, place_order):
        place_order()
        with pytest.raises(SlotInUse) as exc_info:
            process(DeleteSlots(event_id=sale.event_id, slot_ids=json.dumps([*extra_slot_ids, sale.slot_id])))

        assert exc_info.value.order_count == 1
        assert len(find_all(Slot, event_id=sale.event_id)) == 3


class TestGenerateSlots:
    def test_generate_over_several_days(self, process, sale, today):
        command = GenerateSlots(
            event_id=sale.event_id,
            start_date=today,
            end_date=today + timedelta(days=1),
            start_time="09:00",
            end_time="10:00",
            interval_minutes=20,
            capacity=4,
        )
        slot_ids = process(command)

        assert len(slot_ids) == 6
        slots = [_slot(slot_id) for slot_id in slot_ids]
        assert {slot.capacity for slot in slots} == {4}
        assert {slot.start_time for slot in slots} == {"09:00", "09:20", "09:40"}

    def test_weekday_filter_leaving_no_slot(self, process, sale, today):
        other_day = (today.weekday() + 1) % 7
        command = GenerateSlots(
            event_id=sale.event_id,
            start_date=today,
            end_date=today,
            start_time="09:00",
            end_time="10:00",
            interval_minutes=30,
            capacity=4,
            weekdays=json.dumps([other_day]),
        )
        with pytest.raises(ValidationError) as exc_info:
            process(command)
        assert "slots" in exc_info.value.messages

    def test_interval_bounds(self, sale, today):
        with pytest.raises(ValidationError):
            GenerateSlots(
                event_id=sale.event_id,
                start_date=today,
                end_date=today,
                start_time="09:00",
                end_time="10:00",
                interval_minutes=2,
                capacity=4,
            )

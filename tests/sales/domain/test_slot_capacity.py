"""Tests for slot capacity checks."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from sales.pricing import CapacityBelowBooked, SlotCapacityFact, SlotFull, check_capacity_reduction, check_slot_capacity


class TestCheckSlotCapacity:
    def test_returns_remaining_places(self):
        fact = SlotCapacityFact(slot_id="s1", capacity=5, booked_order_ids=("o1", "o2"))
        assert check_slot_capacity(fact) == 3

    def test_full_slot_rejected(self):
        fact = SlotCapacityFact(slot_id="s1", capacity=2, booked_order_ids=("o1", "o2"))

        with pytest.raises(SlotFull) as exc_info:
            check_slot_capacity(fact)

        assert exc_info.value.slot_id == "s1"
        assert exc_info.value.capacity == 2
        assert exc_info.value.booked == 2

    def test_excluded_order_does_not_count_against_itself(self):
        fact = SlotCapacityFact(slot_id="s1", capacity=2, booked_order_ids=("o1", "o2"))
        assert check_slot_capacity(fact, exclude_order_id="o2") == 1

    def test_excluding_unknown_order_changes_nothing(self):
        fact = SlotCapacityFact(slot_id="s1", capacity=2, booked_order_ids=("o1", "o2"))
        with pytest.raises(SlotFull):
            check_slot_capacity(fact, exclude_order_id="o9")

    def test_overbooked_slot_rejected(self):
        fact = SlotCapacityFact(slot_id="s1", capacity=1, booked_order_ids=("o1", "o2", "o3"))
        with pytest.raises(SlotFull):
            check_slot_capacity(fact)

    def test_capacity_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            SlotCapacityFact(slot_id="s1", capacity=0)


class TestCapacityReduction:
    def test_reduction_to_booked_count_allowed(self):
        check_capacity_reduction(new_capacity=3, booked_count=3)

    def test_reduction_below_booked_count_rejected(self):
        with pytest.raises(CapacityBelowBooked) as exc_info:
            check_capacity_reduction(new_capacity=2, booked_count=3)

        assert exc_info.value.new_capacity == 2
        assert exc_info.value.booked == 3
        assert "capacity" in exc_info.value.messages

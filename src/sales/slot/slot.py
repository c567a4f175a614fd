"""Slot aggregate — a capacity-bounded pickup or on-site window of an event."""

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Date, Identifier, Integer, String

from sales.domain import sales
from sales.pricing import SlotCapacityFact, check_capacity_reduction
from sales.utils.validation import TIME_PATTERN


def _check_window(start_time, end_time) -> dict[str, list[str]]:
    errors = {}
    for field_name, value in (("start_time", start_time), ("end_time", end_time)):
        if not value or not TIME_PATTERN.match(value):
            errors[field_name] = ["Time must use the HH:MM format"]
    if not errors and end_time <= start_time:
        errors["end_time"] = ["End time must be after start time"]
    return errors


@sales.aggregate
class Slot:
    event_id: Identifier(required=True)
    date: Date(required=True)
    start_time: String(required=True, max_length=5)  # HH:MM, local time
    end_time: String(required=True, max_length=5)
    capacity: Integer(required=True)
    location: String(max_length=255)

    @classmethod
    def create(cls, event_id, date, start_time, end_time, capacity, location=None):
        errors = _check_window(start_time, end_time)
        if capacity is None or capacity < 1:
            errors["capacity"] = ["Capacity must be at least 1"]
        if errors:
            raise ValidationError(errors)

        return cls(
            event_id=str(event_id),
            date=date,
            start_time=start_time,
            end_time=end_time,
            capacity=capacity,
            location=location,
        )

    @invariant.post
    def window_must_be_valid(self):
        errors = _check_window(self.start_time, self.end_time)
        if errors:
            raise ValidationError(errors)

    @invariant.post
    def capacity_must_be_positive(self):
        if self.capacity is None or self.capacity < 1:
            raise ValidationError({"capacity": ["Capacity must be at least 1"]})

    def reschedule(self, date=None, start_time=None, end_time=None, location=None):
        with atomic_change(self):
            if date is not None:
                self.date = date
            if start_time is not None:
                self.start_time = start_time
            if end_time is not None:
                self.end_time = end_time
            if location is not None:
                self.location = location

    def resize(self, new_capacity: int, booked_count: int):
        """Change capacity; never below the number of orders already booked."""
        if new_capacity < 1:
            raise ValidationError({"capacity": ["Capacity must be at least 1"]})
        check_capacity_reduction(new_capacity, booked_count)
        self.capacity = new_capacity

    def capacity_fact(self, booked_order_ids) -> SlotCapacityFact:
        return SlotCapacityFact(
            slot_id=str(self.id),
            capacity=self.capacity,
            booked_order_ids=tuple(str(order_id) for order_id in booked_order_ids),
        )

    @property
    def label(self) -> str:
        return f"{self.date.strftime('%d/%m/%Y')} {self.start_time}-{self.end_time}"

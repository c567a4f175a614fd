"""Bulk slot generation over a date range.

For every selected weekday between ``start_date`` and ``end_date``, the daily
window ``start_time``..``end_time`` is cut into consecutive slots of
``interval_minutes``. A trailing piece shorter than the interval is dropped.
"""

import datetime as dt
import json
from collections.abc import Iterator

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Date, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from sales.domain import sales
from sales.event.event import SaleEvent
from sales.slot.slot import Slot
from sales.utils.logging import get_logger
from sales.utils.validation import TIME_PATTERN

logger = get_logger(__name__)

ALL_WEEKDAYS = (0, 1, 2, 3, 4, 5, 6)


def _to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def _to_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def slot_windows(start_time: str, end_time: str, interval_minutes: int) -> list[tuple[str, str]]:
    """``[("09:00", "09:30"), ("09:30", "10:00"), ...]`` for one day."""
    start, end = _to_minutes(start_time), _to_minutes(end_time)
    windows = []
    current = start
    while current + interval_minutes <= end:
        windows.append((_to_time(current), _to_time(current + interval_minutes)))
        current += interval_minutes
    return windows


def days_between(start_date: dt.date, end_date: dt.date, weekdays=ALL_WEEKDAYS) -> Iterator[dt.date]:
    """Dates in the inclusive range whose ``weekday()`` (Monday is 0) is selected."""
    current = start_date
    while current <= end_date:
        if current.weekday() in weekdays:
            yield current
        current += dt.timedelta(days=1)


@sales.command(part_of="Slot")
class GenerateSlots:
    event_id = Identifier(required=True)
    start_date = Date(required=True)
    end_date = Date(required=True)
    start_time = String(required=True, max_length=5)
    end_time = String(required=True, max_length=5)
    interval_minutes = Integer(required=True, min_value=5, max_value=240)
    capacity = Integer(required=True, min_value=1)
    weekdays = Text()  # JSON: weekday() numbers, Monday is 0; empty means every day
    location = String(max_length=255)


def check_generation_ranges(command, weekdays) -> None:
    errors = {}
    if command.end_date < command.start_date:
        errors["end_date"] = ["End date cannot be before start date"]
    if not TIME_PATTERN.match(command.start_time) or not TIME_PATTERN.match(command.end_time):
        errors["start_time"] = ["Times must use the HH:MM format"]
    elif command.end_time <= command.start_time:
        errors["end_time"] = ["End time must be after start time"]
    if any(day not in ALL_WEEKDAYS for day in weekdays):
        errors["weekdays"] = ["Weekdays must be between 0 (Monday) and 6 (Sunday)"]
    if errors:
        raise ValidationError(errors)


@sales.command_handler(part_of=Slot)
class GenerateSlotsHandler:
    @handle(GenerateSlots)
    def generate_slots(self, command):
        weekdays = set(json.loads(command.weekdays)) if command.weekdays else set(ALL_WEEKDAYS)
        check_generation_ranges(command, weekdays)
        current_domain.repository_for(SaleEvent).get(command.event_id)

        windows = slot_windows(command.start_time, command.end_time, command.interval_minutes)
        slots = [
            Slot.create(
                event_id=command.event_id,
                date=day,
                start_time=start,
                end_time=end,
                capacity=command.capacity,
                location=command.location,
            )
            for day in days_between(command.start_date, command.end_date, weekdays)
            for start, end in windows
        ]
        if not slots:
            raise ValidationError({"slots": ["The selected range and window produce no slots"]})

        repo = current_domain.repository_for(Slot)
        for slot in slots:
            repo.add(slot)
        logger.info("Slots generated", event_id=command.event_id, count=len(slots))
        return [str(slot.id) for slot in slots]

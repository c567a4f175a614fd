"""Slot capacity checks for new bookings, paid transitions and capacity changes."""

from pydantic import BaseModel, ConfigDict, Field

from sales.pricing.errors import CapacityBelowBooked, SlotFull


class SlotCapacityFact(BaseModel):
    """Capacity of a slot and the orders currently holding a place in it.

    Only orders in a non-terminal status (pending, paid, prepared) count as
    booked.
    """

    model_config = ConfigDict(frozen=True)

    slot_id: str
    capacity: int = Field(ge=1)
    booked_order_ids: tuple[str, ...] = ()

    @property
    def booked_count(self) -> int:
        return len(self.booked_order_ids)

    def booked_excluding(self, order_id: str | None) -> int:
        if order_id is None:
            return self.booked_count
        return sum(1 for booked_id in self.booked_order_ids if booked_id != str(order_id))


def check_slot_capacity(fact: SlotCapacityFact, exclude_order_id: str | None = None) -> int:
    """Return the remaining places, raising ``SlotFull`` when there are none.

    ``exclude_order_id`` keeps an order from counting against its own slot
    when it is re-checked during a status change.
    """
    booked = fact.booked_excluding(exclude_order_id)
    remaining = fact.capacity - booked
    if remaining <= 0:
        raise SlotFull(slot_id=fact.slot_id, capacity=fact.capacity, booked=booked)
    return remaining


def check_capacity_reduction(new_capacity: int, booked_count: int) -> None:
    if new_capacity < booked_count:
        raise CapacityBelowBooked(new_capacity=new_capacity, booked=booked_count)

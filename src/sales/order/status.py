"""Back-office status changes — command and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from sales.domain import sales
from sales.order.order import BOOKED_STATUSES, Order, OrderStatus
from sales.order.queries import slot_capacity_fact
from sales.pricing import check_slot_capacity
from sales.product.product import Product
from sales.slot.slot import Slot
from sales.utils.logging import get_logger
from sales.utils.queries import find_first

logger = get_logger(__name__)


@sales.command(part_of="Order")
class ChangeOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=10)
    override = Boolean(default=False)


@sales.command_handler(part_of=Order)
class ChangeOrderStatusHandler:
    @handle(ChangeOrderStatus)
    def change_order_status(self, command) -> Order:
        try:
            new_status = OrderStatus(command.status)
        except ValueError as exc:
            raise ValidationError({"status": [f"Unknown order status {command.status}"]}) from exc

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        old_status = order.order_status
        if new_status == old_status:
            return order

        # Confirming payment, or bringing a cancelled/delivered order back into a slot
        takes_place = new_status == OrderStatus.PAID or (
            old_status not in BOOKED_STATUSES and new_status in BOOKED_STATUSES
        )
        capacity_override = False
        if order.slot_id and takes_place:
            if command.override:
                capacity_override = True
                logger.warning(
                    "Slot capacity check overridden",
                    order_id=str(order.id),
                    slot_id=str(order.slot_id),
                    from_status=old_status.value,
                    to_status=new_status.value,
                )
            else:
                slot = current_domain.repository_for(Slot).get(order.slot_id)
                check_slot_capacity(slot_capacity_fact(slot), exclude_order_id=str(order.id))

        order.change_status(new_status, capacity_override=capacity_override)

        if new_status == OrderStatus.CANCELLED:
            _move_stock(order, restore=True)
        elif old_status == OrderStatus.CANCELLED:
            _move_stock(order, restore=False)

        repo.add(order)
        logger.info(
            "Order status changed",
            order_id=str(order.id),
            code=order.code,
            from_status=old_status.value,
            to_status=new_status.value,
            capacity_override=capacity_override,
        )
        return order


def _move_stock(order: Order, restore: bool):
    """Give the order's units back to stock, or take them again on reactivation."""
    product_repo = current_domain.repository_for(Product)
    for item in order.items:
        product = find_first(Product, id=str(item.product_id))
        if product is None:
            continue
        if restore:
            product.restore_stock(item.quantity)
        else:
            product.deduct_stock(item.quantity)
        product_repo.add(product)

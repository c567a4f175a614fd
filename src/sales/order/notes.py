"""Admin notes on an order — command and handler."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from sales.domain import sales
from sales.order.order import Order
from sales.utils.logging import get_logger

logger = get_logger(__name__)


@sales.command(part_of="Order")
class UpdateOrderNotes:
    order_id = Identifier(required=True)
    bank_reference = String(max_length=100)
    admin_note = Text()


@sales.command_handler(part_of=Order)
class UpdateOrderNotesHandler:
    @handle(UpdateOrderNotes)
    def update_order_notes(self, command) -> Order:
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_notes(bank_reference=command.bank_reference, admin_note=command.admin_note)
        repo.add(order)
        logger.info("Order notes updated", order_id=str(order.id), code=order.code)
        return order

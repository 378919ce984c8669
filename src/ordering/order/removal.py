"""Order removal: command and handler.

Orders in the tenant's final status are closed and cannot be removed.
Removing a paid order gives the customer back the points it used and takes
back the points it rewarded.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.customer import ledger
from ordering.domain import ordering
from ordering.order.helpers import load_order
from ordering.order.order import Order
from ordering.status.catalog import find_by_code
from shared.errors import OrderStatusError

# Used when the order's status no longer exists in the catalog
_FALLBACK_FINAL_CODES = {"completed"}


def is_closed(order) -> bool:
    status = find_by_code(order.tenant_id, order.order_status)
    if status is not None:
        return bool(status.is_final)
    return (order.order_status or "").lower() in _FALLBACK_FINAL_CODES


@ordering.command(part_of="Order")
class RemoveOrder:
    tenant_id = Identifier(required=True)
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class RemoveOrderHandler:
    @handle(RemoveOrder)
    def remove_order(self, command):
        repo = current_domain.repository_for(Order)
        order = load_order(command.tenant_id, command.order_id)

        if is_closed(order):
            raise OrderStatusError(f"Order {order.order_no} is in a final status and cannot be deleted")

        ledger.reverse_order(order)
        repo._dao.delete(order)

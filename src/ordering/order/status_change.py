"""Order status change by catalog code: command and handler.

Only `order_status` (and `updated_at`) is written; every other field of the
order is left as stored.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.helpers import assert_known_status, load_order
from ordering.order.order import Order


@ordering.command(part_of="Order")
class UpdateOrderStatusByCode:
    tenant_id = Identifier(required=True)
    order_id = Identifier(required=True)
    status_code = String(required=True, max_length=50)


@ordering.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatusByCode)
    def update_status_by_code(self, command):
        code = (command.status_code or "").strip()
        if not code:
            raise ValidationError({"status_code": ["Status code is required"]})

        repo = current_domain.repository_for(Order)
        order = load_order(command.tenant_id, command.order_id)

        status = assert_known_status(command.tenant_id, code)
        if not status.can_transition_to():
            raise ValidationError({"status_code": [f"Order status '{code}' is inactive"]})

        order.change_status(code)
        repo.add(order)

        return str(order.id)

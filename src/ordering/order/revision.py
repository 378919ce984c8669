"""Order revision: command and handler.

A revision carries the complete new contents of the order. Point rules are
re-applied on every revision of a paid order with a customer, the same way
they are on placement; the previous version's effects are not diffed out.
"""

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.customer import ledger
from ordering.domain import ordering
from ordering.order.helpers import assert_known_status, contents_of, load_customer, load_order
from ordering.order.order import DiscountRewardType, DiscountType, Order, PaymentStatus


@ordering.command(part_of="Order")
class ReviseOrder:
    tenant_id = Identifier(required=True)
    order_id = Identifier(required=True)
    staff_id = Identifier(required=True)
    customer_id = Identifier()
    items = Text(required=True)  # JSON: [{product_id, product_name, product_price, qty}]
    subtotal = Float(required=True, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(required=True, min_value=0.0)
    grand_total = Float(required=True, min_value=0.0)
    paid_amount = Float(default=0.0, min_value=0.0)
    payment_method = String(max_length=50)
    payment_status = String(required=True, choices=PaymentStatus)
    order_status = String(required=True, max_length=50)
    discount_id = Identifier()
    discount_name = String(max_length=150)
    discount_type = String(choices=DiscountType)
    discount_reward_type = String(choices=DiscountRewardType)
    discount_value = Float(min_value=0.0)
    discount_amount = Float(min_value=0.0)
    point_used = Integer(default=0, min_value=0)
    note = Text()


@ordering.command_handler(part_of=Order)
class ReviseOrderHandler:
    @handle(ReviseOrder)
    def revise_order(self, command):
        repo = current_domain.repository_for(Order)
        order = load_order(command.tenant_id, command.order_id)
        assert_known_status(command.tenant_id, command.order_status)

        points_snapshot = None
        if command.customer_id:
            points_snapshot = load_customer(command.tenant_id, command.customer_id).points

        order.revise(points_snapshot=points_snapshot, **contents_of(command))
        repo.add(order)

        ledger.apply_order(order)

        return str(order.id)

"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cashier recorded a new order."""

    __version__ = 1

    order_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    order_no = String(required=True)
    customer_id = Identifier()
    staff_id = Identifier(required=True)
    order_status = String(required=True)
    payment_status = String(required=True)
    grand_total = Float(required=True)
    item_count = Integer(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderRevised:
    """An order's items and amounts were replaced wholesale."""

    __version__ = 1

    order_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    order_status = String(required=True)
    payment_status = String(required=True)
    grand_total = Float(required=True)
    item_count = Integer(required=True)
    revised_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    """An order's payment status became paid."""

    __version__ = 1

    order_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    paid_amount = Float(required=True)
    payment_method = String()
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """An order moved to another status of the tenant's catalog."""

    __version__ = 1

    order_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    previous_status = String()
    new_status = String(required=True)
    changed_at = DateTime(required=True)

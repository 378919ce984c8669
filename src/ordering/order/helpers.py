"""Helpers shared by the order command handlers."""

import json

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.customer.customer import Customer
from ordering.order.order import Order
from ordering.status.catalog import find_by_code


def contents_of(command) -> dict:
    """Keyword arguments for `Order.place`/`Order.revise` from a command."""
    try:
        items = json.loads(command.items) if command.items else []
    except (TypeError, ValueError):
        raise ValidationError({"items": ["Items must be a JSON list"]})

    return {
        "staff_id": command.staff_id,
        "customer_id": command.customer_id,
        "items": items,
        "subtotal": command.subtotal,
        "tax_amount": command.tax_amount,
        "total_amount": command.total_amount,
        "grand_total": command.grand_total,
        "paid_amount": command.paid_amount,
        "payment_method": command.payment_method,
        "payment_status": command.payment_status,
        "order_status": command.order_status,
        "discount": {
            "discount_id": command.discount_id,
            "name": command.discount_name,
            "discount_type": command.discount_type,
            "reward_type": command.discount_reward_type,
            "value": command.discount_value,
            "amount": command.discount_amount,
        },
        "point_used": command.point_used,
        "note": command.note,
    }


def load_order(tenant_id, order_id) -> Order:
    """Fetch an order, treating another tenant's order as absent."""
    order = current_domain.repository_for(Order).get(order_id)
    if str(order.tenant_id) != str(tenant_id):
        raise ObjectNotFoundError(f"Order `{order_id}` does not exist")
    return order


def load_customer(tenant_id, customer_id) -> Customer:
    customer = current_domain.repository_for(Customer).get(customer_id)
    if str(customer.tenant_id) != str(tenant_id):
        raise ObjectNotFoundError(f"Customer `{customer_id}` does not exist")
    return customer


def assert_known_status(tenant_id, status_code):
    status = find_by_code(tenant_id, status_code)
    if status is None:
        raise ValidationError({"order_status": [f"Unknown order status '{status_code}'"]})
    return status

"""Read-side helpers for orders."""

from protean.utils.globals import current_domain

from ordering.order.helpers import load_order
from ordering.order.order import Order


def get_order(tenant_id, order_id) -> Order:
    return load_order(tenant_id, order_id)


def list_orders(tenant_id, payment_status=None, order_status=None, customer_id=None, page=1, page_size=20) -> dict:
    """One page of a tenant's orders, newest first."""
    criteria = {"tenant_id": str(tenant_id)}
    if payment_status:
        criteria["payment_status"] = payment_status
    if order_status:
        criteria["order_status"] = order_status
    if customer_id:
        criteria["customer_id"] = str(customer_id)

    result = (
        current_domain.repository_for(Order)
        ._dao.query.filter(**criteria)
        .order_by("-created_at")
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": result.items, "total": result.total, "page": page, "page_size": page_size}

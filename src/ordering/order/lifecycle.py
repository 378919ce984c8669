"""Order lifecycle orchestration.

`OrderLifecycle` is the single entry point for order mutations. For each
request it:

1. checks the subscription quota (create only) before anything is written,
2. processes the order command, which writes the order and the customer's
   point adjustment in one unit of work,
3. once that has committed, hands a before/after snapshot of the order to
   the notifier on the background dispatcher.

Step 3 is best-effort. Nothing the notifier does, or fails to do, reaches
the caller.
"""

import json

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.customer.customer import Customer
from ordering.customer.ledger import LoyaltyLedger
from ordering.order.audit import RecordOrderLog
from ordering.order.order import Order
from ordering.order.placement import PlaceOrder
from ordering.order.queries import get_order, list_orders
from ordering.order.removal import RemoveOrder
from ordering.order.revision import ReviseOrder
from ordering.order.status_change import UpdateOrderStatusByCode
from ordering.status.catalog import StatusCatalog
from ordering.subscription.quota import QuotaGuard
from shared.background import BackgroundDispatcher
from shared.locks import KeyedLocks
from shared.snapshot import OrderSnapshot

logger = structlog.get_logger(__name__)

_DISCOUNT_KEYS = {
    "discount_id": "discount_id",
    "name": "discount_name",
    "discount_type": "discount_type",
    "reward_type": "discount_reward_type",
    "value": "discount_value",
    "amount": "discount_amount",
}


def command_fields(data: dict) -> dict:
    """Flatten an order payload into order command fields.

    `items` becomes JSON and a nested `discount` object becomes the
    `discount_*` fields.
    """
    fields = dict(data)
    fields["items"] = json.dumps(list(fields.get("items") or []))

    discount = fields.pop("discount", None) or {}
    for key, field_name in _DISCOUNT_KEYS.items():
        if key in discount:
            fields[field_name] = discount[key]
    return fields


def snapshot_of(order: Order, catalog: StatusCatalog) -> OrderSnapshot:
    status = catalog.find_by_code(order.tenant_id, order.order_status)

    customer = None
    if order.customer_id:
        try:
            customer = current_domain.repository_for(Customer).get(order.customer_id)
        except ObjectNotFoundError:
            customer = None

    return OrderSnapshot(
        order_id=str(order.id),
        tenant_id=str(order.tenant_id),
        order_no=order.order_no,
        status_code=order.order_status,
        status_name=status.name if status else order.order_status,
        status_is_final=bool(status and status.is_final),
        payment_status=order.payment_status,
        grand_total=order.grand_total or 0.0,
        customer_id=str(order.customer_id) if order.customer_id else None,
        customer_name=customer.name if customer else None,
        customer_phone=customer.phone if customer else None,
    )


class OrderLifecycle:
    """Creates, revises, removes and re-statuses orders.

    Collaborators are passed in explicitly. `notifier` is called on the
    dispatcher as `notifier(tenant_id, previous, current, status_driven=...)`
    with `OrderSnapshot`s; leave it out to disable notifications.
    """

    def __init__(
        self,
        quota: QuotaGuard,
        ledger: LoyaltyLedger,
        catalog: StatusCatalog,
        dispatcher: BackgroundDispatcher,
        notifier=None,
        locks: KeyedLocks | None = None,
    ):
        self.quota = quota
        self.ledger = ledger
        self.catalog = catalog
        self.dispatcher = dispatcher
        self.notifier = notifier
        self._locks = locks or KeyedLocks()

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def create(self, tenant_id, data: dict) -> Order:
        # Fast in-process rejection; PlaceOrder reserves the quota again under version check
        with self._locks.hold(f"orders:{tenant_id}"), self.ledger.holding(data.get("customer_id")):
            self.quota.enforce_limit(tenant_id, "transaction", 1)
            order_id = current_domain.process(
                PlaceOrder(tenant_id=tenant_id, **command_fields(data)),
                asynchronous=False,
            )

        order = get_order(tenant_id, order_id)
        logger.info(
            "Order created",
            tenant_id=str(tenant_id),
            order_id=order_id,
            order_no=order.order_no,
            payment_status=order.payment_status,
        )
        self._schedule_notification(tenant_id, None, order)
        return order

    def update(self, tenant_id, order_id, data: dict) -> Order:
        existing = get_order(tenant_id, order_id)
        previous = self._snapshot(existing)

        with self.ledger.holding(existing.customer_id, data.get("customer_id")):
            current_domain.process(
                ReviseOrder(tenant_id=tenant_id, order_id=order_id, **command_fields(data)),
                asynchronous=False,
            )

        order = get_order(tenant_id, order_id)
        logger.info("Order updated", tenant_id=str(tenant_id), order_id=str(order_id))
        if previous is not None:
            self._schedule_notification(tenant_id, previous, order)
        return order

    def delete(self, tenant_id, order_id) -> None:
        existing = get_order(tenant_id, order_id)

        with self.ledger.holding(existing.customer_id):
            current_domain.process(
                RemoveOrder(tenant_id=tenant_id, order_id=order_id),
                asynchronous=False,
            )

        logger.info("Order deleted", tenant_id=str(tenant_id), order_id=str(order_id))

    def update_status_by_code(self, tenant_id, order_id, status_code) -> Order:
        if not status_code or not str(status_code).strip():
            raise ValidationError({"status_code": ["Status code is required"]})

        existing = get_order(tenant_id, order_id)
        previous = self._snapshot(existing)

        current_domain.process(
            UpdateOrderStatusByCode(tenant_id=tenant_id, order_id=order_id, status_code=str(status_code).strip()),
            asynchronous=False,
        )

        order = get_order(tenant_id, order_id)
        status = self.catalog.find_by_code(tenant_id, order.order_status)
        status_name = status.name if status else order.order_status
        logger.info(
            "Order status updated",
            tenant_id=str(tenant_id),
            order_id=str(order_id),
            status=order.order_status,
        )

        self._record_status_change(tenant_id, order_id, status_name)
        if previous is not None:
            self._schedule_notification(tenant_id, previous, order, status_driven=True)
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get(self, tenant_id, order_id) -> Order:
        return get_order(tenant_id, order_id)

    def list(self, tenant_id, **filters) -> dict:
        return list_orders(tenant_id, **filters)

    # -------------------------------------------------------------------
    # After-commit side effects
    # -------------------------------------------------------------------
    def _snapshot(self, order) -> OrderSnapshot | None:
        try:
            return snapshot_of(order, self.catalog)
        except Exception as exc:
            logger.error("Could not snapshot order for notification", order_id=str(order.id), error=str(exc))
            return None

    def _record_status_change(self, tenant_id, order_id, status_name):
        try:
            current_domain.process(
                RecordOrderLog(
                    tenant_id=tenant_id,
                    order_id=order_id,
                    status=status_name,
                    note=f"Status updated to {status_name}",
                ),
                asynchronous=False,
            )
        except Exception as exc:
            logger.error(
                "Failed to record order log",
                tenant_id=str(tenant_id),
                order_id=str(order_id),
                error=str(exc),
            )

    def _schedule_notification(self, tenant_id, previous, order, status_driven=False):
        if self.notifier is None:
            return

        current = self._snapshot(order)
        if current is None:
            return

        try:
            self.dispatcher.submit(self.notifier, str(tenant_id), previous, current, status_driven=status_driven)
        except Exception as exc:
            logger.error(
                "Failed to schedule order notification",
                tenant_id=str(tenant_id),
                order_id=str(order.id),
                error=str(exc),
            )

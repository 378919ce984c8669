"""Loyalty ledger: point balance adjustments driven by orders.

The functions here run inside the caller's unit of work, so a ledger change
commits or rolls back together with the order write that caused it. Saving
the customer is a conditional write on the aggregate version: if another
writer committed a new balance after this one was read, the commit raises
`ExpectedVersionError` and the command handler is re-run against the fresh
balance. `LoyaltyLedger.holding(customer_id)` additionally serializes writers
within one process so they rarely need that retry.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.customer.customer import Customer
from ordering.domain import ordering
from shared.locks import KeyedLocks

logger = structlog.get_logger(__name__)

PAID = "paid"
POINT_REWARD = "point"


def _load(customer_id, tenant_id=None) -> Customer:
    customer = current_domain.repository_for(Customer).get(customer_id)
    if tenant_id is not None and str(customer.tenant_id) != str(tenant_id):
        raise ObjectNotFoundError(f"Customer `{customer_id}` does not exist")
    return customer


def _positive(amount):
    if amount is None or int(amount) != amount or amount <= 0:
        raise ValidationError({"amount": ["Amount must be a positive integer"]})
    return int(amount)


def increment(customer_id, amount, reason=None) -> int:
    customer = _load(customer_id)
    customer.adjust_points(earn=_positive(amount), reason=reason)
    current_domain.repository_for(Customer).add(customer)
    return customer.points


def decrement(customer_id, amount, reason=None) -> int:
    customer = _load(customer_id)
    customer.adjust_points(redeem=_positive(amount), reason=reason)
    current_domain.repository_for(Customer).add(customer)
    return customer.points


def point_effects(order) -> tuple[int, int]:
    """(points redeemed, points rewarded) that a paid order has on its customer."""
    if order.payment_status != PAID or not order.customer_id:
        return 0, 0

    redeemed = int(order.point_used or 0)
    rewarded = 0
    if order.discount and order.discount.reward_type == POINT_REWARD and (order.discount.amount or 0) > 0:
        rewarded = int(order.discount.amount)
    return max(redeemed, 0), rewarded


def apply_order(order) -> int | None:
    """Redeem the points an order used and grant its point reward."""
    redeemed, rewarded = point_effects(order)
    if not redeemed and not rewarded:
        return None

    customer = _load(order.customer_id, order.tenant_id)
    customer.adjust_points(earn=rewarded, redeem=redeemed, reason=f"order {order.order_no}")
    current_domain.repository_for(Customer).add(customer)
    logger.info(
        "Order points applied",
        order_id=str(order.id),
        customer_id=str(customer.id),
        redeemed=redeemed,
        rewarded=rewarded,
        balance=customer.points,
    )
    return customer.points


def reverse_order(order) -> int | None:
    """Give back the points an order used and take back its reward.

    A reward the customer has already spent is taken back only down to a
    zero balance.
    """
    redeemed, rewarded = point_effects(order)
    if not redeemed and not rewarded:
        return None

    customer = _load(order.customer_id, order.tenant_id)
    shortfall = max(rewarded - (customer.points + redeemed), 0)
    customer.adjust_points(
        earn=redeemed,
        redeem=rewarded,
        reason=f"order {order.order_no} removed",
        allow_shortfall=True,
    )
    current_domain.repository_for(Customer).add(customer)
    if shortfall:
        logger.warning(
            "Point reward already spent, balance drained to zero",
            order_id=str(order.id),
            customer_id=str(customer.id),
            shortfall=shortfall,
        )
    logger.info(
        "Order points reversed",
        order_id=str(order.id),
        customer_id=str(customer.id),
        restored=redeemed,
        revoked=rewarded,
        balance=customer.points,
    )
    return customer.points


@ordering.command(part_of="Customer")
class IncrementPoints:
    customer_id = Identifier(required=True)
    amount = Integer(required=True)
    reason = String(max_length=255)


@ordering.command(part_of="Customer")
class DecrementPoints:
    customer_id = Identifier(required=True)
    amount = Integer(required=True)
    reason = String(max_length=255)


@ordering.command_handler(part_of=Customer)
class PointLedgerHandler:
    @handle(IncrementPoints)
    def increment_points(self, command):
        return increment(command.customer_id, command.amount, reason=command.reason)

    @handle(DecrementPoints)
    def decrement_points(self, command):
        return decrement(command.customer_id, command.amount, reason=command.reason)


class LoyaltyLedger:
    """Point adjustments, serialized per customer within the process.

    Share one instance (or one `KeyedLocks`) between every component that
    mutates balances of the same customers.
    """

    def __init__(self, locks: KeyedLocks | None = None):
        self._locks = locks or KeyedLocks()

    def holding(self, *customer_ids):
        return self._locks.hold(*(f"customer:{cid}" for cid in customer_ids if cid))

    def increment(self, customer_id, amount, reason=None) -> int:
        with self.holding(customer_id):
            return current_domain.process(
                IncrementPoints(customer_id=customer_id, amount=amount, reason=reason),
                asynchronous=False,
            )

    def decrement(self, customer_id, amount, reason=None) -> int:
        with self.holding(customer_id):
            return current_domain.process(
                DecrementPoints(customer_id=customer_id, amount=amount, reason=reason),
                asynchronous=False,
            )

    def balance(self, customer_id) -> int:
        return _load(customer_id).points

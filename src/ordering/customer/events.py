"""Domain events for the Customer aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Customer")
class CustomerRegistered:
    __version__ = 1

    customer_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    name = String(required=True)
    registered_at = DateTime(required=True)


@ordering.event(part_of="Customer")
class PointsAdjusted:
    """The customer's loyalty balance changed."""

    __version__ = 1

    customer_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    earned = Integer(default=0)
    redeemed = Integer(default=0)
    new_balance = Integer(required=True)
    reason = String(max_length=255)

"""Domain events for the OrderStatus catalog."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="OrderStatus")
class OrderStatusDefined:
    """A tenant added a status to its order status catalog."""

    __version__ = 1

    status_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    code = String(required=True)
    name = String(required=True)
    is_final = Boolean(default=False)
    defined_at = DateTime(required=True)


@ordering.event(part_of="OrderStatus")
class OrderStatusRedefined:
    """Code, name, description, or flags of a catalog status changed."""

    __version__ = 1

    status_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    code = String(required=True)
    name = String(required=True)
    is_final = Boolean(default=False)
    is_active = Boolean(default=True)
    updated_at = DateTime(required=True)


@ordering.event(part_of="OrderStatus")
class OrderStatusMoved:
    """A status was explicitly moved to a new position in the catalog."""

    __version__ = 1

    status_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    previous_order = Integer(required=True)
    new_order = Integer(required=True)

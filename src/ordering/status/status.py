"""OrderStatus aggregate (CQRS): one entry of a tenant's order status catalog.

A tenant defines its own statuses (e.g. "pending", "processing",
"completed"). Within a tenant, codes and names are unique, at most one
status is final, and `display_order` values always form the dense sequence
1..N. Those rules span the whole catalog, so they are enforced by the
catalog handlers in `ordering.status.catalog`, not by a single status.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from ordering.domain import ordering
from ordering.status.events import OrderStatusDefined, OrderStatusMoved, OrderStatusRedefined


@ordering.aggregate
class OrderStatus:
    tenant_id: Identifier(required=True)
    code: String(required=True, max_length=50)
    name: String(required=True, max_length=100)
    description: String(max_length=255)
    display_order: Integer(default=0, min_value=0)
    is_final: Boolean(default=False)
    is_active: Boolean(default=True)
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def define(cls, tenant_id, code, name, description=None, display_order=0, is_final=False, is_active=True):
        code = (code or "").strip()
        name = (name or "").strip()
        if not code:
            raise ValidationError({"code": ["Status code is required"]})
        if not name:
            raise ValidationError({"name": ["Status name is required"]})

        now = datetime.now(UTC)
        status = cls(
            tenant_id=tenant_id,
            code=code,
            name=name,
            description=description,
            display_order=display_order or 0,
            is_final=bool(is_final),
            is_active=bool(is_active),
            created_at=now,
            updated_at=now,
        )
        status.raise_(
            OrderStatusDefined(
                status_id=str(status.id),
                tenant_id=str(tenant_id),
                code=code,
                name=name,
                is_final=status.is_final,
                defined_at=now,
            )
        )
        return status

    def redefine(self, code=None, name=None, description=None, is_final=None, is_active=None):
        """Apply a partial update. Arguments left as None are unchanged."""
        if code is not None:
            if not code.strip():
                raise ValidationError({"code": ["Status code cannot be empty"]})
            self.code = code.strip()
        if name is not None:
            if not name.strip():
                raise ValidationError({"name": ["Status name cannot be empty"]})
            self.name = name.strip()
        if description is not None:
            self.description = description
        if is_final is not None:
            self.is_final = bool(is_final)
        if is_active is not None:
            self.is_active = bool(is_active)

        self.updated_at = datetime.now(UTC)
        self.raise_(
            OrderStatusRedefined(
                status_id=str(self.id),
                tenant_id=str(self.tenant_id),
                code=self.code,
                name=self.name,
                is_final=self.is_final,
                is_active=self.is_active,
                updated_at=self.updated_at,
            )
        )

    def move_to(self, new_order):
        if new_order is None or new_order < 1:
            raise ValidationError({"order": ["Order must be a positive integer"]})
        previous = self.display_order
        self.display_order = new_order
        self.updated_at = datetime.now(UTC)
        self.raise_(
            OrderStatusMoved(
                status_id=str(self.id),
                tenant_id=str(self.tenant_id),
                previous_order=previous,
                new_order=new_order,
            )
        )

    def can_delete(self) -> bool:
        return not self.is_final

    def can_transition_to(self) -> bool:
        return bool(self.is_active)

"""MessageTemplate aggregate (CQRS): tenant-owned message text with placeholders.

System templates (`is_custom=False`) are the defaults the router falls back
to for an event and cannot be edited or deleted. Custom templates belong to
the tenant and can be changed freely.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String, Text

from notifications.domain import notifications
from notifications.template.rendering import get_required_variables, preview, render_message, validate_variables


class MessageEvent(Enum):
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_UPDATED = "ORDER_UPDATED"
    ORDER_PAID = "ORDER_PAID"
    ORDER_COMPLETED = "ORDER_COMPLETED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    PAYMENT_REMINDER = "PAYMENT_REMINDER"
    CUSTOM = "CUSTOM"


@notifications.aggregate
class MessageTemplate:
    tenant_id: Identifier(required=True)
    name: String(required=True, max_length=150)
    event: String(choices=MessageEvent)
    message: Text(required=True)
    is_custom: Boolean(default=True)
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def create(cls, tenant_id, name, message, event=None, is_custom=True):
        if not (message or "").strip():
            raise ValidationError({"message": ["Template message cannot be empty"]})
        now = datetime.now(UTC)
        return cls(
            tenant_id=tenant_id,
            name=name,
            event=event,
            message=message,
            is_custom=is_custom,
            created_at=now,
            updated_at=now,
        )

    def is_editable(self) -> bool:
        return bool(self.is_custom)

    def edit(self, name=None, message=None, event=None):
        if not self.is_editable():
            raise ValidationError({"template": ["Cannot edit system template"]})
        if name is not None:
            self.name = name
        if message is not None:
            if not message.strip():
                raise ValidationError({"message": ["Template message cannot be empty"]})
            self.message = message
        if event is not None:
            self.event = event
        self.updated_at = datetime.now(UTC)

    def required_variables(self) -> list[str]:
        return get_required_variables(self.message)

    def validate_variables(self, variables):
        return validate_variables(self.message, variables)

    def render(self, variables) -> str:
        return render_message(self.message, variables)

    def preview(self, variables) -> dict:
        return preview(self.message, variables)

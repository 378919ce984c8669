"""NotificationSettings aggregate (CQRS): which order events a tenant notifies about.

One record per tenant. For each notification event there is an on/off flag
and an optional template id; without a template id the tenant's system
template for the event is used.
"""

from datetime import UTC, datetime

from protean import handle
from protean.fields import Boolean, DateTime, Identifier
from protean.utils.globals import current_domain

from notifications.domain import notifications

# event -> (enable flag attribute, template id attribute)
EVENT_SETTINGS = {
    "ORDER_CREATED": ("enable_order_created", "order_created_template_id"),
    "ORDER_UPDATED": ("enable_order_updated", "order_updated_template_id"),
    "ORDER_PAID": ("enable_order_paid", "order_paid_template_id"),
    "ORDER_COMPLETED": ("enable_order_completed", "order_completed_template_id"),
    "ORDER_CANCELLED": ("enable_order_cancelled", "order_cancelled_template_id"),
}


@notifications.aggregate
class NotificationSettings:
    tenant_id: Identifier(required=True)

    enable_order_created: Boolean(default=False)
    enable_order_updated: Boolean(default=False)
    enable_order_paid: Boolean(default=False)
    enable_order_completed: Boolean(default=False)
    enable_order_cancelled: Boolean(default=False)

    order_created_template_id: Identifier()
    order_updated_template_id: Identifier()
    order_paid_template_id: Identifier()
    order_completed_template_id: Identifier()
    order_cancelled_template_id: Identifier()

    updated_at: DateTime()

    def is_enabled(self, event) -> bool:
        if event not in EVENT_SETTINGS:
            return False
        return bool(getattr(self, EVENT_SETTINGS[event][0]))

    def template_id_for(self, event):
        if event not in EVENT_SETTINGS:
            return None
        return getattr(self, EVENT_SETTINGS[event][1])

    def apply(self, **changes):
        """Set the given flags and template ids. None leaves a value unchanged."""
        allowed = {attr for pair in EVENT_SETTINGS.values() for attr in pair}
        for name, value in changes.items():
            if name in allowed and value is not None:
                setattr(self, name, value)
        self.updated_at = datetime.now(UTC)


@notifications.command(part_of="NotificationSettings")
class UpdateNotificationSettings:
    tenant_id = Identifier(required=True)
    enable_order_created = Boolean()
    enable_order_updated = Boolean()
    enable_order_paid = Boolean()
    enable_order_completed = Boolean()
    enable_order_cancelled = Boolean()
    order_created_template_id = Identifier()
    order_updated_template_id = Identifier()
    order_paid_template_id = Identifier()
    order_completed_template_id = Identifier()
    order_cancelled_template_id = Identifier()


def settings_for(tenant_id) -> NotificationSettings | None:
    repo = current_domain.repository_for(NotificationSettings)
    found = repo._dao.query.filter(tenant_id=str(tenant_id)).all().items
    return found[0] if found else None


@notifications.command_handler(part_of=NotificationSettings)
class NotificationSettingsHandler:
    @handle(UpdateNotificationSettings)
    def update_settings(self, command):
        settings = settings_for(command.tenant_id)
        if settings is None:
            settings = NotificationSettings(tenant_id=command.tenant_id)

        changes = command.to_dict()
        changes.pop("tenant_id", None)
        settings.apply(**changes)

        current_domain.repository_for(NotificationSettings).add(settings)
        return str(settings.id)

"""MessagingConfig aggregate (CQRS): a tenant's credentials for one messaging provider.

Credentials are an opaque key/value object stored as JSON. Which keys are
required depends on the provider. A tenant may keep several configurations
but only one is active at a time; activating one deactivates the others
(see `notifications.config.management`).
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String, Text

from notifications.domain import notifications


class MessagingProvider(Enum):
    FONNTE = "fonnte"
    TWILIO = "twilio"
    SENDGRID = "sendgrid"
    CUSTOM = "custom"


REQUIRED_KEYS = {
    MessagingProvider.FONNTE.value: ("api_token", "api_url"),
    MessagingProvider.TWILIO.value: ("account_sid", "auth_token", "sender_id"),
    MessagingProvider.SENDGRID.value: ("api_key", "sender_id"),
    MessagingProvider.CUSTOM.value: ("api_url",),
}

PROVIDER_NAMES = {
    MessagingProvider.FONNTE.value: "Fonnte (WhatsApp)",
    MessagingProvider.TWILIO.value: "Twilio",
    MessagingProvider.SENDGRID.value: "SendGrid",
    MessagingProvider.CUSTOM.value: "Custom Provider",
}

_SECRET_MARKERS = ("token", "key")


@notifications.aggregate
class MessagingConfig:
    tenant_id: Identifier(required=True)
    provider: String(required=True, choices=MessagingProvider)
    config: Text()  # JSON object of provider credentials
    is_active: Boolean(default=False)
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def create(cls, tenant_id, provider, config=None, is_active=False):
        now = datetime.now(UTC)
        messaging_config = cls(
            tenant_id=tenant_id,
            provider=provider,
            config=json.dumps(config or {}),
            is_active=False,
            created_at=now,
            updated_at=now,
        )
        if is_active:
            messaging_config.activate()
        return messaging_config

    @property
    def credentials(self) -> dict:
        return json.loads(self.config) if self.config else {}

    def missing_keys(self) -> list[str]:
        values = self.credentials
        return [key for key in REQUIRED_KEYS.get(self.provider, ()) if not values.get(key)]

    def validate_config(self) -> bool:
        return not self.missing_keys()

    def is_ready(self) -> bool:
        return bool(self.is_active) and self.validate_config()

    def activate(self):
        missing = self.missing_keys()
        if missing:
            raise ValidationError({"config": [f"Missing required configuration: {', '.join(missing)}"]})
        self.is_active = True
        self.updated_at = datetime.now(UTC)

    def deactivate(self):
        self.is_active = False
        self.updated_at = datetime.now(UTC)

    def update_config(self, values: dict):
        """Merge new credential values into the stored ones."""
        merged = self.credentials
        merged.update(values or {})
        missing = [key for key in REQUIRED_KEYS.get(self.provider, ()) if not merged.get(key)]
        if self.is_active and missing:
            raise ValidationError({"config": [f"Missing required configuration: {', '.join(missing)}"]})
        self.config = json.dumps(merged)
        self.updated_at = datetime.now(UTC)

    def masked_config(self) -> dict:
        masked = {}
        for key, value in self.credentials.items():
            if any(marker in key.lower() for marker in _SECRET_MARKERS) and isinstance(value, str):
                masked[key] = value[:4] + "****"
            else:
                masked[key] = value
        return masked

    def provider_name(self) -> str:
        return PROVIDER_NAMES.get(self.provider, self.provider)

"""MessageLog aggregate (CQRS): the audit record of one delivery attempt.

A log is created as PENDING before the provider is called, then moves to
SENT or FAILED. A SENT message may later be confirmed DELIVERED. Once
FAILED or DELIVERED, a log never changes again, and logs are never deleted.

State Machine:
    PENDING → SENT → DELIVERED
    PENDING → FAILED
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text

from notifications.domain import notifications


class MessageStatus(Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    DELIVERED = "delivered"


_VALID_TRANSITIONS = {
    MessageStatus.PENDING: {MessageStatus.SENT, MessageStatus.FAILED},
    MessageStatus.SENT: {MessageStatus.DELIVERED},
    MessageStatus.FAILED: set(),  # Terminal
    MessageStatus.DELIVERED: set(),  # Terminal
}


@notifications.aggregate
class MessageLog:
    tenant_id: Identifier(required=True)
    config_id: Identifier()
    template_id: Identifier()
    recipient: String(required=True, max_length=50)
    message: Text(required=True)
    status: String(choices=MessageStatus, default=MessageStatus.PENDING.value)
    provider_response: Text()  # Raw provider payload, verbatim
    error_message: String(max_length=1000)
    sent_at: DateTime()
    delivered_at: DateTime()
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def begin(cls, tenant_id, recipient, message, config_id=None, template_id=None):
        now = datetime.now(UTC)
        return cls(
            tenant_id=tenant_id,
            config_id=config_id,
            template_id=template_id,
            recipient=recipient,
            message=message,
            status=MessageStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

    def _assert_can_transition(self, target: MessageStatus):
        current = MessageStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

    def mark_sent(self, provider_response=None):
        self._assert_can_transition(MessageStatus.SENT)
        now = datetime.now(UTC)
        self.status = MessageStatus.SENT.value
        self.provider_response = provider_response
        self.sent_at = now
        self.updated_at = now

    def mark_failed(self, error_message, provider_response=None):
        self._assert_can_transition(MessageStatus.FAILED)
        self.status = MessageStatus.FAILED.value
        self.error_message = (error_message or "Unknown error")[:1000]
        self.provider_response = provider_response
        self.updated_at = datetime.now(UTC)

    def mark_delivered(self):
        self._assert_can_transition(MessageStatus.DELIVERED)
        now = datetime.now(UTC)
        self.status = MessageStatus.DELIVERED.value
        self.delivered_at = now
        self.updated_at = now

    def is_successful(self) -> bool:
        return self.status in (MessageStatus.SENT.value, MessageStatus.DELIVERED.value)

    def is_failed(self) -> bool:
        return self.status == MessageStatus.FAILED.value

    def delivery_time_ms(self) -> int | None:
        if not self.sent_at or not self.delivered_at:
            return None
        return int((self.delivered_at - self.sent_at).total_seconds() * 1000)

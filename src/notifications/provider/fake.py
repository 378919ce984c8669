"""Fake messaging provider: records sends in memory for tests and local runs."""

from uuid import uuid4

from notifications.provider.port import ConnectionResult, MessageProvider, SendResult


class FakeMessageProvider(MessageProvider):
    name = "fake"

    def __init__(self):
        self.sent_messages: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Message delivery failed"
        self.simulate_timeout = False

    def configure(self, should_succeed: bool = True, failure_reason: str = "Message delivery failed", simulate_timeout: bool = False):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.simulate_timeout = simulate_timeout

    def send(self, recipient: str, message: str) -> SendResult:
        if self.simulate_timeout:
            raise TimeoutError("Provider did not answer in time")
        if not self.should_succeed:
            return SendResult(
                success=False,
                provider_response='{"status": false, "reason": "%s"}' % self.failure_reason,
                error_message=self.failure_reason,
            )

        message_id = f"msg-{uuid4().hex[:12]}"
        self.sent_messages.append({"message_id": message_id, "recipient": recipient, "message": message})
        return SendResult(
            success=True,
            message_id=message_id,
            provider_response='{"status": true, "id": "%s"}' % message_id,
        )

    def test_connection(self) -> ConnectionResult:
        if self.should_succeed:
            return ConnectionResult(success=True, message="Connected to fake provider")
        return ConnectionResult(success=False, message=self.failure_reason)

    def reset(self):
        self.sent_messages.clear()
        self.should_succeed = True
        self.failure_reason = "Message delivery failed"
        self.simulate_timeout = False

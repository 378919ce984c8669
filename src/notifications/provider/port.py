"""Messaging provider port (abstract interface).

Every vendor adapter implements this contract, so dispatch and routing
never depend on a particular vendor's API.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SendResult:
    """Result of a single send attempt."""

    success: bool
    message_id: str | None = None
    provider_response: str | None = None  # Raw payload, kept verbatim for audit
    error_message: str | None = None


@dataclass(frozen=True)
class ConnectionResult:
    success: bool
    message: str


class MessageProvider(ABC):
    """Abstract messaging provider interface."""

    name: str = "provider"

    @abstractmethod
    def send(self, recipient: str, message: str) -> SendResult:
        """Deliver `message` to `recipient`.

        Vendor-reported failures come back as `SendResult(success=False)`.
        Transport failures may either be returned that way or raised.
        """
        ...

    @abstractmethod
    def test_connection(self) -> ConnectionResult:
        """Check that the stored credentials are accepted by the vendor."""
        ...

    def info(self) -> dict:
        return {"name": self.name}

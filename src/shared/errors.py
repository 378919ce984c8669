"""Error taxonomy shared by both bounded contexts.

`NotFound`, `Validation` and `ConcurrentUpdate` are Protean's own exceptions
so that repository lookups, field validation and version conflicts surface
through the same types as the domain-specific errors below. A
`ConcurrentUpdate` reaches callers only after the handler's version retries
are used up.
"""

from protean.exceptions import ExpectedVersionError as ConcurrentUpdate
from protean.exceptions import InvalidOperationError
from protean.exceptions import ObjectNotFoundError as NotFound
from protean.exceptions import ValidationError as Validation

__all__ = [
    "NotFound",
    "Validation",
    "ConcurrentUpdate",
    "QuotaExceeded",
    "Unauthorized",
    "OrderStatusError",
    "ProviderFailure",
]


class QuotaExceeded(InvalidOperationError):
    """The tenant's subscription does not allow another unit of a resource."""

    def __init__(self, limit_type: str, limit=None, current=None):
        self.limit_type = limit_type
        self.limit = limit
        self.current = current
        super().__init__(f"Subscription limit exceeded for {limit_type}")


class Unauthorized(InvalidOperationError):
    """The credential's tenant does not match the tenant being addressed."""


class OrderStatusError(InvalidOperationError):
    """The order's current status forbids the requested operation."""


class ProviderFailure(Exception):
    """A messaging provider rejected a send or could not be reached."""

    def __init__(self, message: str, provider_response: str | None = None):
        self.provider_response = provider_response
        super().__init__(message)

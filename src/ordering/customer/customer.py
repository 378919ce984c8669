"""Customer aggregate (CQRS): the parts of a tenant's customer that orders touch.

Only the contact details needed for notifications and the loyalty point
balance live here. The balance never goes negative.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from ordering.customer.events import CustomerRegistered, PointsAdjusted
from ordering.domain import ordering


@ordering.aggregate
class Customer:
    tenant_id: Identifier(required=True)
    name: String(required=True, max_length=150)
    phone: String(max_length=30)
    points: Integer(default=0, min_value=0)
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def register(cls, tenant_id, name, phone=None, points=0):
        now = datetime.now(UTC)
        customer = cls(
            tenant_id=tenant_id,
            name=name,
            phone=phone,
            points=points or 0,
            created_at=now,
            updated_at=now,
        )
        customer.raise_(
            CustomerRegistered(
                customer_id=str(customer.id),
                tenant_id=str(tenant_id),
                name=name,
                registered_at=now,
            )
        )
        return customer

    def adjust_points(self, earn=0, redeem=0, reason=None, allow_shortfall=False):
        """Add `earn` points and take away `redeem` points in one step.

        With `allow_shortfall`, a redemption larger than the balance drains
        the balance to zero instead of failing.
        """
        for label, amount in (("earn", earn), ("redeem", redeem)):
            if amount is None or amount < 0 or int(amount) != amount:
                raise ValidationError({"points": [f"Points to {label} must be a non-negative integer"]})

        balance = (self.points or 0) + int(earn)
        if int(redeem) > balance:
            if not allow_shortfall:
                raise ValidationError(
                    {"points": [f"Insufficient points: balance {balance}, requested {int(redeem)}"]}
                )
            redeem = balance

        self.points = balance - int(redeem)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            PointsAdjusted(
                customer_id=str(self.id),
                tenant_id=str(self.tenant_id),
                earned=int(earn),
                redeemed=int(redeem),
                new_balance=self.points,
                reason=reason,
            )
        )

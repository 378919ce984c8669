"""TenantSubscription aggregate (CQRS): the plan a tenant is on and its limits.

Limits are stored as JSON objects. Numeric limits cap a resource count
(staff, product, transaction); boolean limits switch a feature on or off.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering

NUMERIC_LIMITS = ("staff", "product", "transaction")
FEATURE_LIMITS = ("report", "payroll", "discount", "attendance", "online_store")


def _clean_limits(limits) -> dict:
    """Keep only known limit keys carrying a value of the right type."""
    if not limits:
        return {}
    if not isinstance(limits, dict):
        raise ValidationError({"limits": ["Limits must be an object"]})

    cleaned = {}
    for key, value in limits.items():
        if key in NUMERIC_LIMITS and isinstance(value, int) and not isinstance(value, bool):
            if value < 0:
                raise ValidationError({key: ["Limit cannot be negative"]})
            cleaned[key] = value
        elif key in FEATURE_LIMITS and isinstance(value, bool):
            cleaned[key] = value
    return cleaned


@ordering.aggregate
class TenantSubscription:
    tenant_id: Identifier(required=True)
    plan_name: String(max_length=100)
    plan_limits: Text()  # JSON object, from the subscription plan
    custom_limits: Text()  # JSON object, negotiated per tenant
    is_active: Boolean(default=True)
    updated_at: DateTime()

    @classmethod
    def subscribe(cls, tenant_id, plan_name=None, plan_limits=None, custom_limits=None):
        return cls(
            tenant_id=tenant_id,
            plan_name=plan_name,
            plan_limits=json.dumps(_clean_limits(plan_limits)),
            custom_limits=json.dumps(_clean_limits(custom_limits)),
            is_active=True,
            updated_at=datetime.now(UTC),
        )

    def change_plan(self, plan_name=None, plan_limits=None, custom_limits=None):
        if plan_name is not None:
            self.plan_name = plan_name
        if plan_limits is not None:
            self.plan_limits = json.dumps(_clean_limits(plan_limits))
        if custom_limits is not None:
            self.custom_limits = json.dumps(_clean_limits(custom_limits))
        self.is_active = True
        self.updated_at = datetime.now(UTC)

    def plan_overrides(self) -> dict:
        return json.loads(self.plan_limits) if self.plan_limits else {}

    def custom_overrides(self) -> dict:
        return json.loads(self.custom_limits) if self.custom_limits else {}


@ordering.aggregate
class TenantUsage:
    """Concurrency token for quota-consuming writes of one tenant.

    Every write that consumes quota saves this record in its own unit of
    work. Two writes that counted the same usage both advance the same
    version, so the later commit fails its version check and its handler is
    re-run against the new count.
    """

    tenant_id: Identifier(required=True)
    transactions_reserved: Integer(default=0)
    updated_at: DateTime()

    def reserve(self, limit_type, amount=1):
        if limit_type == "transaction":
            self.transactions_reserved = (self.transactions_reserved or 0) + amount
        self.updated_at = datetime.now(UTC)

"""Quota guard: checks a tenant's usage against its subscription limits.

Effective limits are the defaults, overlaid by the plan's limits, overlaid
by the tenant's custom limits. `enforce_limit` is a read-only check.
`reserve` is the same check made inside the consuming write's unit of work:
it also advances the tenant's `TenantUsage` version, so concurrent writes
that saw the same usage cannot both commit, in this process or another.
"""

import json
from uuid import NAMESPACE_URL, uuid5

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.subscription.subscription import FEATURE_LIMITS, TenantSubscription, TenantUsage
from shared.config import get_settings
from shared.errors import QuotaExceeded, Validation

logger = structlog.get_logger(__name__)


def default_limits() -> dict:
    settings = get_settings()
    limits = {
        "staff": settings.DEFAULT_STAFF_LIMIT,
        "product": settings.DEFAULT_PRODUCT_LIMIT,
        "transaction": settings.DEFAULT_TRANSACTION_LIMIT,
    }
    limits.update({feature: False for feature in FEATURE_LIMITS})
    return limits


def subscription_for(tenant_id) -> TenantSubscription | None:
    repo = current_domain.repository_for(TenantSubscription)
    found = repo._dao.query.filter(tenant_id=str(tenant_id)).all().items
    return found[0] if found else None


def count_orders(tenant_id) -> int:
    from ordering.order.order import Order

    return current_domain.repository_for(Order)._dao.query.filter(tenant_id=str(tenant_id)).all().total


def usage_id(tenant_id) -> str:
    """Stable identifier of a tenant's usage record."""
    return str(uuid5(NAMESPACE_URL, f"tokostream:tenant-usage:{tenant_id}"))


def usage_record(tenant_id) -> TenantUsage:
    try:
        return current_domain.repository_for(TenantUsage).get(usage_id(tenant_id))
    except ObjectNotFoundError:
        return TenantUsage(id=usage_id(tenant_id), tenant_id=tenant_id)


@ordering.command(part_of="TenantSubscription")
class AssignSubscriptionPlan:
    tenant_id = Identifier(required=True)
    plan_name = String(max_length=100)
    plan_limits = Text()  # JSON object
    custom_limits = Text()  # JSON object


@ordering.command_handler(part_of=TenantSubscription)
class SubscriptionHandler:
    @handle(AssignSubscriptionPlan)
    def assign_plan(self, command):
        plan_limits = json.loads(command.plan_limits) if command.plan_limits else None
        custom_limits = json.loads(command.custom_limits) if command.custom_limits else None

        repo = current_domain.repository_for(TenantSubscription)
        subscription = subscription_for(command.tenant_id)
        if subscription is None:
            subscription = TenantSubscription.subscribe(
                tenant_id=command.tenant_id,
                plan_name=command.plan_name,
                plan_limits=plan_limits,
                custom_limits=custom_limits,
            )
        else:
            subscription.change_plan(
                plan_name=command.plan_name,
                plan_limits=plan_limits,
                custom_limits=custom_limits,
            )
        repo.add(subscription)
        return str(subscription.id)


class QuotaGuard:
    """Stateless check-and-raise against tenant limits.

    `usage_counters` maps a numeric limit type to a callable returning the
    tenant's current usage. Limit types without a counter count as zero.
    """

    def __init__(self, usage_counters=None):
        self._counters = {"transaction": count_orders}
        self._counters.update(usage_counters or {})

    def limits_for(self, tenant_id) -> dict:
        limits = default_limits()
        subscription = subscription_for(tenant_id)
        if subscription is not None and subscription.is_active:
            limits.update(subscription.plan_overrides())
            limits.update(subscription.custom_overrides())
        return limits

    def usage(self, tenant_id, limit_type) -> int:
        counter = self._counters.get(limit_type)
        return counter(tenant_id) if counter else 0

    def check_limit(self, tenant_id, limit_type, increment=1) -> bool:
        limits = self.limits_for(tenant_id)
        if limit_type not in limits:
            raise Validation({"limit_type": [f"Unknown limit type '{limit_type}'"]})

        limit = limits[limit_type]
        if isinstance(limit, bool):
            return limit
        return self.usage(tenant_id, limit_type) + increment <= limit

    def enforce_limit(self, tenant_id, limit_type, increment=1) -> None:
        if self.check_limit(tenant_id, limit_type, increment):
            return

        limit = self.limits_for(tenant_id)[limit_type]
        current = None if isinstance(limit, bool) else self.usage(tenant_id, limit_type)
        logger.warning(
            "Subscription limit exceeded",
            tenant_id=str(tenant_id),
            limit_type=limit_type,
            limit=limit,
            current=current,
        )
        raise QuotaExceeded(limit_type, limit=limit, current=current)

    def reserve(self, tenant_id, limit_type, increment=1) -> None:
        """Enforce the limit and claim `increment` units within the current unit of work.

        Call from the command handler that writes the consuming record. A
        concurrent reservation for the same tenant surfaces as
        `ExpectedVersionError` at commit, which the handler's version retry
        turns into a fresh count.
        """
        self.enforce_limit(tenant_id, limit_type, increment)

        usage = usage_record(tenant_id)
        usage.reserve(limit_type, increment)
        current_domain.repository_for(TenantUsage).add(usage)

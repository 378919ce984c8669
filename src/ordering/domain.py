"""Ordering bounded context: orders, status catalogs, loyalty points and quotas.

Everything here is partitioned by tenant. Orders are plain CQRS aggregates;
the per-tenant order status catalog, the customer loyalty balance and the
tenant subscription are separate aggregates kept consistent with orders by
the command handlers and the `OrderLifecycle` orchestrator.
"""

import structlog
from protean.domain import Domain

from shared.logging import configure_logging

configure_logging()

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)

"""Notifications bounded context: customer messages about their orders.

Tenants keep message templates, a messaging provider configuration and
per-event notification settings here. Order changes arrive as snapshots
from the ordering context; the router picks the event, renders the
tenant's template and dispatches it through the tenant's provider, logging
every attempt.
"""

import structlog
from protean.domain import Domain

from shared.logging import configure_logging

configure_logging()

notifications = Domain(name="notifications")

logger = structlog.get_logger(__name__)

"""Service graph shared by the HTTP application and its tests."""

from fastapi import FastAPI

from notifications.message.dispatch import MessagingDispatch
from notifications.provider.factory import ProviderFactory
from notifications.routing.router import NotificationRouter
from ordering.customer.ledger import LoyaltyLedger
from ordering.order.lifecycle import OrderLifecycle
from ordering.status.catalog import StatusCatalog
from ordering.subscription.quota import QuotaGuard
from shared.background import BackgroundDispatcher
from shared.config import get_settings
from shared.locks import KeyedLocks


def wire_services(app: FastAPI, provider_factory: ProviderFactory | None = None) -> None:
    """Build the service graph once and hang it on `app.state`.

    One `KeyedLocks` registry is shared so that the catalog, the ledger and
    the order lifecycle serialize on the same per-tenant and per-customer
    keys.
    """
    settings = get_settings()
    locks = KeyedLocks()

    dispatch = MessagingDispatch(provider_factory or ProviderFactory(timeout=settings.PROVIDER_TIMEOUT_SECONDS))
    dispatcher = BackgroundDispatcher(max_workers=settings.NOTIFICATION_WORKERS, name="notifications")
    catalog = StatusCatalog(locks)
    ledger = LoyaltyLedger(locks)
    quota = QuotaGuard()

    app.state.messaging_dispatch = dispatch
    app.state.background_dispatcher = dispatcher
    app.state.status_catalog = catalog
    app.state.loyalty_ledger = ledger
    app.state.quota_guard = quota
    app.state.order_lifecycle = OrderLifecycle(
        quota=quota,
        ledger=ledger,
        catalog=catalog,
        dispatcher=dispatcher,
        notifier=NotificationRouter(dispatch),
        locks=locks,
    )

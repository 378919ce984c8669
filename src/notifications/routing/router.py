"""Notification event router: turns an order change into at most one customer message.

The router runs on the background dispatcher after the order change has
committed. It never raises: every outcome, including internal errors, is
returned as a `RoutingResult` and logged.

Resolution chain for the selected event:
    settings present → event enabled → template resolved →
    active, complete messaging config → valid recipient phone → dispatch
Any missing link is a skip, not an error.
"""

from dataclasses import dataclass

import structlog

from notifications.config.management import active_config
from notifications.domain import notifications
from notifications.message.dispatch import MessagingDispatch
from notifications.routing.formatting import format_rupiah, normalize_phone
from notifications.settings.settings import settings_for
from notifications.template.management import default_template_for
from notifications.template.template import MessageEvent
from shared.config import get_settings
from shared.snapshot import OrderSnapshot

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RoutingResult:
    success: bool
    skipped: bool
    message: str
    event: str | None = None
    log_id: str | None = None


def select_event(previous: OrderSnapshot | None, current: OrderSnapshot) -> str:
    """Pick the event for an order change, first matching rule wins."""
    if current.is_completed() and not (previous and previous.is_completed()):
        return MessageEvent.ORDER_COMPLETED.value
    if current.is_cancelled() and not (previous and previous.is_cancelled()):
        return MessageEvent.ORDER_CANCELLED.value
    if current.is_paid() and not (previous and previous.is_paid()):
        return MessageEvent.ORDER_PAID.value
    if previous is None:
        return MessageEvent.ORDER_CREATED.value
    return MessageEvent.ORDER_UPDATED.value


def event_for_status(current: OrderSnapshot) -> str:
    """Event for an explicit status change, keyed off the new status alone."""
    if current.is_completed():
        return MessageEvent.ORDER_COMPLETED.value
    if current.is_cancelled():
        return MessageEvent.ORDER_CANCELLED.value
    return MessageEvent.ORDER_UPDATED.value


def _skipped(message, event=None, **context) -> RoutingResult:
    logger.info("Order notification skipped", reason=message, notification_event=event, **context)
    return RoutingResult(success=False, skipped=True, message=message, event=event)


def _log_failure(tenant_id, current, event, exc) -> None:
    try:
        logger.exception(
            "Order notification failed",
            tenant_id=str(tenant_id),
            order_id=getattr(current, "order_id", None),
            notification_event=event,
            error=str(exc),
        )
    except Exception:
        pass  # route() returns its result even when logging fails


class NotificationRouter:
    """Callable handed to the ordering side as its notifier.

    Calling the router pushes the notifications domain context, so it can
    run on any worker thread.
    """

    def __init__(self, dispatch: MessagingDispatch, country_code: str | None = None, min_phone_length: int | None = None):
        settings = get_settings()
        self.dispatch = dispatch
        self.country_code = country_code or settings.PHONE_COUNTRY_CODE
        self.min_phone_length = min_phone_length or settings.PHONE_MIN_LENGTH

    def __call__(self, tenant_id, previous, current, status_driven=False) -> RoutingResult:
        try:
            with notifications.domain_context():
                return self.route(tenant_id, previous, current, status_driven=status_driven)
        except Exception as exc:
            logger.exception("Order notification failed", tenant_id=str(tenant_id), error=str(exc))
            return RoutingResult(success=False, skipped=False, message=str(exc))

    def route(self, tenant_id, previous, current, status_driven=False) -> RoutingResult:
        event = None
        try:
            event = event_for_status(current) if status_driven else select_event(previous, current)
            return self._route(tenant_id, current, event, status_driven)
        except Exception as exc:
            _log_failure(tenant_id, current, event, exc)
            return RoutingResult(success=False, skipped=False, message=str(exc), event=event)

    def _route(self, tenant_id, current: OrderSnapshot, event, status_driven) -> RoutingResult:
        context = {"tenant_id": str(tenant_id), "order_id": current.order_id}

        settings = settings_for(tenant_id)
        if settings is None:
            return _skipped("Notification settings not configured", event, **context)
        if not settings.is_enabled(event):
            return _skipped(f"{event} notifications are disabled", event, **context)

        template_id = settings.template_id_for(event)
        if not template_id:
            template = default_template_for(tenant_id, event)
            if template is None:
                return _skipped(f"No template for {event}", event, **context)
            template_id = template.id

        messaging_config = active_config(tenant_id)
        if messaging_config is None or not messaging_config.is_ready():
            return _skipped("No active messaging configuration", event, **context)

        recipient = normalize_phone(current.customer_phone, self.country_code, self.min_phone_length)
        if recipient is None:
            return _skipped("Customer phone number missing or invalid", event, **context)

        variables = {
            "customerName": current.customer_name or "Customer",
            "grandTotal": format_rupiah(current.grand_total),
            "orderNumber": current.order_no,
            "orderStatus": current.status_name,
        }

        log = self.dispatch.send_with_template(tenant_id, template_id, recipient, variables)
        logger.info("Order notification dispatched", notification_event=event, log_id=str(log.id), status=log.status, **context)
        return RoutingResult(
            success=log.is_successful(),
            skipped=False,
            message="Notification sent" if log.is_successful() else (log.error_message or "Send failed"),
            event=event,
            log_id=str(log.id),
        )

"""Application tests for NotificationRouter: skip reasons and dispatch."""

import pytest
from notifications.config.management import DeactivateMessagingConfig
from notifications.message.message_log import MessageLog
from notifications.routing import router as router_module
from notifications.routing.router import NotificationRouter
from notifications.settings.settings import UpdateNotificationSettings
from protean.utils.globals import current_domain
from shared.snapshot import OrderSnapshot


def _snapshot(tenant, status_code="pending", payment_status="unpaid", phone="081234567890", name="Ani", is_final=False):
    return OrderSnapshot(
        order_id="order-1",
        tenant_id=tenant,
        order_no="0lz8k2m1",
        status_code=status_code,
        status_name=status_code.title(),
        status_is_final=is_final,
        payment_status=payment_status,
        grand_total=150000.0,
        customer_id="cust-1",
        customer_name=name,
        customer_phone=phone,
    )


def _enable(tenant, **changes):
    current_domain.process(UpdateNotificationSettings(tenant_id=tenant, **changes), asynchronous=False)


@pytest.fixture()
def router(dispatch):
    return NotificationRouter(dispatch)


@pytest.fixture()
def ready(tenant, make_template, fonnte_config):
    """Settings, a system ORDER_CREATED template and an active config."""
    make_template(event="ORDER_CREATED", is_custom=False)
    _enable(tenant, enable_order_created=True)


class TestSkips:
    def test_without_settings(self, router, tenant):
        result = router.route(tenant, None, _snapshot(tenant))
        assert result.skipped
        assert result.event == "ORDER_CREATED"
        assert result.message == "Notification settings not configured"

    def test_event_disabled(self, router, tenant, ready):
        result = router.route(tenant, None, _snapshot(tenant, payment_status="paid"))
        assert result.skipped
        assert result.event == "ORDER_PAID"
        assert "disabled" in result.message

    def test_no_template(self, router, tenant, fonnte_config):
        _enable(tenant, enable_order_created=True)
        result = router.route(tenant, None, _snapshot(tenant))
        assert result.skipped
        assert result.message == "No template for ORDER_CREATED"

    def test_no_active_config(self, router, tenant, ready, fonnte_config):
        current_domain.process(DeactivateMessagingConfig(tenant_id=tenant, config_id=fonnte_config), asynchronous=False)
        result = router.route(tenant, None, _snapshot(tenant))
        assert result.skipped
        assert result.message == "No active messaging configuration"

    @pytest.mark.parametrize("phone", [None, "", "0812"])
    def test_unusable_phone(self, router, tenant, ready, phone):
        result = router.route(tenant, None, _snapshot(tenant, phone=phone))
        assert result.skipped
        assert "phone" in result.message

    def test_skips_write_no_log(self, router, tenant, ready):
        router.route(tenant, None, _snapshot(tenant, phone=None))
        assert current_domain.repository_for(MessageLog)._dao.query.filter(tenant_id=tenant).all().total == 0


class TestDispatch:
    def test_new_order_is_sent_with_system_template(self, router, tenant, ready, fake_provider):
        result = router.route(tenant, None, _snapshot(tenant))

        assert result.success
        assert not result.skipped
        assert result.event == "ORDER_CREATED"
        sent = fake_provider.sent_messages[0]
        assert sent["recipient"] == "6281234567890"
        assert sent["message"] == "Halo Ani, pesanan 0lz8k2m1 Pending (Rp150.000)"

        log = current_domain.repository_for(MessageLog).get(result.log_id)
        assert log.status == "sent"

    def test_configured_template_wins_over_system_template(self, router, tenant, ready, make_template, fake_provider):
        custom = make_template(message="Pesanan {{orderNumber}} diterima", event="ORDER_CREATED")
        _enable(tenant, order_created_template_id=custom)

        router.route(tenant, None, _snapshot(tenant))
        assert fake_provider.sent_messages[0]["message"] == "Pesanan 0lz8k2m1 diterima"

    def test_missing_customer_name_defaults(self, router, tenant, ready, fake_provider):
        router.route(tenant, None, _snapshot(tenant, name=None))
        assert fake_provider.sent_messages[0]["message"].startswith("Halo Customer,")

    def test_status_driven_change_uses_new_status(self, router, tenant, make_template, fonnte_config, fake_provider):
        make_template(event="ORDER_UPDATED", is_custom=False)
        _enable(tenant, enable_order_updated=True)

        previous = _snapshot(tenant)
        current = _snapshot(tenant, status_code="processing", payment_status="paid")

        # Without the status flag the payment transition would win
        result = router.route(tenant, previous, current, status_driven=True)
        assert result.event == "ORDER_UPDATED"
        assert result.success

    def test_failed_send_is_reported(self, router, tenant, ready, fake_provider):
        fake_provider.configure(should_succeed=False, failure_reason="quota habis")
        result = router.route(tenant, None, _snapshot(tenant))

        assert not result.success
        assert not result.skipped
        assert result.message == "quota habis"


class TestNeverRaises:
    def test_dispatch_errors_are_contained(self, tenant, ready):
        class Exploding:
            def send_with_template(self, *args, **kwargs):
                raise RuntimeError("boom")

        result = NotificationRouter(Exploding()).route(tenant, None, _snapshot(tenant))
        assert not result.success
        assert not result.skipped
        assert result.message == "boom"

    def test_callable_form_pushes_its_own_context(self, router, tenant, ready, fake_provider):
        result = router(tenant, None, _snapshot(tenant))
        assert result.success
        assert len(fake_provider.sent_messages) == 1

    def test_callable_form_reports_skip_reason(self, router, tenant):
        result = router(tenant, None, _snapshot(tenant))
        assert result.skipped
        assert not result.success
        assert result.event == "ORDER_CREATED"
        assert result.message == "Notification settings not configured"

    def test_callable_form_reports_disabled_event(self, router, tenant, ready):
        result = router(tenant, None, _snapshot(tenant, payment_status="paid"))
        assert result.skipped
        assert result.message == "ORDER_PAID notifications are disabled"

    def test_callable_form_reports_successful_send(self, router, tenant, ready, fake_provider):
        result = router(tenant, None, _snapshot(tenant))
        assert result.success
        assert not result.skipped
        assert result.message == "Notification sent"
        assert result.log_id is not None

    def test_logging_failure_does_not_escape(self, tenant, ready, monkeypatch):
        class BrokenLogger:
            def __getattr__(self, name):
                def fail(*args, **kwargs):
                    raise RuntimeError("log sink down")

                return fail

        class Exploding:
            def send_with_template(self, *args, **kwargs):
                raise RuntimeError("boom")

        monkeypatch.setattr(router_module, "logger", BrokenLogger())

        result = NotificationRouter(Exploding()).route(tenant, None, _snapshot(tenant))
        assert not result.success
        assert result.message == "boom"
        assert result.event == "ORDER_CREATED"

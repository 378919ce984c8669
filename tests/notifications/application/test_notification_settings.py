from notifications.settings.settings import NotificationSettings, UpdateNotificationSettings, settings_for
from protean.utils.globals import current_domain


class TestNotificationSettings:
    def test_no_settings_until_saved(self, tenant):
        assert settings_for(tenant) is None

    def test_first_update_creates_the_record(self, tenant):
        current_domain.process(
            UpdateNotificationSettings(tenant_id=tenant, enable_order_paid=True), asynchronous=False
        )
        settings = settings_for(tenant)
        assert settings.is_enabled("ORDER_PAID")
        assert not settings.is_enabled("ORDER_CREATED")

    def test_updates_leave_unspecified_values_alone(self, tenant, make_template):
        template_id = make_template(event="ORDER_PAID")
        current_domain.process(
            UpdateNotificationSettings(tenant_id=tenant, enable_order_paid=True, order_paid_template_id=template_id),
            asynchronous=False,
        )
        current_domain.process(
            UpdateNotificationSettings(tenant_id=tenant, enable_order_created=True), asynchronous=False
        )

        settings = settings_for(tenant)
        assert settings.is_enabled("ORDER_PAID")
        assert settings.is_enabled("ORDER_CREATED")
        assert str(settings.template_id_for("ORDER_PAID")) == template_id

    def test_one_record_per_tenant(self, tenant):
        for _ in range(3):
            current_domain.process(
                UpdateNotificationSettings(tenant_id=tenant, enable_order_updated=True), asynchronous=False
            )
        repo = current_domain.repository_for(NotificationSettings)
        assert repo._dao.query.filter(tenant_id=tenant).all().total == 1

    def test_unknown_event_is_never_enabled(self, tenant):
        current_domain.process(UpdateNotificationSettings(tenant_id=tenant, enable_order_paid=True), asynchronous=False)
        assert not settings_for(tenant).is_enabled("PAYMENT_REMINDER")
        assert settings_for(tenant).template_id_for("PAYMENT_REMINDER") is None

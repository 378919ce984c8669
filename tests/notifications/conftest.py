import json
from uuid import uuid4

import pytest
from notifications.config.management import CreateMessagingConfig
from notifications.message.dispatch import MessagingDispatch
from notifications.provider.factory import ProviderFactory
from notifications.provider.fake import FakeMessageProvider
from notifications.template.management import CreateMessageTemplate
from protean import current_domain

FONNTE_CREDENTIALS = {"api_token": "fonnte-token-123", "api_url": "https://api.fonnte.com/send"}


@pytest.fixture(autouse=True)
def _ctx(notifications_bed):
    with notifications_bed.domain_context():
        yield
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture()
def tenant():
    return f"tenant-{uuid4().hex[:8]}"


@pytest.fixture()
def fake_provider():
    return FakeMessageProvider()


@pytest.fixture()
def dispatch(fake_provider):
    factory = ProviderFactory(builders={"fonnte": lambda credentials, timeout: fake_provider})
    return MessagingDispatch(factory)


@pytest.fixture()
def make_template(tenant):
    def _make(message="Halo {{customerName}}, pesanan {{orderNumber}} {{orderStatus}} ({{grandTotal}})", **kwargs):
        command = CreateMessageTemplate(tenant_id=tenant, name=kwargs.pop("name", "Order update"), message=message, **kwargs)
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture()
def fonnte_config(tenant):
    """An active, complete Fonnte configuration for the tenant."""
    command = CreateMessagingConfig(
        tenant_id=tenant,
        provider="fonnte",
        config=json.dumps(FONNTE_CREDENTIALS),
        is_active=True,
    )
    return current_domain.process(command, asynchronous=False)

"""Messaging configuration management: commands, handlers and queries."""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from notifications.config.config import PROVIDER_NAMES, REQUIRED_KEYS, MessagingConfig
from notifications.domain import notifications


@notifications.command(part_of="MessagingConfig")
class CreateMessagingConfig:
    tenant_id = Identifier(required=True)
    provider = String(required=True, max_length=20)
    config = Text()  # JSON object
    is_active = Boolean(default=False)


@notifications.command(part_of="MessagingConfig")
class UpdateMessagingConfig:
    tenant_id = Identifier(required=True)
    config_id = Identifier(required=True)
    config = Text()  # JSON object, merged into the stored values
    is_active = Boolean()


@notifications.command(part_of="MessagingConfig")
class ActivateMessagingConfig:
    tenant_id = Identifier(required=True)
    config_id = Identifier(required=True)


@notifications.command(part_of="MessagingConfig")
class DeactivateMessagingConfig:
    tenant_id = Identifier(required=True)
    config_id = Identifier(required=True)


@notifications.command(part_of="MessagingConfig")
class DeleteMessagingConfig:
    tenant_id = Identifier(required=True)
    config_id = Identifier(required=True)


def get_config(tenant_id, config_id) -> MessagingConfig:
    messaging_config = current_domain.repository_for(MessagingConfig).get(config_id)
    if str(messaging_config.tenant_id) != str(tenant_id):
        raise ObjectNotFoundError(f"Messaging config `{config_id}` does not exist")
    return messaging_config


def configs_for(tenant_id) -> list[MessagingConfig]:
    repo = current_domain.repository_for(MessagingConfig)
    configs = repo._dao.query.filter(tenant_id=str(tenant_id)).all().items
    return sorted(configs, key=lambda c: c.created_at)


def active_config(tenant_id, provider=None) -> MessagingConfig | None:
    for messaging_config in configs_for(tenant_id):
        if messaging_config.is_active and (provider is None or messaging_config.provider == provider):
            return messaging_config
    return None


def available_providers() -> list[dict]:
    return [
        {"provider": provider, "name": PROVIDER_NAMES[provider], "required_keys": list(keys)}
        for provider, keys in REQUIRED_KEYS.items()
    ]


def _deactivate_others(tenant_id, keep_id):
    repo = current_domain.repository_for(MessagingConfig)
    for other in configs_for(tenant_id):
        if str(other.id) != str(keep_id) and other.is_active:
            other.deactivate()
            repo.add(other)


@notifications.command_handler(part_of=MessagingConfig)
class ManageMessagingConfigHandler:
    @handle(CreateMessagingConfig)
    def create_config(self, command):
        messaging_config = MessagingConfig.create(
            tenant_id=command.tenant_id,
            provider=command.provider,
            config=json.loads(command.config) if command.config else {},
            is_active=command.is_active,
        )
        if messaging_config.is_active:
            _deactivate_others(command.tenant_id, messaging_config.id)
        current_domain.repository_for(MessagingConfig).add(messaging_config)
        return str(messaging_config.id)

    @handle(UpdateMessagingConfig)
    def update_config(self, command):
        messaging_config = get_config(command.tenant_id, command.config_id)

        if command.config:
            messaging_config.update_config(json.loads(command.config))
        if command.is_active is True:
            messaging_config.activate()
            _deactivate_others(command.tenant_id, messaging_config.id)
        elif command.is_active is False:
            messaging_config.deactivate()

        current_domain.repository_for(MessagingConfig).add(messaging_config)
        return str(messaging_config.id)

    @handle(DeleteMessagingConfig)
    def delete_config(self, command):
        messaging_config = get_config(command.tenant_id, command.config_id)
        current_domain.repository_for(MessagingConfig)._dao.delete(messaging_config)

    @handle(ActivateMessagingConfig)
    def activate_config(self, command):
        messaging_config = get_config(command.tenant_id, command.config_id)
        messaging_config.activate()
        _deactivate_others(command.tenant_id, messaging_config.id)
        current_domain.repository_for(MessagingConfig).add(messaging_config)

    @handle(DeactivateMessagingConfig)
    def deactivate_config(self, command):
        messaging_config = get_config(command.tenant_id, command.config_id)
        messaging_config.deactivate()
        current_domain.repository_for(MessagingConfig).add(messaging_config)

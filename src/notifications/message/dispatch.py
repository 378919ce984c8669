"""Messaging dispatch: send one message through a provider and log the attempt.

The log row is written as PENDING before the provider is called, so an
attempt is on record even if the process dies mid-call. The provider's
outcome (including a timeout or any exception it raises) then moves the
row to SENT or FAILED. Failed sends are not retried.
"""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from notifications.config.config import MessagingConfig
from notifications.config.management import active_config, get_config
from notifications.message.message_log import MessageLog
from notifications.provider.factory import ProviderFactory
from notifications.provider.port import ConnectionResult, SendResult
from notifications.template.management import get_template
from shared.errors import ProviderFailure

logger = structlog.get_logger(__name__)


class MessagingDispatch:
    def __init__(self, provider_factory: ProviderFactory):
        self.provider_factory = provider_factory

    def send(self, messaging_config: MessagingConfig, recipient, message, template_id=None) -> MessageLog:
        repo = current_domain.repository_for(MessageLog)

        log = MessageLog.begin(
            tenant_id=messaging_config.tenant_id,
            recipient=recipient,
            message=message,
            config_id=messaging_config.id,
            template_id=template_id,
        )
        repo.add(log)

        try:
            provider = self.provider_factory.create(messaging_config)
            result = provider.send(recipient, message)
        except ProviderFailure as exc:
            result = SendResult(success=False, provider_response=exc.provider_response, error_message=str(exc))
        except Exception as exc:
            result = SendResult(success=False, error_message=str(exc) or exc.__class__.__name__)

        if result.success:
            log.mark_sent(result.provider_response)
            logger.info(
                "Message sent",
                tenant_id=str(messaging_config.tenant_id),
                log_id=str(log.id),
                provider=messaging_config.provider,
                message_id=result.message_id,
            )
        else:
            log.mark_failed(result.error_message, result.provider_response)
            logger.error(
                "Message send failed",
                tenant_id=str(messaging_config.tenant_id),
                log_id=str(log.id),
                provider=messaging_config.provider,
                error=result.error_message,
            )

        repo.add(log)
        return log

    def _ready_config(self, tenant_id, provider=None) -> MessagingConfig:
        messaging_config = active_config(tenant_id, provider)
        if messaging_config is None:
            raise ValidationError({"config": [f"No active configuration for {provider or 'any provider'}"]})
        if not messaging_config.is_ready():
            raise ValidationError({"config": [f"Configuration for {messaging_config.provider} is incomplete"]})
        return messaging_config

    def send_message(self, tenant_id, recipient, message, provider=None) -> MessageLog:
        """Send free text through the tenant's active configuration."""
        if not (message or "").strip():
            raise ValidationError({"message": ["Message cannot be empty"]})
        return self.send(self._ready_config(tenant_id, provider), recipient, message)

    def send_with_template(self, tenant_id, template_id, recipient, variables, provider=None) -> MessageLog:
        template = get_template(tenant_id, template_id)

        check = template.validate_variables(variables)
        if not check.is_valid:
            raise ValidationError(
                {"variables": [f"Missing required variables: {', '.join(check.missing_variables)}"]}
            )

        messaging_config = self._ready_config(tenant_id, provider)
        return self.send(messaging_config, recipient, template.render(variables), template_id=template.id)

    def test_connection(self, tenant_id, config_id) -> ConnectionResult:
        messaging_config = get_config(tenant_id, config_id)
        if not messaging_config.validate_config():
            return ConnectionResult(
                success=False,
                message=f"Missing required configuration: {', '.join(messaging_config.missing_keys())}",
            )
        if not self.provider_factory.supports(messaging_config.provider):
            return ConnectionResult(success=False, message=f"Provider '{messaging_config.provider}' is not implemented")
        return self.provider_factory.create(messaging_config).test_connection()

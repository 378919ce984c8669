"""FastAPI routes for the Notifications domain.

Thin adapters that translate HTTP requests into domain commands and
queries. Sending goes through the `MessagingDispatch` stored on
`app.state`.
"""

import json

from fastapi import APIRouter, Depends, Request, Response
from protean.utils.globals import current_domain

from notifications.api.schemas import (
    ConfigResponse,
    ConnectionResponse,
    CreateConfigRequest,
    CreateTemplateRequest,
    MessageLogListResponse,
    MessageLogResponse,
    NotificationSettingsSchema,
    PreviewRequest,
    PreviewResponse,
    ProviderResponse,
    SendMessageRequest,
    TemplateResponse,
    UpdateConfigRequest,
    UpdateTemplateRequest,
)
from notifications.config.management import (
    ActivateMessagingConfig,
    CreateMessagingConfig,
    DeactivateMessagingConfig,
    DeleteMessagingConfig,
    UpdateMessagingConfig,
    available_providers,
    configs_for,
    get_config,
)
from notifications.message.dispatch import MessagingDispatch
from notifications.message.queries import get_log, list_logs
from notifications.settings.settings import UpdateNotificationSettings, settings_for
from notifications.template.management import (
    CreateMessageTemplate,
    DeleteMessageTemplate,
    UpdateMessageTemplate,
    get_template,
    list_templates,
)
from shared.errors import Validation
from shared.http import tenant_id

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _dispatch(request: Request) -> MessagingDispatch:
    return request.app.state.messaging_dispatch


def _template_response(template) -> TemplateResponse:
    return TemplateResponse(
        template_id=str(template.id),
        name=template.name,
        event=template.event,
        message=template.message,
        is_custom=bool(template.is_custom),
        required_variables=template.required_variables(),
    )


def _config_response(messaging_config) -> ConfigResponse:
    return ConfigResponse(
        config_id=str(messaging_config.id),
        provider=messaging_config.provider,
        provider_name=messaging_config.provider_name(),
        config=messaging_config.masked_config(),
        is_active=bool(messaging_config.is_active),
        is_ready=messaging_config.is_ready(),
    )


def _log_response(log) -> MessageLogResponse:
    return MessageLogResponse(
        log_id=str(log.id),
        config_id=str(log.config_id) if log.config_id else None,
        template_id=str(log.template_id) if log.template_id else None,
        recipient=log.recipient,
        message=log.message,
        status=log.status,
        provider_response=log.provider_response,
        error_message=log.error_message,
        sent_at=log.sent_at,
        delivered_at=log.delivered_at,
        delivery_time_ms=log.delivery_time_ms(),
        created_at=log.created_at,
    )


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------
@router.post("/templates", status_code=201, response_model=TemplateResponse)
async def create_template(body: CreateTemplateRequest, tenant: str = Depends(tenant_id)) -> TemplateResponse:
    command = CreateMessageTemplate(
        tenant_id=tenant,
        name=body.name,
        message=body.message,
        event=body.event,
        is_custom=body.is_custom,
    )
    template_id = current_domain.process(command, asynchronous=False)
    return _template_response(get_template(tenant, template_id))


@router.get("/templates", response_model=list[TemplateResponse])
async def get_templates(
    event: str | None = None,
    is_custom: bool | None = None,
    tenant: str = Depends(tenant_id),
) -> list[TemplateResponse]:
    return [_template_response(t) for t in list_templates(tenant, event=event, is_custom=is_custom)]


@router.get("/templates/{template_id}", response_model=TemplateResponse)
async def get_template_by_id(template_id: str, tenant: str = Depends(tenant_id)) -> TemplateResponse:
    return _template_response(get_template(tenant, template_id))


@router.put("/templates/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: str,
    body: UpdateTemplateRequest,
    tenant: str = Depends(tenant_id),
) -> TemplateResponse:
    command = UpdateMessageTemplate(
        tenant_id=tenant,
        template_id=template_id,
        name=body.name,
        message=body.message,
        event=body.event,
    )
    current_domain.process(command, asynchronous=False)
    return _template_response(get_template(tenant, template_id))


@router.delete("/templates/{template_id}", status_code=204)
async def delete_template(template_id: str, tenant: str = Depends(tenant_id)) -> Response:
    current_domain.process(DeleteMessageTemplate(tenant_id=tenant, template_id=template_id), asynchronous=False)
    return Response(status_code=204)


@router.post("/templates/{template_id}/preview", response_model=PreviewResponse)
async def preview_template(
    template_id: str,
    body: PreviewRequest,
    tenant: str = Depends(tenant_id),
) -> PreviewResponse:
    return PreviewResponse(**get_template(tenant, template_id).preview(body.variables))


# ---------------------------------------------------------------------------
# Messaging configs
# ---------------------------------------------------------------------------
@router.get("/providers", response_model=list[ProviderResponse])
async def get_providers() -> list[ProviderResponse]:
    return [ProviderResponse(**provider) for provider in available_providers()]


@router.post("/configs", status_code=201, response_model=ConfigResponse)
async def create_config(body: CreateConfigRequest, tenant: str = Depends(tenant_id)) -> ConfigResponse:
    command = CreateMessagingConfig(
        tenant_id=tenant,
        provider=body.provider,
        config=json.dumps(body.config),
        is_active=body.is_active,
    )
    config_id = current_domain.process(command, asynchronous=False)
    return _config_response(get_config(tenant, config_id))


@router.get("/configs", response_model=list[ConfigResponse])
async def get_configs(tenant: str = Depends(tenant_id)) -> list[ConfigResponse]:
    return [_config_response(c) for c in configs_for(tenant)]


@router.get("/configs/{config_id}", response_model=ConfigResponse)
async def get_config_by_id(config_id: str, tenant: str = Depends(tenant_id)) -> ConfigResponse:
    return _config_response(get_config(tenant, config_id))


@router.put("/configs/{config_id}", response_model=ConfigResponse)
async def update_config(
    config_id: str,
    body: UpdateConfigRequest,
    tenant: str = Depends(tenant_id),
) -> ConfigResponse:
    command = UpdateMessagingConfig(
        tenant_id=tenant,
        config_id=config_id,
        config=json.dumps(body.config) if body.config is not None else None,
        is_active=body.is_active,
    )
    current_domain.process(command, asynchronous=False)
    return _config_response(get_config(tenant, config_id))


@router.put("/configs/{config_id}/activate", response_model=ConfigResponse)
async def activate_config(config_id: str, tenant: str = Depends(tenant_id)) -> ConfigResponse:
    current_domain.process(ActivateMessagingConfig(tenant_id=tenant, config_id=config_id), asynchronous=False)
    return _config_response(get_config(tenant, config_id))


@router.put("/configs/{config_id}/deactivate", response_model=ConfigResponse)
async def deactivate_config(config_id: str, tenant: str = Depends(tenant_id)) -> ConfigResponse:
    current_domain.process(DeactivateMessagingConfig(tenant_id=tenant, config_id=config_id), asynchronous=False)
    return _config_response(get_config(tenant, config_id))


@router.delete("/configs/{config_id}", status_code=204)
async def delete_config(config_id: str, tenant: str = Depends(tenant_id)) -> Response:
    current_domain.process(DeleteMessagingConfig(tenant_id=tenant, config_id=config_id), asynchronous=False)
    return Response(status_code=204)


@router.post("/configs/{config_id}/test", response_model=ConnectionResponse)
def test_config(
    config_id: str,
    tenant: str = Depends(tenant_id),
    dispatch: MessagingDispatch = Depends(_dispatch),
) -> ConnectionResponse:
    result = dispatch.test_connection(tenant, config_id)
    return ConnectionResponse(success=result.success, message=result.message)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
@router.get("/settings", response_model=NotificationSettingsSchema)
async def get_notification_settings(tenant: str = Depends(tenant_id)) -> NotificationSettingsSchema:
    settings = settings_for(tenant)
    if settings is None:
        return NotificationSettingsSchema(
            enable_order_created=False,
            enable_order_updated=False,
            enable_order_paid=False,
            enable_order_completed=False,
            enable_order_cancelled=False,
        )

    values = settings.to_dict()
    return NotificationSettingsSchema(
        **{
            name: (str(value) if name.endswith("_template_id") and value else value)
            for name, value in values.items()
            if name in NotificationSettingsSchema.model_fields
        }
    )


@router.put("/settings", response_model=NotificationSettingsSchema)
async def update_notification_settings(body: NotificationSettingsSchema, tenant: str = Depends(tenant_id)) -> NotificationSettingsSchema:
    command = UpdateNotificationSettings(tenant_id=tenant, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return await get_notification_settings(tenant)


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------
@router.post("/messages", status_code=201, response_model=MessageLogResponse)
def send_message(
    body: SendMessageRequest,
    tenant: str = Depends(tenant_id),
    dispatch: MessagingDispatch = Depends(_dispatch),
) -> MessageLogResponse:
    if body.template_id:
        log = dispatch.send_with_template(tenant, body.template_id, body.recipient, body.variables, provider=body.provider)
    elif body.message:
        log = dispatch.send_message(tenant, body.recipient, body.message, provider=body.provider)
    else:
        raise Validation({"message": ["Either a message or a template is required"]})
    return _log_response(log)


@router.get("/messages", response_model=MessageLogListResponse)
async def get_messages(
    status: str | None = None,
    recipient: str | None = None,
    config_id: str | None = None,
    template_id: str | None = None,
    page: int = 1,
    page_size: int = 10,
    tenant: str = Depends(tenant_id),
) -> MessageLogListResponse:
    result = list_logs(
        tenant,
        status=status,
        recipient=recipient,
        config_id=config_id,
        template_id=template_id,
        page=max(page, 1),
        page_size=max(page_size, 1),
    )
    return MessageLogListResponse(
        items=[_log_response(log) for log in result["items"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
    )


@router.get("/messages/{log_id}", response_model=MessageLogResponse)
async def get_message(log_id: str, tenant: str = Depends(tenant_id)) -> MessageLogResponse:
    return _log_response(get_log(tenant, log_id))

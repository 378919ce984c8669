"""Pydantic request/response schemas for the Notifications API."""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------
class CreateTemplateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    message: str = Field(min_length=1)
    event: str | None = None
    is_custom: bool = True

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Order paid",
                    "event": "ORDER_PAID",
                    "message": "Hi {{customerName}}, we received {{grandTotal}} for order {{orderNumber}}.",
                }
            ]
        }
    }


class UpdateTemplateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=150)
    message: str | None = Field(default=None, min_length=1)
    event: str | None = None


class PreviewRequest(BaseModel):
    variables: dict[str, str] = Field(default_factory=dict)


class PreviewResponse(BaseModel):
    success: bool
    rendered_message: str | None = None
    missing_variables: list[str] | None = None


class TemplateResponse(BaseModel):
    template_id: str
    name: str
    event: str | None = None
    message: str
    is_custom: bool
    required_variables: list[str]


# ---------------------------------------------------------------------------
# Messaging configs
# ---------------------------------------------------------------------------
class CreateConfigRequest(BaseModel):
    provider: str
    config: dict[str, str] = Field(default_factory=dict)
    is_active: bool = False


class UpdateConfigRequest(BaseModel):
    config: dict[str, str] | None = None
    is_active: bool | None = None


class ConfigResponse(BaseModel):
    config_id: str
    provider: str
    provider_name: str
    config: dict
    is_active: bool
    is_ready: bool


class ProviderResponse(BaseModel):
    provider: str
    name: str
    required_keys: list[str]


class ConnectionResponse(BaseModel):
    success: bool
    message: str


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
class NotificationSettingsSchema(BaseModel):
    enable_order_created: bool | None = None
    enable_order_updated: bool | None = None
    enable_order_paid: bool | None = None
    enable_order_completed: bool | None = None
    enable_order_cancelled: bool | None = None
    order_created_template_id: str | None = None
    order_updated_template_id: str | None = None
    order_paid_template_id: str | None = None
    order_completed_template_id: str | None = None
    order_cancelled_template_id: str | None = None


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------
class SendMessageRequest(BaseModel):
    recipient: str = Field(min_length=1)
    message: str | None = None
    template_id: str | None = None
    variables: dict[str, str] = Field(default_factory=dict)
    provider: str | None = None


class MessageLogResponse(BaseModel):
    log_id: str
    config_id: str | None = None
    template_id: str | None = None
    recipient: str
    message: str
    status: str
    provider_response: str | None = None
    error_message: str | None = None
    sent_at: datetime | None = None
    delivered_at: datetime | None = None
    delivery_time_ms: int | None = None
    created_at: datetime | None = None


class MessageLogListResponse(BaseModel):
    items: list[MessageLogResponse]
    total: int
    page: int
    page_size: int

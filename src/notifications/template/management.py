"""Message template management: commands, handlers and queries."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from notifications.domain import notifications
from notifications.template.template import MessageTemplate


@notifications.command(part_of="MessageTemplate")
class CreateMessageTemplate:
    tenant_id = Identifier(required=True)
    name = String(required=True, max_length=150)
    message = Text(required=True)
    event = String(max_length=50)
    is_custom = Boolean(default=True)


@notifications.command(part_of="MessageTemplate")
class UpdateMessageTemplate:
    tenant_id = Identifier(required=True)
    template_id = Identifier(required=True)
    name = String(max_length=150)
    message = Text()
    event = String(max_length=50)


@notifications.command(part_of="MessageTemplate")
class DeleteMessageTemplate:
    tenant_id = Identifier(required=True)
    template_id = Identifier(required=True)


def get_template(tenant_id, template_id) -> MessageTemplate:
    template = current_domain.repository_for(MessageTemplate).get(template_id)
    if str(template.tenant_id) != str(tenant_id):
        raise ObjectNotFoundError(f"Template `{template_id}` does not exist")
    return template


def list_templates(tenant_id, event=None, is_custom=None) -> list[MessageTemplate]:
    criteria = {"tenant_id": str(tenant_id)}
    if event:
        criteria["event"] = event
    templates = current_domain.repository_for(MessageTemplate)._dao.query.filter(**criteria).all().items
    if is_custom is not None:
        templates = [t for t in templates if bool(t.is_custom) == bool(is_custom)]
    return sorted(templates, key=lambda t: t.created_at)


def default_template_for(tenant_id, event) -> MessageTemplate | None:
    """The tenant's system template for an event, if it has one."""
    templates = list_templates(tenant_id, event=event, is_custom=False)
    return templates[0] if templates else None


@notifications.command_handler(part_of=MessageTemplate)
class ManageMessageTemplateHandler:
    @handle(CreateMessageTemplate)
    def create_template(self, command):
        template = MessageTemplate.create(
            tenant_id=command.tenant_id,
            name=command.name,
            message=command.message,
            event=command.event,
            is_custom=command.is_custom,
        )
        current_domain.repository_for(MessageTemplate).add(template)
        return str(template.id)

    @handle(UpdateMessageTemplate)
    def update_template(self, command):
        template = get_template(command.tenant_id, command.template_id)
        template.edit(name=command.name, message=command.message, event=command.event)
        current_domain.repository_for(MessageTemplate).add(template)
        return str(template.id)

    @handle(DeleteMessageTemplate)
    def delete_template(self, command):
        template = get_template(command.tenant_id, command.template_id)
        if not template.is_editable():
            raise ValidationError({"template": ["Cannot delete system template"]})
        current_domain.repository_for(MessageTemplate)._dao.delete(template)

"""Read-side helpers for message logs."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from notifications.message.message_log import MessageLog


def get_log(tenant_id, log_id) -> MessageLog:
    log = current_domain.repository_for(MessageLog).get(log_id)
    if str(log.tenant_id) != str(tenant_id):
        raise ObjectNotFoundError(f"Message log `{log_id}` does not exist")
    return log


def list_logs(tenant_id, status=None, recipient=None, config_id=None, template_id=None, page=1, page_size=10) -> dict:
    """One page of a tenant's message logs, newest first."""
    criteria = {"tenant_id": str(tenant_id)}
    if status:
        criteria["status"] = status
    if recipient:
        criteria["recipient"] = recipient
    if config_id:
        criteria["config_id"] = str(config_id)
    if template_id:
        criteria["template_id"] = str(template_id)

    result = (
        current_domain.repository_for(MessageLog)
        ._dao.query.filter(**criteria)
        .order_by("-created_at")
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": result.items, "total": result.total, "page": page, "page_size": page_size}

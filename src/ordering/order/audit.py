"""Order audit trail: one OrderLog entry per recorded status change."""

from datetime import UTC, datetime

from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering


@ordering.aggregate
class OrderLog:
    tenant_id: Identifier(required=True)
    order_id: Identifier(required=True)
    status: String(required=True, max_length=100)
    note: Text()
    created_at: DateTime()


@ordering.command(part_of="OrderLog")
class RecordOrderLog:
    tenant_id = Identifier(required=True)
    order_id = Identifier(required=True)
    status = String(required=True, max_length=100)
    note = Text()


@ordering.command_handler(part_of=OrderLog)
class OrderLogHandler:
    @handle(RecordOrderLog)
    def record(self, command):
        entry = OrderLog(
            tenant_id=command.tenant_id,
            order_id=command.order_id,
            status=command.status,
            note=command.note,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(OrderLog).add(entry)
        return str(entry.id)


def logs_for(tenant_id, order_id) -> list[OrderLog]:
    repo = current_domain.repository_for(OrderLog)
    entries = repo._dao.query.filter(tenant_id=str(tenant_id), order_id=str(order_id)).all().items
    return sorted(entries, key=lambda e: e.created_at)

"""Order status catalog: commands, handlers, queries and the per-tenant service.

Every mutation re-sequences the tenant's whole catalog to 1..N. Two
re-sequencing passes for the same tenant must never interleave, so
`StatusCatalog` runs each command while holding that tenant's lock.
"""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.status.status import OrderStatus
from shared.locks import KeyedLocks


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@ordering.command(part_of="OrderStatus")
class CreateOrderStatus:
    tenant_id: Identifier(required=True)
    code: String(required=True, max_length=50)
    name: String(required=True, max_length=100)
    description: String(max_length=255)
    display_order: Integer(min_value=1)  # Appended at the end when omitted
    is_final: Boolean(default=False)
    is_active: Boolean(default=True)


@ordering.command(part_of="OrderStatus")
class UpdateOrderStatus:
    tenant_id: Identifier(required=True)
    status_id: Identifier(required=True)
    code: String(max_length=50)
    name: String(max_length=100)
    description: String(max_length=255)
    display_order: Integer(min_value=1)
    is_final: Boolean()
    is_active: Boolean()


@ordering.command(part_of="OrderStatus")
class DeleteOrderStatus:
    tenant_id: Identifier(required=True)
    status_id: Identifier(required=True)


@ordering.command(part_of="OrderStatus")
class ReorderOrderStatuses:
    tenant_id: Identifier(required=True)
    positions: Text(required=True)  # JSON: [{"id": ..., "order": ...}, ...]


# ---------------------------------------------------------------------------
# Catalog rules
# ---------------------------------------------------------------------------
def _assert_unique(statuses, code=None, name=None, exclude_id=None):
    for status in statuses:
        if exclude_id is not None and str(status.id) == str(exclude_id):
            continue
        if code is not None and status.code == code.strip():
            raise ValidationError({"code": [f"Status code '{code.strip()}' already exists"]})
        if name is not None and status.name.lower() == name.strip().lower():
            raise ValidationError({"name": [f"Status name '{name.strip()}' already exists"]})


def _assert_single_final(statuses, exclude_id=None):
    for status in statuses:
        if exclude_id is not None and str(status.id) == str(exclude_id):
            continue
        if status.is_final:
            raise ValidationError({"is_final": [f"Status '{status.code}' is already the final status"]})


def _resequence(statuses, moved_id=None, moved_up=True):
    """Reassign display_order 1..N following the current order.

    A status that was just placed at an occupied position wins the tie
    against the status already there when it moved up (or is new), and
    yields to it when it moved down.
    """

    def sort_key(status):
        tie = 0
        if moved_id is not None and str(status.id) == str(moved_id):
            tie = -1 if moved_up else 1
        return (status.display_order, tie)

    ordered = sorted(statuses, key=sort_key)
    for position, status in enumerate(ordered, start=1):
        status.display_order = position
    return ordered


def _load(repo, tenant_id, status_id) -> OrderStatus:
    status = repo.get(status_id)
    if str(status.tenant_id) != str(tenant_id):
        raise ObjectNotFoundError(f"Order status `{status_id}` does not exist")
    return status


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def statuses_for(tenant_id) -> list[OrderStatus]:
    """All statuses of a tenant, sorted by display order."""
    repo = current_domain.repository_for(OrderStatus)
    statuses = repo._dao.query.filter(tenant_id=str(tenant_id)).all().items
    return sorted(statuses, key=lambda s: s.display_order)


def find_by_code(tenant_id, code) -> OrderStatus | None:
    if not code:
        return None
    repo = current_domain.repository_for(OrderStatus)
    matches = repo._dao.query.filter(tenant_id=str(tenant_id), code=code).all().items
    return matches[0] if matches else None


def find_all(tenant_id, is_active=None, search=None, page=1, page_size=50) -> dict:
    statuses = statuses_for(tenant_id)
    if is_active is not None:
        statuses = [s for s in statuses if bool(s.is_active) == bool(is_active)]
    if search:
        needle = search.lower()
        statuses = [s for s in statuses if needle in s.code.lower() or needle in s.name.lower()]

    start = (page - 1) * page_size
    return {
        "items": statuses[start : start + page_size],
        "total": len(statuses),
        "page": page,
        "page_size": page_size,
    }


def default_statuses(tenant_id) -> list[OrderStatus]:
    """Active statuses in display order, the ones a cashier can pick from."""
    return [s for s in statuses_for(tenant_id) if s.is_active]


def final_status(tenant_id) -> OrderStatus | None:
    return next((s for s in statuses_for(tenant_id) if s.is_final), None)


# ---------------------------------------------------------------------------
# Command Handler
# ---------------------------------------------------------------------------
@ordering.command_handler(part_of=OrderStatus)
class ManageOrderStatusHandler:
    @handle(CreateOrderStatus)
    def create_status(self, command):
        repo = current_domain.repository_for(OrderStatus)
        existing = statuses_for(command.tenant_id)

        _assert_unique(existing, code=command.code, name=command.name)
        if command.is_final:
            _assert_single_final(existing)

        next_order = max((s.display_order for s in existing), default=0) + 1
        status = OrderStatus.define(
            tenant_id=command.tenant_id,
            code=command.code,
            name=command.name,
            description=command.description,
            display_order=command.display_order or next_order,
            is_final=command.is_final,
            is_active=command.is_active,
        )

        for entry in _resequence(existing + [status], moved_id=status.id):
            repo.add(entry)

        return str(status.id)

    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(OrderStatus)
        status = _load(repo, command.tenant_id, command.status_id)
        others = [s for s in statuses_for(command.tenant_id) if str(s.id) != str(status.id)]

        _assert_unique(others, code=command.code, name=command.name)
        if command.is_final:
            _assert_single_final(others)

        status.redefine(
            code=command.code,
            name=command.name,
            description=command.description,
            is_final=command.is_final,
            is_active=command.is_active,
        )

        if command.display_order is not None and command.display_order != status.display_order:
            moved_up = command.display_order < status.display_order
            status.move_to(command.display_order)
            for entry in _resequence(others + [status], moved_id=status.id, moved_up=moved_up):
                repo.add(entry)
        else:
            repo.add(status)

        return str(status.id)

    @handle(DeleteOrderStatus)
    def delete_status(self, command):
        repo = current_domain.repository_for(OrderStatus)
        status = _load(repo, command.tenant_id, command.status_id)

        if not status.can_delete():
            raise ValidationError({"status": ["Cannot delete a final status"]})

        remaining = [s for s in statuses_for(command.tenant_id) if str(s.id) != str(status.id)]
        repo._dao.delete(status)

        for entry in _resequence(remaining):
            repo.add(entry)

    @handle(ReorderOrderStatuses)
    def reorder_statuses(self, command):
        positions = json.loads(command.positions) if command.positions else []
        if not positions:
            raise ValidationError({"positions": ["At least one status position is required"]})

        repo = current_domain.repository_for(OrderStatus)
        statuses = statuses_for(command.tenant_id)
        by_id = {str(s.id): s for s in statuses}

        # Ties keep the previous relative order
        previous_rank = {str(s.id): index for index, s in enumerate(statuses)}
        for position in positions:
            status = by_id.get(str(position.get("id")))
            if status is None:
                raise ObjectNotFoundError(f"Order status `{position.get('id')}` does not exist")
            status.move_to(int(position.get("order", 0)))

        ordered = sorted(statuses, key=lambda s: (s.display_order, previous_rank[str(s.id)]))
        for index, status in enumerate(ordered, start=1):
            status.display_order = index
            repo.add(status)


# ---------------------------------------------------------------------------
# Per-tenant serialized access
# ---------------------------------------------------------------------------
class StatusCatalog:
    """Entry point for catalog mutations and lookups.

    Mutations for one tenant are serialized through `locks`. Pass the same
    `KeyedLocks` to every catalog instance that can touch the same tenants.
    """

    def __init__(self, locks: KeyedLocks | None = None):
        self._locks = locks or KeyedLocks()

    def _process(self, tenant_id, command):
        with self._locks.hold(f"status-catalog:{tenant_id}"):
            return current_domain.process(command, asynchronous=False)

    def create(self, tenant_id, code, name, description=None, display_order=None, is_final=False, is_active=True):
        status_id = self._process(
            tenant_id,
            CreateOrderStatus(
                tenant_id=tenant_id,
                code=code,
                name=name,
                description=description,
                display_order=display_order,
                is_final=is_final,
                is_active=is_active,
            ),
        )
        return current_domain.repository_for(OrderStatus).get(status_id)

    def update(self, tenant_id, status_id, **changes):
        self._process(tenant_id, UpdateOrderStatus(tenant_id=tenant_id, status_id=status_id, **changes))
        return current_domain.repository_for(OrderStatus).get(status_id)

    def delete(self, tenant_id, status_id):
        self._process(tenant_id, DeleteOrderStatus(tenant_id=tenant_id, status_id=status_id))

    def reorder(self, tenant_id, positions):
        self._process(
            tenant_id,
            ReorderOrderStatuses(tenant_id=tenant_id, positions=json.dumps(positions)),
        )
        return statuses_for(tenant_id)

    def get(self, tenant_id, status_id) -> OrderStatus:
        return _load(current_domain.repository_for(OrderStatus), tenant_id, status_id)

    def find_by_code(self, tenant_id, code):
        return find_by_code(tenant_id, code)

    def find_all(self, tenant_id, is_active=None, search=None, page=1, page_size=50):
        return find_all(tenant_id, is_active=is_active, search=search, page=page, page_size=page_size)

    def default_statuses(self, tenant_id):
        return default_statuses(tenant_id)

    def final_status(self, tenant_id):
        return final_status(tenant_id)

    def resolve(self, tenant_id, code) -> OrderStatus:
        """Resolve a status code for an order write, rejecting codes absent from the catalog."""
        if not code or not str(code).strip():
            raise ValidationError({"order_status": ["Status code is required"]})
        status = find_by_code(tenant_id, str(code).strip())
        if status is None:
            raise ValidationError({"order_status": [f"Unknown order status '{code}'"]})
        return status

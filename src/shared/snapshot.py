"""Order state handed from the ordering context to the notifications context.

The ordering context resolves everything a notification needs (status
semantics from the tenant's catalog, customer contact details) at the time
of the change, so the notifications side never reads ordering storage.
"""

from dataclasses import dataclass

_COMPLETED_MARKERS = {"completed"}
_CANCELLED_MARKERS = {"cancelled", "canceled"}


@dataclass(frozen=True)
class OrderSnapshot:
    order_id: str
    tenant_id: str
    order_no: str
    status_code: str
    status_name: str
    status_is_final: bool
    payment_status: str
    grand_total: float
    customer_id: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None

    def is_completed(self) -> bool:
        if self.status_is_final:
            return True
        return bool(_COMPLETED_MARKERS & self._status_markers())

    def is_cancelled(self) -> bool:
        return bool(_CANCELLED_MARKERS & self._status_markers())

    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    def _status_markers(self) -> set[str]:
        return {(self.status_code or "").strip().lower(), (self.status_name or "").strip().lower()}

"""Order aggregate (CQRS): a point-of-sale transaction with line items.

Amounts are entered by the cashier; the aggregate only derives the
remaining balance and the change owed:

    remaining_balance = max(grand_total - paid_amount, 0)
    change_amount     = max(paid_amount - grand_total, 0)

`order_status` holds a code from the tenant's order status catalog. The
command handlers check it against the live catalog before every write.
Revisions replace the item list wholesale rather than patching items.
"""

import string
import time
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering.domain import ordering
from ordering.order.events import OrderPaid, OrderPlaced, OrderRevised, OrderStatusChanged


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentStatus(Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    PARTIAL = "partial"


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    POINT = "point"


class DiscountRewardType(Enum):
    CASH = "cash"
    POINT = "point"


_BASE36_DIGITS = string.digits + string.ascii_lowercase


def generate_order_no(now_ms: int | None = None) -> str:
    """Human-readable order number: "0" followed by the epoch milliseconds in base 36."""
    value = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    digits = ""
    while value:
        value, remainder = divmod(value, 36)
        digits = _BASE36_DIGITS[remainder] + digits
    return "0" + (digits or "0")


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Discount:
    """The discount applied at checkout, frozen as it was at that moment."""

    discount_id = Identifier()
    name = String(max_length=150)
    discount_type = String(choices=DiscountType)
    reward_type = String(choices=DiscountRewardType)
    value = Float(min_value=0.0)
    amount = Float(min_value=0.0)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_price = Float(required=True, min_value=0.0)
    qty = Integer(required=True, min_value=1)

    @property
    def line_total(self):
        return self.product_price * self.qty


def _build_items(items) -> list[OrderItem]:
    if not items:
        raise ValidationError({"items": ["Order must have at least one item"]})
    return [
        OrderItem(
            product_id=item["product_id"],
            product_name=item["product_name"],
            product_price=item["product_price"],
            qty=item["qty"],
        )
        for item in items
    ]


def _build_discount(discount) -> Discount | None:
    if not discount or not any(v is not None for v in discount.values()):
        return None
    if discount.get("discount_type") == DiscountType.PERCENTAGE.value and (discount.get("value") or 0) > 100:
        raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})
    return Discount(
        discount_id=discount.get("discount_id"),
        name=discount.get("name"),
        discount_type=discount.get("discount_type"),
        reward_type=discount.get("reward_type"),
        value=discount.get("value"),
        amount=discount.get("amount"),
    )


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    tenant_id = Identifier(required=True)
    order_no = String(required=True, max_length=20)
    staff_id = Identifier(required=True)
    customer_id = Identifier()

    items = HasMany(OrderItem)

    # Amounts
    subtotal = Float(required=True, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(required=True, min_value=0.0)
    grand_total = Float(required=True, min_value=0.0)
    paid_amount = Float(default=0.0, min_value=0.0)
    remaining_balance = Float(default=0.0)
    change_amount = Float(default=0.0)

    # Payment
    payment_method = String(max_length=50)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.UNPAID.value)
    payment_date = DateTime()

    # Status catalog code
    order_status = String(required=True, max_length=50)

    # Discount and loyalty points
    discount = ValueObject(Discount)
    point_used = Integer(default=0, min_value=0)
    last_points_accumulation = Integer()

    note = Text()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["Order must have at least one item"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        tenant_id,
        staff_id,
        order_status,
        items,
        subtotal,
        total_amount,
        grand_total,
        paid_amount=0.0,
        tax_amount=0.0,
        payment_status=PaymentStatus.UNPAID.value,
        payment_method=None,
        customer_id=None,
        discount=None,
        point_used=0,
        note=None,
        points_snapshot=None,
    ):
        """Record a new order.

        `points_snapshot` is the customer's balance at the time of payment;
        it is kept only when the order is placed already paid.
        """
        now = datetime.now(UTC)
        is_paid = payment_status == PaymentStatus.PAID.value

        order = cls(
            tenant_id=tenant_id,
            order_no=generate_order_no(),
            staff_id=staff_id,
            customer_id=customer_id,
            items=_build_items(items),
            subtotal=subtotal,
            tax_amount=tax_amount or 0.0,
            total_amount=total_amount,
            grand_total=grand_total,
            paid_amount=paid_amount or 0.0,
            payment_method=payment_method,
            payment_status=payment_status,
            payment_date=now if is_paid else None,
            order_status=order_status,
            discount=_build_discount(discount),
            point_used=point_used or 0,
            last_points_accumulation=points_snapshot if is_paid and customer_id else None,
            note=note,
            created_at=now,
            updated_at=now,
        )
        order._recompute_balances()

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                tenant_id=str(tenant_id),
                order_no=order.order_no,
                customer_id=str(customer_id) if customer_id else None,
                staff_id=str(staff_id),
                order_status=order_status,
                payment_status=payment_status,
                grand_total=grand_total,
                item_count=len(order.items),
                placed_at=now,
            )
        )
        if is_paid:
            order.raise_(
                OrderPaid(
                    order_id=str(order.id),
                    tenant_id=str(tenant_id),
                    paid_amount=order.paid_amount,
                    payment_method=payment_method,
                    paid_at=now,
                )
            )
        return order

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def revise(
        self,
        staff_id,
        order_status,
        items,
        subtotal,
        total_amount,
        grand_total,
        paid_amount=0.0,
        tax_amount=0.0,
        payment_status=PaymentStatus.UNPAID.value,
        payment_method=None,
        customer_id=None,
        discount=None,
        point_used=0,
        note=None,
        points_snapshot=None,
    ):
        """Overwrite the order with a full new version of its contents."""
        now = datetime.now(UTC)
        new_items = _build_items(items)
        becomes_paid = (
            payment_status == PaymentStatus.PAID.value and self.payment_status != PaymentStatus.PAID.value
        )

        with atomic_change(self):
            for item in list(self.items):
                self.remove_items(item)
            for item in new_items:
                self.add_items(item)

            self.staff_id = staff_id
            self.customer_id = customer_id
            self.subtotal = subtotal
            self.tax_amount = tax_amount or 0.0
            self.total_amount = total_amount
            self.grand_total = grand_total
            self.paid_amount = paid_amount or 0.0
            self.payment_method = payment_method
            self.payment_status = payment_status
            self.order_status = order_status
            self.discount = _build_discount(discount)
            self.point_used = point_used or 0
            self.note = note
            self.updated_at = now
            self._recompute_balances()

            if becomes_paid:
                if self.payment_date is None:
                    self.payment_date = now
                if customer_id:
                    self.last_points_accumulation = points_snapshot

        self.raise_(
            OrderRevised(
                order_id=str(self.id),
                tenant_id=str(self.tenant_id),
                order_status=order_status,
                payment_status=payment_status,
                grand_total=grand_total,
                item_count=len(new_items),
                revised_at=now,
            )
        )
        if becomes_paid:
            self.raise_(
                OrderPaid(
                    order_id=str(self.id),
                    tenant_id=str(self.tenant_id),
                    paid_amount=self.paid_amount,
                    payment_method=payment_method,
                    paid_at=now,
                )
            )

    def change_status(self, status_code):
        """Move the order to another catalog status. Nothing else changes."""
        previous = self.order_status
        now = datetime.now(UTC)
        self.order_status = status_code
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                tenant_id=str(self.tenant_id),
                previous_status=previous,
                new_status=status_code,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    def _recompute_balances(self):
        grand_total = self.grand_total or 0.0
        paid = self.paid_amount or 0.0
        self.remaining_balance = max(grand_total - paid, 0.0)
        self.change_amount = max(paid - grand_total, 0.0)

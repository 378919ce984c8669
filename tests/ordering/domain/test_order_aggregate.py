"""Tests for the Order aggregate: placement, revision, status changes."""

import pytest
from ordering.order.events import OrderPaid, OrderPlaced, OrderRevised, OrderStatusChanged
from ordering.order.order import Order, PaymentStatus, generate_order_no
from protean.exceptions import ValidationError


def _items(*prices):
    return [
        {"product_id": f"prod-{i}", "product_name": f"Product {i}", "product_price": price, "qty": 1}
        for i, price in enumerate(prices or (50000.0,))
    ]


def _place(**overrides):
    defaults = {
        "tenant_id": "tenant-1",
        "staff_id": "staff-1",
        "order_status": "pending",
        "items": _items(),
        "subtotal": 50000.0,
        "total_amount": 50000.0,
        "grand_total": 50000.0,
    }
    defaults.update(overrides)
    return Order.place(**defaults)


class TestOrderNumber:
    def test_zero(self):
        assert generate_order_no(0) == "00"

    def test_base36_encoding(self):
        assert generate_order_no(35) == "0z"
        assert generate_order_no(36) == "010"

    def test_round_trips_epoch_millis(self):
        order_no = generate_order_no(1_700_000_000_000)
        assert order_no.startswith("0")
        assert int(order_no[1:], 36) == 1_700_000_000_000

    def test_generated_from_clock(self):
        order_no = generate_order_no()
        assert order_no.startswith("0")
        assert len(order_no) > 1


class TestOrderPlacement:
    def test_place_sets_fields(self):
        order = _place(customer_id="cust-1", note="no sugar")
        assert order.tenant_id == "tenant-1"
        assert order.order_status == "pending"
        assert order.payment_status == PaymentStatus.UNPAID.value
        assert order.note == "no sugar"
        assert order.order_no.startswith("0")
        assert order.created_at is not None

    def test_items_are_built(self):
        order = _place(items=_items(10000.0, 20000.0))
        assert len(order.items) == 2
        assert sum(item.line_total for item in order.items) == 30000.0

    def test_order_requires_items(self):
        with pytest.raises(ValidationError) as exc:
            _place(items=[])
        assert "items" in exc.value.messages

    def test_remaining_balance_for_partial_payment(self):
        order = _place(paid_amount=20000.0, payment_status="partial")
        assert order.remaining_balance == 30000.0
        assert order.change_amount == 0.0

    def test_change_for_overpayment(self):
        order = _place(paid_amount=60000.0, payment_status="paid")
        assert order.remaining_balance == 0.0
        assert order.change_amount == 10000.0

    def test_unpaid_order_has_no_payment_date(self):
        order = _place()
        assert order.payment_date is None
        assert order.last_points_accumulation is None

    def test_paid_order_records_payment_date_and_points_snapshot(self):
        order = _place(payment_status="paid", paid_amount=50000.0, customer_id="cust-1", points_snapshot=120)
        assert order.payment_date is not None
        assert order.last_points_accumulation == 120

    def test_points_snapshot_ignored_without_customer(self):
        order = _place(payment_status="paid", paid_amount=50000.0, points_snapshot=120)
        assert order.last_points_accumulation is None

    def test_discount_is_kept(self):
        order = _place(discount={"name": "Member", "discount_type": "fixed", "reward_type": "point", "amount": 10.0})
        assert order.discount.name == "Member"
        assert order.discount.reward_type == "point"
        assert order.discount.amount == 10.0

    def test_empty_discount_is_dropped(self):
        order = _place(discount={"name": None, "amount": None})
        assert order.discount is None

    def test_percentage_discount_over_100_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _place(discount={"discount_type": "percentage", "value": 120.0})
        assert "discount_value" in exc.value.messages

    def test_percentage_discount_of_100_allowed(self):
        order = _place(discount={"discount_type": "percentage", "value": 100.0})
        assert order.discount.value == 100.0

    def test_unknown_payment_status_rejected(self):
        with pytest.raises(ValidationError):
            _place(payment_status="refunded")

    def test_placed_event_raised(self):
        order = _place()
        placed = [e for e in order._events if isinstance(e, OrderPlaced)]
        assert len(placed) == 1
        assert placed[0].order_no == order.order_no
        assert placed[0].item_count == 1
        assert not [e for e in order._events if isinstance(e, OrderPaid)]

    def test_paid_event_raised_for_paid_order(self):
        order = _place(payment_status="paid", paid_amount=50000.0)
        assert len([e for e in order._events if isinstance(e, OrderPaid)]) == 1


class TestOrderRevision:
    def _revise(self, order, **overrides):
        defaults = {
            "staff_id": "staff-2",
            "order_status": "processing",
            "items": _items(30000.0, 20000.0),
            "subtotal": 50000.0,
            "total_amount": 50000.0,
            "grand_total": 50000.0,
        }
        defaults.update(overrides)
        order.revise(**defaults)
        return order

    def test_revise_replaces_items(self):
        order = self._revise(_place())
        assert len(order.items) == 2
        assert {item.product_price for item in order.items} == {30000.0, 20000.0}

    def test_revise_overwrites_scalars(self):
        order = self._revise(_place(note="old"), note=None)
        assert order.staff_id == "staff-2"
        assert order.order_status == "processing"
        assert order.note is None

    def test_revise_requires_items(self):
        order = _place()
        with pytest.raises(ValidationError):
            self._revise(order, items=[])

    def test_becoming_paid_sets_payment_date_once(self):
        order = self._revise(_place(), payment_status="paid", paid_amount=50000.0, customer_id="c", points_snapshot=7)
        first_payment = order.payment_date
        assert first_payment is not None
        assert order.last_points_accumulation == 7

        self._revise(order, payment_status="paid", paid_amount=50000.0, customer_id="c", points_snapshot=99)
        assert order.payment_date == first_payment
        assert order.last_points_accumulation == 7

    def test_revised_and_paid_events(self):
        order = self._revise(_place(), payment_status="paid", paid_amount=50000.0)
        assert [e for e in order._events if isinstance(e, OrderRevised)]
        assert [e for e in order._events if isinstance(e, OrderPaid)]

    def test_balances_recomputed(self):
        order = self._revise(_place(), paid_amount=10000.0, payment_status="partial")
        assert order.remaining_balance == 40000.0


class TestStatusChange:
    def test_change_status_touches_only_status(self):
        order = _place(note="keep me", paid_amount=1000.0)
        before = order.to_dict()

        order.change_status("completed")

        after = order.to_dict()
        assert after["order_status"] == "completed"
        changed = {k for k in after if after[k] != before[k]}
        assert "order_status" in changed
        assert changed <= {"order_status", "updated_at"}

    def test_status_changed_event(self):
        order = _place()
        order.change_status("completed")
        event = next(e for e in order._events if isinstance(e, OrderStatusChanged))
        assert event.previous_status == "pending"
        assert event.new_status == "completed"

    def test_is_paid(self):
        assert _place(payment_status="paid").is_paid
        assert not _place().is_paid

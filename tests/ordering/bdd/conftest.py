"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from ordering.customer.customer import Customer
from ordering.customer.ledger import LoyaltyLedger
from ordering.customer.registration import RegisterCustomer
from ordering.order.lifecycle import OrderLifecycle
from ordering.order.order import Order
from ordering.status.catalog import StatusCatalog
from ordering.subscription.quota import QuotaGuard
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then, when
from shared.background import BackgroundDispatcher
from shared.errors import OrderStatusError, QuotaExceeded
from shared.locks import KeyedLocks


def _order_data(customer_id=None, payment_status="unpaid", point_used=0, reward=0, note=None):
    data = {
        "staff_id": "staff-001",
        "customer_id": customer_id,
        "items": [{"product_id": "prod-001", "product_name": "Es Teh Manis", "product_price": 8000.0, "qty": 3}],
        "subtotal": 24000.0,
        "total_amount": 24000.0,
        "grand_total": 24000.0,
        "order_status": "pending",
        "payment_status": payment_status,
        "point_used": point_used,
        "note": note,
    }
    if payment_status == "paid":
        data["paid_amount"] = 24000.0
    if reward:
        data["discount"] = {"name": "Member reward", "discount_type": "fixed", "reward_type": "point", "amount": float(reward)}
    return data


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for the error a When step ran into."""
    return {"exc": None}


@pytest.fixture()
def order_payload():
    """Builds the request payload of a small order."""
    return _order_data


@pytest.fixture()
def customer_id():
    return None


@pytest.fixture()
def locks():
    return KeyedLocks()


@pytest.fixture()
def catalog(locks):
    return StatusCatalog(locks)


@pytest.fixture()
def dispatcher():
    dispatcher = BackgroundDispatcher(max_workers=1)
    yield dispatcher
    dispatcher.shutdown()


@pytest.fixture()
def lifecycle(catalog, locks, dispatcher):
    return OrderLifecycle(QuotaGuard(), LoyaltyLedger(locks), catalog, dispatcher, locks=locks)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a tenant with the standard order statuses")
def standard_statuses(catalog, tenant):
    catalog.create(tenant, code="pending", name="Pending")
    catalog.create(tenant, code="processing", name="Processing")
    catalog.create(tenant, code="completed", name="Completed", is_final=True)
    catalog.create(tenant, code="cancelled", name="Cancelled")
    catalog.create(tenant, code="archived", name="Archived", is_active=False)


@given(parsers.cfparse("a customer with {points:d} points"), target_fixture="customer_id")
def customer_with_points(tenant, points):
    return current_domain.process(
        RegisterCustomer(tenant_id=tenant, name="Budi", phone="081298765432", points=points),
        asynchronous=False,
    )


@given(parsers.cfparse('a pending order with the note "{note}"'), target_fixture="order")
def pending_order(lifecycle, tenant, note):
    return lifecycle.create(tenant, _order_data(note=note))


@given(
    parsers.cfparse("a paid order using {points:d} points with a {reward:d} point reward"),
    target_fixture="order",
)
def paid_order(lifecycle, tenant, customer_id, points, reward):
    return lifecycle.create(tenant, _order_data(customer_id, "paid", points, reward))


@given(
    parsers.cfparse("an unpaid order using {points:d} points with a {reward:d} point reward"),
    target_fixture="order",
)
def unpaid_order(lifecycle, tenant, customer_id, points, reward):
    return lifecycle.create(tenant, _order_data(customer_id, "unpaid", points, reward))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.cfparse("the cashier places a paid order using {points:d} points with a {reward:d} point reward"),
    target_fixture="order",
)
def place_paid_order(lifecycle, tenant, customer_id, points, reward, error):
    try:
        return lifecycle.create(tenant, _order_data(customer_id, "paid", points, reward))
    except (ValidationError, QuotaExceeded) as exc:
        error["exc"] = exc
        return None


@when(parsers.cfparse("the cashier places an unpaid order using {points:d} points"), target_fixture="order")
def place_unpaid_order(lifecycle, tenant, customer_id, points, error):
    try:
        return lifecycle.create(tenant, _order_data(customer_id, "unpaid", points))
    except (ValidationError, QuotaExceeded) as exc:
        error["exc"] = exc
        return None


@when("the order is deleted")
def delete_order(lifecycle, tenant, order, error):
    try:
        lifecycle.delete(tenant, order.id)
    except (ValidationError, OrderStatusError) as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the request is rejected as invalid")
def rejected_as_invalid(error):
    assert isinstance(error["exc"], ValidationError)


@then("the request is rejected as a status conflict")
def rejected_as_conflict(error):
    assert isinstance(error["exc"], OrderStatusError)


@then(parsers.cfparse('the request is refused for exceeding the "{limit_type}" limit'))
def refused_by_quota(error, limit_type):
    assert isinstance(error["exc"], QuotaExceeded)
    assert error["exc"].limit_type == limit_type


@then(parsers.cfparse("the customer has {points:d} points"))
def customer_has_points(customer_id, points):
    assert current_domain.repository_for(Customer).get(customer_id).points == points


@then(parsers.cfparse("the tenant has {count:d} orders"))
def tenant_has_orders(tenant, count):
    assert current_domain.repository_for(Order)._dao.query.filter(tenant_id=tenant).all().total == count

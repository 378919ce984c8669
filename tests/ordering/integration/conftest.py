import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import customer_router, order_router, status_router, subscription_router
from shared.http import register_error_handlers
from wiring import wire_services


@pytest.fixture()
def api():
    app = FastAPI()
    wire_services(app)
    register_error_handlers(app)
    app.include_router(order_router)
    app.include_router(status_router)
    app.include_router(customer_router)
    app.include_router(subscription_router)
    yield app
    app.state.background_dispatcher.shutdown()


@pytest.fixture()
def client(api):
    return TestClient(api)


@pytest.fixture()
def headers(tenant):
    return {"X-Tenant-ID": tenant}


@pytest.fixture()
def statuses(client, headers):
    """The standard catalog, keyed by code."""
    created = {}
    for body in (
        {"code": "pending", "name": "Pending"},
        {"code": "processing", "name": "Processing"},
        {"code": "completed", "name": "Completed", "is_final": True},
        {"code": "cancelled", "name": "Cancelled"},
    ):
        response = client.post("/order-statuses", json=body, headers=headers)
        assert response.status_code == 201
        created[body["code"]] = response.json()
    return created

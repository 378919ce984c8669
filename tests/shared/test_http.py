"""Tests for the HTTP error translation."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from shared.errors import ConcurrentUpdate, NotFound, OrderStatusError, QuotaExceeded
from shared.http import register_error_handlers


def _client(exc):
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/boom")
    def boom():
        raise exc

    return TestClient(app)


class TestErrorTranslation:
    def test_lost_version_race_is_a_conflict(self):
        response = _client(ConcurrentUpdate("Wrong expected version: 3 (Aggregate: Customer(c-1), Version: 4)")).get("/boom")
        assert response.status_code == 409
        assert response.json() == {"error": {"_entity": ["Wrong expected version: 3 (Aggregate: Customer(c-1), Version: 4)"]}}

    @pytest.mark.parametrize(
        "exc, status_code",
        [
            (NotFound("Order `o-1` does not exist"), 404),
            (QuotaExceeded("transaction", limit=1, current=1), 403),
            (OrderStatusError("Completed orders cannot be deleted"), 409),
        ],
    )
    def test_domain_errors_keep_their_status(self, exc, status_code):
        assert _client(exc).get("/boom").status_code == status_code

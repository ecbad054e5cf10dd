"""
Tests for the service surface around the account and message routes.

Tests cover:
- Health probes
- Prometheus metrics and request ids
- Datastore and unexpected failures (500 with a generic body)
"""

import logging

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from socialmedia.account_manager import AccountManager
from socialmedia.exceptions import UNEXPECTED_ERROR_DETAIL
from socialmedia.main import app, get_account_manager
from socialmedia.storage import Base, engine


class BrokenAccountRepository:
    """Account store whose every call fails with the given error."""

    def __init__(self, error: Exception):
        self.error = error

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise self.error
        return fail


@pytest.fixture
def broken_store():
    """Route /register and /login to an account store that fails."""
    def install(error: Exception):
        app.dependency_overrides[get_account_manager] = lambda: AccountManager(BrokenAccountRepository(error))
    yield install
    app.dependency_overrides.pop(get_account_manager, None)


class TestHealth:

    def test_live(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "reason": None}

    def test_ready(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_without_schema(self, client):
        Base.metadata.drop_all(bind=engine)

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"


class TestObservability:

    def test_request_id_header(self, client):
        response = client.get("/messages")

        assert response.status_code == 200
        assert "x-request-id" in response.headers

    def test_metrics_exposed(self, client):
        client.post("/register", json={"username": "alice", "password": "pass1"})
        client.post("/register", json={"username": "alice", "password": "pass1"})
        client.get("/messages/1")

        response = client.get("/metrics")

        assert response.status_code == 200
        body = response.text
        assert 'operation_outcomes_total{operation="register",result="success"}' in body
        assert 'operation_outcomes_total{operation="register",result="duplicate_username"}' in body
        assert 'path="/messages/{message_id}"' in body

    def test_request_log_carries_path_ids(self, client, caplog):
        caplog.set_level(logging.INFO, logger="socialmedia.requests")

        client.patch("/messages/7", json={"messageText": "hi"})
        client.get("/accounts/3/messages")

        records = [r for r in caplog.records if r.getMessage() == "Request completed"]
        update, listing = records[-2:]
        assert update.message_id == "7"
        assert update.status == 400
        assert update.operation == "update_message_text_by_id"
        assert update.result == "invalid_message"
        assert listing.account_id == 3
        assert listing.route == "/accounts/{account_id}/messages"


class TestUnexpectedErrors:

    def test_datastore_failure_is_generic_500(self, client, broken_store):
        broken_store(OperationalError("SELECT", {}, Exception("disk I/O error at /var/db/secret.db")))

        response = client.post("/register", json={"username": "alice", "password": "pass1"})

        assert response.status_code == 500
        assert response.json() == {"detail": UNEXPECTED_ERROR_DETAIL}
        assert "secret" not in response.text

    def test_unhandled_failure_is_generic_500(self, client, broken_store):
        broken_store(RuntimeError("internal state leaked"))

        with TestClient(app, raise_server_exceptions=False) as test_client:
            response = test_client.post("/login", json={"username": "alice", "password": "pass1"})
            metrics = test_client.get("/metrics").text

        assert response.status_code == 500
        assert response.json() == {"detail": UNEXPECTED_ERROR_DETAIL}
        assert "leaked" not in response.text
        assert 'operation_outcomes_total{operation="login",result="unexpected"}' in metrics

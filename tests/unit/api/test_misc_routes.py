"""
Tests for health, dashboard, preferences and vendor webhook endpoints.
"""

import hashlib
import hmac
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from api.dependencies import get_preferences_service
from api.main import app
from api.routes.v1 import dashboard as dashboard_routes
from api.services import billing_webhooks as billing_service
from api.services import dashboard as dashboard_service
from api.services import inbox as inbox_service
from core.cache import redis_cache
from core.config import settings
from core.preferences import InMemoryPreferenceStore, PreferencesService
from tests.conftest import OTHER_USER_ID

SECRET = "whsec_test"


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy", "version": "0.1.0"}

    def test_ready_without_cache(self, client, db, monkeypatch):
        monkeypatch.setattr(redis_cache, "_redis", None)

        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "checks": {"database": "ok", "cache": "disabled"}}

    def test_ready_with_cache(self, client, monkeypatch):
        monkeypatch.setattr(redis_cache, "_redis", MagicMock(ping=AsyncMock(return_value=True)))

        assert client.get("/ready").json()["checks"]["cache"] == "ok"

    def test_cache_failure_does_not_block(self, client, monkeypatch):
        monkeypatch.setattr(redis_cache, "_redis", MagicMock(ping=AsyncMock(side_effect=ConnectionError("down"))))

        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["checks"]["cache"] == "unavailable"

    def test_database_down(self, client, db, monkeypatch):
        monkeypatch.setattr(redis_cache, "_redis", None)
        db.execute.side_effect = OperationalError("SELECT 1", None, Exception("refused"))

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["database"] == "unavailable"


class TestDashboard:

    @pytest.fixture
    def dashboard_mock(self, monkeypatch):
        mock = AsyncMock(return_value={"applications": {"total": 4}, "top_candidates": []})
        monkeypatch.setattr(dashboard_service, "get_dashboard", mock)
        monkeypatch.setattr(dashboard_routes, "get_subscription", AsyncMock(return_value=None))
        return mock

    def test_dashboard_with_subscription_summary(self, client, auth_headers, dashboard_mock):
        response = client.get("/api/v1/dashboard", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["applications"] == {"total": 4}
        assert data["subscription"]["has_access"] is False
        assert dashboard_mock.await_args.kwargs == {"job_id": None}

    def test_scoped_to_owned_job(self, client, auth_headers, add_job, dashboard_mock):
        add_job(3)

        client.get("/api/v1/dashboard", params={"job_id": 3}, headers=auth_headers)

        assert dashboard_mock.await_args.kwargs == {"job_id": 3}

    def test_foreign_job(self, client, auth_headers, add_job, dashboard_mock):
        add_job(3, user_id=OTHER_USER_ID)

        assert client.get("/api/v1/dashboard", params={"job_id": 3}, headers=auth_headers).status_code == 404
        dashboard_mock.assert_not_awaited()


class TestPreferences:

    @pytest.fixture
    def preferences(self, client):
        service = PreferencesService(InMemoryPreferenceStore())
        app.dependency_overrides[get_preferences_service] = lambda: service
        return service

    def test_unavailable_without_cache(self, client, auth_headers, monkeypatch):
        monkeypatch.setattr(redis_cache, "_redis", None)

        response = client.get("/api/v1/preferences", headers=auth_headers)

        assert response.status_code == 503
        assert response.json()["error"]["message"] == "Preferences storage unavailable"

    def test_defaults(self, client, auth_headers, preferences):
        response = client.get("/api/v1/preferences", headers=auth_headers)
        assert response.json() == {"theme": "system", "active_conversation_id": None}

    def test_partial_update(self, client, auth_headers, preferences):
        client.patch("/api/v1/preferences", json={"active_conversation_id": 12}, headers=auth_headers)
        response = client.patch("/api/v1/preferences", json={"theme": "dark"}, headers=auth_headers)

        assert response.json() == {"theme": "dark", "active_conversation_id": 12}
        assert client.get("/api/v1/preferences", headers=auth_headers).json()["theme"] == "dark"

    @pytest.mark.parametrize("body", [{"theme": "neon"}, {"active_conversation_id": 0}])
    def test_invalid_update(self, client, auth_headers, preferences, body):
        assert client.patch("/api/v1/preferences", json=body, headers=auth_headers).status_code == 422


def sign(body: bytes, ts: str = "1718000000") -> str:
    digest = hmac.new(SECRET.encode(), ts.encode() + b":" + body, hashlib.sha256).hexdigest()
    return f"ts={ts};h1={digest}"


class TestBillingWebhook:

    @pytest.fixture(autouse=True)
    def secret(self, monkeypatch):
        monkeypatch.setattr(settings, "paddle_webhook_secret", SECRET)

    @pytest.fixture
    def handle_event(self, monkeypatch):
        mock = AsyncMock(return_value={"success": True, "event_type": "subscription.created"})
        monkeypatch.setattr(billing_service, "handle_event", mock)
        return mock

    def test_signed_event_applied(self, client, handle_event):
        body = json.dumps({"event_type": "subscription.created", "data": {"id": "sub_1"}}).encode()

        response = client.post(
            "/api/v1/webhooks/billing",
            content=body,
            headers={"Paddle-Signature": sign(body), "Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert handle_event.await_args.args[1]["data"] == {"id": "sub_1"}

    @pytest.mark.parametrize("header", [None, "ts=1;h1=deadbeef", "garbage"])
    def test_bad_signature(self, client, handle_event, header):
        headers = {"Paddle-Signature": header} if header else {}

        response = client.post("/api/v1/webhooks/billing", content=b"{}", headers=headers)

        assert response.status_code == 401
        handle_event.assert_not_awaited()

    def test_signed_but_not_json(self, client, handle_event):
        body = b"not json"

        response = client.post("/api/v1/webhooks/billing", content=body, headers={"Paddle-Signature": sign(body)})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid JSON payload"


class TestEmailWebhook:

    def test_reply_stored(self, client, monkeypatch):
        handle = AsyncMock(return_value={"success": True, "duplicate": False, "message_id": 4, "thread_id": 5})
        monkeypatch.setattr(inbox_service, "handle_inbound_email", handle)

        response = client.post("/api/v1/webhooks/email", json={"from": "ada@acme.io", "subject": "[Thread:5]"})

        assert response.status_code == 200
        assert response.json()["thread_id"] == 5
        assert handle.await_args.args[1]["from"] == "ada@acme.io"

    def test_unmatched_mail_acknowledged(self, client, monkeypatch):
        monkeypatch.setattr(inbox_service, "handle_inbound_email", AsyncMock(return_value={
            "success": False, "error": "No matching thread",
        }))

        response = client.post("/api/v1/webhooks/email", json={"from": "x@y.io", "subject": "Hello"})

        assert response.status_code == 200
        assert response.json() == {"success": False, "error": "No matching thread"}

    @pytest.mark.parametrize("body", [b"{broken", b"[1, 2]"])
    def test_invalid_payload(self, client, body):
        assert client.post("/api/v1/webhooks/email", content=body).status_code == 400

    def test_unsigned_mail_rejected_when_secret_set(self, client, monkeypatch):
        monkeypatch.setattr(settings, "inbound_email_secret", SECRET)
        handle = AsyncMock()
        monkeypatch.setattr(inbox_service, "handle_inbound_email", handle)

        response = client.post("/api/v1/webhooks/email", json={"from": "x@y.io", "subject": "[Thread:5]"})

        assert response.status_code == 401
        handle.assert_not_awaited()

    def test_signed_mail_accepted(self, client, monkeypatch):
        monkeypatch.setattr(settings, "inbound_email_secret", SECRET)
        handle = AsyncMock(return_value={"success": True, "thread_id": 5})
        monkeypatch.setattr(inbox_service, "handle_inbound_email", handle)
        body = json.dumps({"from": "ada@acme.io", "subject": "[Thread:5]"}).encode()
        signature = hmac.new(SECRET.encode(), body, hashlib.sha256).hexdigest()

        response = client.post(
            "/api/v1/webhooks/email",
            content=body,
            headers={"Signature": signature, "Content-Type": "application/json"},
        )

        assert response.status_code == 200
        handle.assert_awaited_once()

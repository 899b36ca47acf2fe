"""
Tests for the inbox endpoints.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from api.dependencies import get_email_sender
from api.main import app
from api.routes.v1 import inbox as inbox_routes
from api.services import emails as email_service
from api.services import inbox as inbox_service
from api.services.emails import EmailRecipient

BASE = "/api/v1/inbox"

THREAD = {
    "id": 5,
    "subject": "Interview availability",
    "participants": ["ada@acme.io"],
    "status": "active",
    "unread_count": 2,
}


@pytest.fixture
def owned_thread(monkeypatch):
    get_thread = AsyncMock(return_value=SimpleNamespace(id=5))
    monkeypatch.setattr(inbox_service, "get_thread", get_thread)
    return get_thread


@pytest.fixture
def email_client():
    client = MagicMock()
    app.dependency_overrides[get_email_sender] = lambda: client
    return client


class TestThreads:

    def test_list(self, client, auth_headers, monkeypatch):
        list_threads = AsyncMock(return_value=[THREAD])
        monkeypatch.setattr(inbox_service, "list_threads", list_threads)

        response = client.get(f"{BASE}/threads", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()[0]["unread_count"] == 2
        assert list_threads.await_args.kwargs == {"status": "active"}

    def test_list_archived(self, client, auth_headers, monkeypatch):
        list_threads = AsyncMock(return_value=[])
        monkeypatch.setattr(inbox_service, "list_threads", list_threads)

        client.get(f"{BASE}/threads", params={"status": "archived"}, headers=auth_headers)

        assert list_threads.await_args.kwargs == {"status": "archived"}

    def test_messages_of_foreign_thread(self, client, auth_headers, monkeypatch):
        get_thread = AsyncMock(return_value=None)
        monkeypatch.setattr(inbox_service, "get_thread", get_thread)

        response = client.get(f"{BASE}/threads/5/messages", headers=auth_headers)

        assert response.status_code == 404
        assert get_thread.await_args.kwargs == {"user_id": "user-owner"}

    def test_messages(self, client, auth_headers, owned_thread, monkeypatch):
        monkeypatch.setattr(inbox_service, "get_thread_messages", AsyncMock(return_value=[{
            "id": 1,
            "thread_id": 5,
            "direction": "inbound",
            "sender_email": "ada@acme.io",
            "recipient_email": "hiring@acme.io",
            "content": "Tuesday works",
            "message_type": "reply",
            "is_read": False,
        }]))

        response = client.get(f"{BASE}/threads/5/messages", headers=auth_headers)

        assert response.json()[0]["content"] == "Tuesday works"

    def test_mark_read(self, client, auth_headers, owned_thread, monkeypatch):
        monkeypatch.setattr(inbox_service, "mark_thread_read", AsyncMock(return_value={
            "success": True, "thread_id": 5, "marked_read": 2,
        }))

        response = client.post(f"{BASE}/threads/5/read", headers=auth_headers)

        assert response.json()["marked_read"] == 2

    def test_reconcile(self, client, auth_headers, monkeypatch):
        reconcile = AsyncMock(return_value={"corrected": [{"thread_id": 5, "old": 3, "new": 2}], "count": 1})
        monkeypatch.setattr(inbox_service, "reconcile_unread_counts", reconcile)

        response = client.post(f"{BASE}/reconcile", headers=auth_headers)

        assert response.json()["count"] == 1
        assert reconcile.await_args.kwargs == {"user_id": "user-owner"}


class TestSendEmail:

    @pytest.fixture(autouse=True)
    def no_application_recipients(self, monkeypatch):
        mock = AsyncMock(return_value=[])
        monkeypatch.setattr(email_service, "recipients_for_applications", mock)
        return mock

    def test_send_now(self, client, auth_headers, email_client, monkeypatch):
        send = AsyncMock(return_value={"success": True, "sent": 1, "failed": 0, "results": [{"email": "ada@acme.io"}]})
        monkeypatch.setattr(email_service, "send_bulk_email", send)

        response = client.post(f"{BASE}/send", json={
            "subject": "Hi {name}",
            "content": "Thanks for applying to {position}",
            "recipients": [{"email": "ada@acme.io", "name": "Ada", "position": "Backend Engineer"}],
            "create_thread": True,
        }, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["sent"] == 1
        recipients = send.await_args.args[2]
        assert recipients == [EmailRecipient(email="ada@acme.io", name="Ada", position="Backend Engineer")]
        assert send.await_args.kwargs["create_thread"] is True
        assert send.await_args.kwargs["client"] is email_client

    def test_recipients_from_applications(self, client, auth_headers, email_client, monkeypatch, no_application_recipients):
        no_application_recipients.return_value = [EmailRecipient(email="grace@navy.mil", application_id=3)]
        send = AsyncMock(return_value={"success": True, "sent": 1, "failed": 0, "results": []})
        monkeypatch.setattr(email_service, "send_bulk_email", send)

        client.post(f"{BASE}/send", json={
            "subject": "Update", "content": "Hello", "application_ids": [3],
        }, headers=auth_headers)

        assert no_application_recipients.await_args.args[1:] == ([3], "user-owner")
        assert send.await_args.args[2][0].email == "grace@navy.mil"

    def test_background_send_queued(self, client, auth_headers, monkeypatch):
        task = MagicMock()
        task.delay.return_value = SimpleNamespace(id="task-9")
        monkeypatch.setattr(inbox_routes, "send_bulk_email_task", task)

        response = client.post(f"{BASE}/send", json={
            "subject": "Update", "content": "Hello",
            "recipients": [{"email": "ada@acme.io"}],
            "background": True,
        }, headers=auth_headers)

        assert response.json()["task_id"] == "task-9"
        args = task.delay.call_args.args
        assert args[0] == "user-owner"
        assert args[1][0]["email"] == "ada@acme.io"

    def test_requires_recipients(self, client, auth_headers):
        response = client.post(f"{BASE}/send", json={"subject": "x", "content": "y"}, headers=auth_headers)
        assert response.status_code == 422

    def test_application_ids_without_recipients(self, client, auth_headers):
        response = client.post(f"{BASE}/send", json={
            "subject": "x", "content": "y", "application_ids": [99],
        }, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "No valid recipients"

    def test_blank_content(self, client, auth_headers, email_client, monkeypatch):
        monkeypatch.setattr(email_service, "send_bulk_email", AsyncMock(return_value={
            "success": False, "error": "Subject and content are required",
        }))

        response = client.post(f"{BASE}/send", json={
            "subject": "x", "content": "   ", "recipients": [{"email": "ada@acme.io"}],
        }, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Subject and content are required"

    def test_foreign_thread(self, client, auth_headers, monkeypatch):
        monkeypatch.setattr(inbox_service, "get_thread", AsyncMock(return_value=None))

        response = client.post(f"{BASE}/send", json={
            "subject": "x", "content": "y", "recipients": [{"email": "ada@acme.io"}], "thread_id": 7,
        }, headers=auth_headers)

        assert response.status_code == 404

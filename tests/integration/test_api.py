"""End-to-end tests of the HTTP API."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from webmail.api import create_app
from webmail.utils import utcnow

pytestmark = pytest.mark.integration


@pytest.fixture
def client(mock_settings):
    with TestClient(create_app(mock_settings)) as test_client:
        yield test_client


@pytest.fixture
def signed_in(client):
    response = client.post("/api/auth/login", json={"email": "me@example.com", "password": "pw"})
    assert response.status_code == 200
    return client


def _receive(client, **fields) -> dict:
    body = {"senderName": "Alice", "senderEmail": "alice@example.com", "subject": "Hello"}
    body.update(fields)
    response = client.post("/api/incoming", json=body)
    assert response.status_code == 200
    return response.json()


def _email_ids(listing: dict) -> list[str]:
    return [e["id"] for c in listing["conversations"] for e in c["emails"]]

class TestAuth:
    """Login, logout and session cookies."""

    def test_health(self, client) -> None:
        assert client.get("/health").json()["status"] == "ok"

    def test_requires_session(self, client) -> None:
        assert client.get("/api/conversations").status_code == 401

    def test_bad_credentials(self, client) -> None:
        response = client.post("/api/auth/login", json={"email": "me@example.com", "password": ""})

        assert response.status_code == 401

    def test_me_and_logout(self, signed_in) -> None:
        assert signed_in.get("/api/auth/me").json() == {
            "emailAddress": "me@example.com",
            "displayName": "Me",
        }

        assert signed_in.post("/api/auth/logout").json() == {"loggedOut": True}
        assert signed_in.get("/api/auth/me").status_code == 401


class TestMail:
    """Conversation routes."""

    def test_incoming_mail_is_listed(self, signed_in) -> None:
        message = _receive(signed_in, id="in-1")

        listing = signed_in.get("/api/conversations", params={"folder": "Inbox"}).json()

        assert message["folder"] == "Inbox"
        assert [c["id"] for c in listing["conversations"]] == ["in-1"]
        assert listing["conversations"][0]["isRead"] is False
        assert listing["unreadCounts"] == {"Inbox": 1}

    def test_open_star_and_search(self, signed_in) -> None:
        _receive(signed_in, id="in-1", subject="Quarterly numbers")

        opened = signed_in.post("/api/conversations/in-1/open").json()
        starred = signed_in.post("/api/conversations/in-1/star").json()
        found = signed_in.get("/api/conversations", params={"q": "quarterly"}).json()

        assert opened["isRead"] is True
        assert starred == {"starred": True}
        assert [c["id"] for c in found["conversations"]] == ["in-1"]

    def test_move_to_unknown_folder_is_bad_request(self, signed_in) -> None:
        _receive(signed_in, id="in-1")

        response = signed_in.post(
            "/api/conversations/move", json={"conversationIds": ["in-1"], "targetFolder": "Nowhere"}
        )

        assert response.status_code == 400
        notices = signed_in.get("/api/notifications").json()
        assert notices[-1]["level"] == "error"

    def test_missing_conversation(self, signed_in) -> None:
        assert signed_in.get("/api/conversations/nope").status_code == 404
        assert signed_in.delete("/api/conversations/nope").json() == {"applied": False, "count": 0}

    def test_bulk_delete(self, signed_in) -> None:
        for n in range(3):
            _receive(signed_in, id=f"in-{n}")

        signed_in.post("/api/selection/all", json={"conversationIds": ["in-0", "in-1"]})
        result = signed_in.post("/api/selection/delete").json()

        assert result == {"applied": True, "count": 2}
        assert signed_in.get("/api/selection").json() == {"selected": []}
        trash = signed_in.get("/api/conversations", params={"folder": "Trash"}).json()
        assert {c["id"] for c in trash["conversations"]} == {"in-0", "in-1"}

    def test_single_message_summary_is_too_short(self, signed_in) -> None:
        _receive(signed_in, id="in-1")

        response = signed_in.post("/api/conversations/in-1/summary")

        assert response.json()["summary"] == "This conversation is too short to summarize."


class TestCompose:
    """Sending, undo and scheduling."""

    def test_send_then_undo(self, signed_in) -> None:
        sent = signed_in.post(
            "/api/compose/send",
            json={"payload": {"to": "bob@example.com", "subject": "Hi", "body": "<p>Hey</p>"}},
        ).json()

        assert sent["pending"] is True

        undone = signed_in.post("/api/compose/undo").json()

        assert undone["undone"] is True
        assert undone["compose"]["initialData"]["to"] == "bob@example.com"
        listing = signed_in.get("/api/conversations", params={"folder": "Sent"}).json()
        assert listing["conversations"] == []

    def test_send_without_delay(self, signed_in) -> None:
        signed_in.put("/api/settings/send-delay", json={"isEnabled": False, "duration": 0})

        sent = signed_in.post(
            "/api/compose/send", json={"payload": {"to": "bob@example.com", "subject": "Hi"}}
        ).json()

        assert sent["pending"] is False
        listing = signed_in.get("/api/conversations", params={"folder": "Sent"}).json()
        assert _email_ids(listing) == [sent["messageId"]]

    def test_send_without_recipient(self, signed_in) -> None:
        response = signed_in.post("/api/compose/send", json={"payload": {"to": ""}})

        assert response.status_code == 400

    def test_schedule_in_past_sends_now(self, signed_in) -> None:
        send_at = (utcnow() - timedelta(minutes=5)).isoformat()

        result = signed_in.post(
            "/api/compose/schedule",
            json={"payload": {"to": "bob@example.com", "subject": "Later"}, "sendAt": send_at},
        ).json()

        assert result["pending"] is False
        listing = signed_in.get("/api/conversations", params={"folder": "Sent"}).json()
        assert _email_ids(listing) == [result["messageId"]]

    def test_schedule_and_edit(self, signed_in) -> None:
        send_at = (utcnow() + timedelta(hours=2)).isoformat()
        result = signed_in.post(
            "/api/compose/schedule",
            json={"payload": {"to": "bob@example.com", "subject": "Later"}, "sendAt": send_at},
        ).json()

        assert result["pending"] is True

        state = signed_in.post(f"/api/compose/scheduled/{result['messageId']}/edit").json()

        assert state["draftId"] == result["messageId"]
        drafts = signed_in.get("/api/conversations", params={"folder": "Drafts"}).json()
        assert len(drafts["conversations"]) == 1

    def test_save_draft(self, signed_in) -> None:
        saved = signed_in.post(
            "/api/compose/drafts", json={"payload": {"to": "bob@example.com", "body": "<p>wip</p>"}}
        ).json()

        listing = signed_in.get("/api/conversations", params={"folder": "Drafts"}).json()

        assert listing["conversations"][0]["emails"][0]["id"] == saved["draftId"]


class TestSettingsAndFolders:
    """Settings, rules and folders."""

    def test_defaults(self, signed_in) -> None:
        settings = signed_in.get("/api/settings").json()

        assert settings["signature"] == {"isEnabled": True, "body": "Cheers,<br>me"}
        assert settings["sendDelay"] == {"isEnabled": True, "duration": 5}

    def test_rule_routes_incoming(self, signed_in) -> None:
        signed_in.post("/api/folders", json={"name": "Reading"})
        rule = signed_in.post(
            "/api/settings/rules",
            json={
                "condition": {"field": "sender", "operator": "contains", "value": "newsletter"},
                "action": {"type": "move", "folder": "Reading"},
            },
        ).json()

        message = _receive(signed_in, senderEmail="newsletter@digest.com")

        assert rule["id"]
        assert message["folder"] == "Reading"

    def test_folder_lifecycle(self, signed_in) -> None:
        folder = signed_in.post("/api/folders", json={"name": "Projects"}).json()
        _receive(signed_in, id="in-1")
        signed_in.post(
            "/api/conversations/move", json={"conversationIds": ["in-1"], "targetFolder": "Projects"}
        )

        duplicate = signed_in.post("/api/folders", json={"name": "projects"})
        deleted = signed_in.delete(f"/api/folders/{folder['id']}").json()
        folders = signed_in.get("/api/folders").json()

        assert duplicate.status_code == 400
        assert deleted == {"applied": True, "count": 1}
        assert folders["user"] == []
        assert "Starred" in folders["system"]
        trash = signed_in.get("/api/conversations", params={"folder": "Trash"}).json()
        assert [c["id"] for c in trash["conversations"]] == ["in-1"]

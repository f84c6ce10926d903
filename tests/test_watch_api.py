"""
Tests for the viewer endpoints
"""
import jwt

from app.core.config import settings
from conftest import login_admin, login_customer, make_customer, make_schedule


def test_watch_requires_login(client, store):
    schedule = make_schedule(store)
    assert client.get(f"/api/watch/{schedule.slug}").status_code == 401


def test_watch_snapshot_records_access(client, store):
    make_customer(store, "CUST0001", name="Taro")
    schedule = make_schedule(store)
    login_customer(client, "CUST0001")

    data = client.get(f"/api/watch/{schedule.slug}").json()
    assert data["schedule"]["slug"] == schedule.slug
    assert "meeting_room_secret" not in data["schedule"]
    assert data["widget"] == {"room_id": "8812345678", "room_secret": "room-pass", "display_name": "Taro"}
    assert data["viewer"]["viewer_id"] == "CUST0001"
    assert data["test_mode"] is False

    client.get(f"/api/watch/{schedule.slug}")
    assert store.count("viewer_access_logs", {"schedule_id": schedule.id}) == 2


def test_test_mode_uses_test_viewer_without_access_log(client, store):
    schedule = make_schedule(store, is_test_live=True)

    data = client.get(f"/api/watch/{schedule.slug}?mode=test").json()
    assert data["test_mode"] is True
    assert data["viewer"]["viewer_id"] == "test-viewer"
    assert data["schedule"]["is_test_live"] is True
    assert store.count("viewer_access_logs") == 0


def test_watch_unknown_slug(client, store):
    make_customer(store, "CUST0001")
    login_customer(client, "CUST0001")
    response = client.get("/api/watch/missing-slug")
    assert response.status_code == 404
    assert response.json()["code"] == "SCHEDULE_NOT_FOUND"


def test_chat_submit_requires_channel_subscription(client, store):
    make_customer(store, "CUST0001")
    schedule = make_schedule(store, status="live")
    login_customer(client, "CUST0001")

    response = client.post(f"/api/watch/{schedule.slug}/chat", json={"display_name": "Taro", "content": "hello"})
    assert response.status_code == 409
    assert store.count("chat_messages") == 0


def test_chat_submit_and_history(client, store):
    make_customer(store, "CUST0001")
    schedule = make_schedule(store, status="live")
    login_customer(client, "CUST0001")

    with client.websocket_connect(f"/ws/schedules/{schedule.slug}/chat") as ws:
        assert ws.receive_json()["type"] == "subscribed"

        empty = client.post(f"/api/watch/{schedule.slug}/chat", json={"content": "   "})
        assert empty.status_code == 400
        assert empty.json()["code"] == "INVALID_MESSAGE"

        response = client.post(f"/api/watch/{schedule.slug}/chat", json={"display_name": "Taro", "content": "hello"})
        assert response.status_code == 200
        assert response.json()["status"] == "pending"

    # Pending messages are not part of the public history
    assert client.get(f"/api/watch/{schedule.slug}/chat").json() == {"messages": []}


def test_attach_requires_live(client, store):
    make_customer(store, "CUST0001")
    schedule = make_schedule(store, status="upcoming")
    login_customer(client, "CUST0001")

    response = client.post(f"/api/watch/{schedule.slug}/sessions")
    assert response.status_code == 409
    assert response.json()["code"] == "EVENT_NOT_LIVE"


def test_attach_and_detach(client, store):
    make_customer(store, "CUST0001")
    schedule = make_schedule(store, status="live")
    login_customer(client, "CUST0001")

    session = client.post(f"/api/watch/{schedule.slug}/sessions").json()
    assert session["is_active"] is True
    assert session["customer_id"] == "CUST0001"

    closed = client.post("/api/session", json={"session_id": session["id"]})
    assert closed.status_code == 200
    assert closed.json()["duration_seconds"] >= 0

    assert client.post("/api/session", json={"session_id": 9999}).status_code == 404


def test_meeting_signature_endpoint(client, store):
    make_customer(store, "CUST0001")
    login_customer(client, "CUST0001")

    data = client.post("/api/meeting/signature", json={"meeting_number": "8812345678", "role": 1}).json()
    claims = jwt.decode(data["signature"], settings.MEETING_SDK_SECRET, algorithms=["HS256"])
    # Customers always join as attendees
    assert claims["role"] == 0
    assert data["sdk_key"] == settings.MEETING_SDK_KEY

    login_admin(client)
    data = client.post("/api/meeting/signature", json={"meeting_number": "8812345678", "role": 1}).json()
    assert jwt.decode(data["signature"], settings.MEETING_SDK_SECRET, algorithms=["HS256"])["role"] == 1


def test_meeting_signature_requires_login(client):
    assert client.post("/api/meeting/signature", json={"meeting_number": "1"}).status_code == 401

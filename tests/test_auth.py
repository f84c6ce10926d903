"""
Tests for authentication endpoints
"""
from datetime import timedelta

from app.utils.datetime_utils import now_utc
from conftest import login_admin, login_customer, make_customer, make_schedule


def test_health_check(client):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_root_endpoint(client):
    """Test root endpoint"""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "message" in data
    assert data["status"] == "running"


def test_customer_login_returns_latest_slug(client, store):
    make_customer(store, "CUST0001")
    make_schedule(store, slug="past0000-aaaa", status="ended", scheduled_start=now_utc() - timedelta(days=3))
    make_schedule(store, slug="later000-bbbb", scheduled_start=now_utc() + timedelta(days=7))
    sooner = make_schedule(store, slug="soon0000-cccc", scheduled_start=now_utc() + timedelta(days=1))

    response = client.post("/api/auth/login", json={"customer_id": "cust0001"})
    assert response.status_code == 200
    data = response.json()
    assert data["customer"]["customer_id"] == "CUST0001"
    assert data["latest_slug"] == sooner.slug

    me = client.get("/api/auth/me").json()
    assert me == {"viewer_kind": "customer", "viewer_id": "CUST0001", "display_name": "Taro Yamada", "is_admin": False}


def test_customer_login_unknown(client):
    response = client.post("/api/auth/login", json={"customer_id": "NOPE0000"})
    assert response.status_code == 404
    assert response.json()["code"] == "CUSTOMER_NOT_FOUND"


def test_customer_login_inactive(client, store):
    make_customer(store, "CUST0002", is_active=False)
    response = client.post("/api/auth/login", json={"customer_id": "CUST0002"})
    assert response.status_code == 403


def test_admin_login(client):
    bad = client.post("/api/auth/admin/login", json={"password": "wrong"})
    assert bad.status_code == 401

    login_admin(client)
    me = client.get("/api/auth/me").json()
    assert me["is_admin"] is True
    assert me["viewer_id"] == "ADMIN"


def test_logout(client, store):
    make_customer(store, "CUST0001")
    login_customer(client, "CUST0001")
    assert client.post("/api/auth/logout").json() == {"success": True}
    assert client.get("/api/auth/me").status_code == 401


def test_admin_routes_require_admin(client, store):
    assert client.get("/api/admin/schedules").status_code == 401
    make_customer(store, "CUST0001")
    login_customer(client, "CUST0001")
    assert client.get("/api/admin/schedules").status_code == 403
    assert client.get("/api/moderation/1/messages").status_code == 403

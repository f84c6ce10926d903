"""
Shared fixtures: in-memory database, fresh channel hub, logged-in clients
"""
import os

# Must be set before the app (and its settings) are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ADMIN_PASSWORD"] = "admin-pass"
os.environ["LOG_FILE"] = ""
os.environ["MEETING_SDK_KEY"] = "sdk-key"
os.environ["MEETING_SDK_SECRET"] = "sdk-secret"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, SessionLocal, engine
from app.core.store import RecordStore
from app.main import app
from app.realtime import ChannelHub, get_hub
from app.utils.datetime_utils import now_utc
from app.utils.identifiers import generate_slug

ADMIN_PASSWORD = "admin-pass"


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return RecordStore(db)


@pytest.fixture
def hub():
    fresh = ChannelHub()
    app.dependency_overrides[get_hub] = lambda: fresh
    yield fresh
    app.dependency_overrides.pop(get_hub, None)


@pytest.fixture
def client(db, hub):
    with TestClient(app) as test_client:
        yield test_client


def make_schedule(store, **overrides):
    values = {
        "title": "Spring Seminar",
        "speaker": "Dr. Sato",
        "slug": generate_slug(),
        "scheduled_start": now_utc() + timedelta(days=1),
        "auto_end_hours": 3,
        "status": "upcoming",
        "is_test_live": False,
        "meeting_room_id": "8812345678",
        "meeting_room_secret": "room-pass",
    }
    values.update(overrides)
    return store.insert("schedules", values)


def make_customer(store, customer_id="CUST0001", name="Taro Yamada", is_active=True):
    return store.insert("customers", {"customer_id": customer_id, "name": name, "is_active": is_active})


def login_admin(client):
    client.cookies.clear()
    response = client.post("/api/auth/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return response


def login_customer(client, customer_id):
    client.cookies.clear()
    response = client.post("/api/auth/login", json={"customer_id": customer_id})
    assert response.status_code == 200
    return response


class Recorder:
    """Collects frames delivered to a hub subscriber"""

    def __init__(self):
        self.events = []
        self.syncs = []

    async def on_broadcast(self, event, payload):
        self.events.append((event, payload))

    async def on_presence_sync(self, members):
        self.syncs.append(members)


@pytest.fixture
def recorder():
    return Recorder()

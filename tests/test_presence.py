"""
Tests for the viewer presence tracker
"""
import asyncio
from datetime import datetime, timedelta

import pytest

from app.core.errors import EventNotLiveError, SessionNotFoundError
from app.core.security import ViewerIdentity
from app.realtime import ChannelHub, topic_name
from app.services.presence import ViewerPresenceTracker
from conftest import Recorder, make_schedule

VIEWER = ViewerIdentity("customer", "CUST0001", "Taro")


def test_attach_opens_session_and_tracks_presence(store):
    hub = ChannelHub()
    schedule = make_schedule(store, status="live", actual_start=datetime(2026, 5, 1, 1, 0))
    tracker = ViewerPresenceTracker(store, hub)
    watcher = Recorder()

    async def scenario():
        topic = topic_name(schedule.slug, "chat")
        await hub.open(topic).subscribe(watcher.on_broadcast, watcher.on_presence_sync)
        channel = await hub.open(topic, VIEWER).subscribe()
        return await tracker.attach(schedule.id, VIEWER, channel)

    session = asyncio.run(scenario())
    assert session.is_active is True
    assert session.left_at is None
    assert session.customer_id == "CUST0001"

    snapshot = tracker.current_viewers(schedule.slug)
    assert snapshot.count == 1
    assert snapshot.viewer_ids == ["CUST0001"]
    assert watcher.syncs[-1][0]["viewer_kind"] == "customer"


@pytest.mark.parametrize("status", ["upcoming", "ended"])
def test_attach_requires_live(store, status):
    schedule = make_schedule(store, status=status)
    tracker = ViewerPresenceTracker(store, ChannelHub())
    with pytest.raises(EventNotLiveError):
        asyncio.run(tracker.attach(schedule.id, VIEWER))
    assert store.count("viewer_sessions") == 0


def test_detach_computes_duration(store):
    schedule = make_schedule(store, status="live")
    joined = datetime(2026, 5, 1, 1, 0, 0)
    session = store.insert("viewer_sessions", {
        "schedule_id": schedule.id, "customer_id": "CUST0001", "joined_at": joined, "is_active": True,
    })
    tracker = ViewerPresenceTracker(store, ChannelHub())

    closed = tracker.detach(session.id, joined + timedelta(minutes=42, seconds=10, milliseconds=600))
    assert closed.duration_seconds == 2531
    assert closed.is_active is False
    assert closed.left_at == joined + timedelta(minutes=42, seconds=10, milliseconds=600)


def test_repeated_beacon_keeps_latest_left_at(store):
    schedule = make_schedule(store, status="live")
    joined = datetime(2026, 5, 1, 1, 0, 0)
    session = store.insert("viewer_sessions", {
        "schedule_id": schedule.id, "customer_id": "CUST0001", "joined_at": joined, "is_active": True,
    })
    tracker = ViewerPresenceTracker(store, ChannelHub())

    tracker.detach(session.id, joined + timedelta(seconds=300))
    again = tracker.detach(session.id, joined + timedelta(seconds=120))
    assert again.duration_seconds == 300
    assert again.left_at == joined + timedelta(seconds=300)


def test_detach_before_join_clamps_to_zero(store):
    schedule = make_schedule(store, status="live")
    joined = datetime(2026, 5, 1, 1, 0, 0)
    session = store.insert("viewer_sessions", {
        "schedule_id": schedule.id, "customer_id": "CUST0001", "joined_at": joined, "is_active": True,
    })
    closed = ViewerPresenceTracker(store, ChannelHub()).detach(session.id, joined - timedelta(seconds=5))
    assert closed.duration_seconds == 0


def test_detach_unknown_session(store):
    with pytest.raises(SessionNotFoundError):
        ViewerPresenceTracker(store, ChannelHub()).detach(404)


def test_session_and_access_summaries(store):
    schedule = make_schedule(store, status="live")
    joined = datetime(2026, 5, 1, 1, 0, 0)
    for customer_id, duration in (("A", 60), ("A", 30), ("B", None)):
        store.insert("viewer_sessions", {
            "schedule_id": schedule.id,
            "customer_id": customer_id,
            "joined_at": joined,
            "duration_seconds": duration,
            "is_active": duration is None,
        })
    tracker = ViewerPresenceTracker(store, ChannelHub())
    tracker.record_access(schedule.id, ViewerIdentity("customer", "A"))
    tracker.record_access(schedule.id, ViewerIdentity("customer", "A"))
    tracker.record_access(schedule.id, ViewerIdentity("customer", "B"))

    assert tracker.session_summary(schedule.id) == {
        "sessions": 3,
        "active_sessions": 1,
        "total_view_seconds": 90,
        "unique_viewers": 2,
    }
    assert tracker.access_summary(schedule.id) == {"accesses": 3, "unique_customers": 2}

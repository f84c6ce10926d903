"""
Tests for the presence/broadcast channel hub
"""
import asyncio

import pytest

from app.core.security import TEST_VIEWER_IDENTITY, ViewerIdentity
from app.realtime import ChannelHub, topic_name
from conftest import Recorder

TOPIC = "schedule:abc:chat"


def test_topic_name():
    assert topic_name("abc", "status") == "schedule:abc:status"
    assert topic_name("abc", "chat") == "schedule:abc:chat"
    with pytest.raises(ValueError):
        topic_name("abc", "video")


def test_publish_excludes_sender():
    hub = ChannelHub()
    sender_rec, other_rec = Recorder(), Recorder()

    async def scenario():
        sender = await hub.open(TOPIC).subscribe(sender_rec.on_broadcast)
        await hub.open(TOPIC).subscribe(other_rec.on_broadcast)
        return await sender.publish("new_message", {"id": 1})

    assert asyncio.run(scenario()) is True
    assert sender_rec.events == []
    assert other_rec.events == [("new_message", {"id": 1})]


def test_publish_requires_subscription():
    hub = ChannelHub()
    listener = Recorder()

    async def scenario():
        await hub.open(TOPIC).subscribe(listener.on_broadcast)
        return await hub.open(TOPIC).publish("new_message", {"id": 1})

    assert asyncio.run(scenario()) is False
    assert listener.events == []


def test_broadcast_preserves_publish_order():
    hub = ChannelHub()
    listener = Recorder()

    async def scenario():
        await hub.open(TOPIC).subscribe(listener.on_broadcast)
        for i in range(5):
            await hub.broadcast(TOPIC, "new_message", {"id": i})

    asyncio.run(scenario())
    assert [payload["id"] for _, payload in listener.events] == [0, 1, 2, 3, 4]


def test_late_subscriber_misses_earlier_events():
    hub = ChannelHub()
    late = Recorder()

    async def scenario():
        delivered = await hub.broadcast(TOPIC, "status_change", {"status": "live"})
        await hub.open(TOPIC).subscribe(late.on_broadcast)
        return delivered

    assert asyncio.run(scenario()) == 0
    assert late.events == []


def test_presence_tracking_and_sync():
    hub = ChannelHub()
    first, second = Recorder(), Recorder()
    viewer_a = ViewerIdentity("customer", "A0000001")

    async def scenario():
        a = await hub.open(TOPIC, viewer_a).subscribe(first.on_broadcast, first.on_presence_sync)
        b = await hub.open(TOPIC, TEST_VIEWER_IDENTITY).subscribe(second.on_broadcast, second.on_presence_sync)
        await a.track_presence(viewer_a.presence_payload("2026-01-01T10:00:00+09:00"))
        await b.track_presence(TEST_VIEWER_IDENTITY.presence_payload("2026-01-01T10:01:00+09:00"))
        state = a.presence_state()
        await b.untrack()
        return state

    state = asyncio.run(scenario())
    assert len(state) == 2
    assert [len(sync) for sync in first.syncs] == [1, 2, 1]
    assert [len(sync) for sync in second.syncs] == [1, 2, 1]
    assert first.syncs[-1][0]["viewer_id"] == "A0000001"
    assert hub.has_subscriber(TOPIC, "A0000001")
    assert hub.has_subscriber(TOPIC, "test-viewer")


def test_close_removes_presence():
    hub = ChannelHub()
    watcher = Recorder()

    async def scenario():
        await hub.open(TOPIC).subscribe(watcher.on_broadcast, watcher.on_presence_sync)
        leaving = await hub.open(TOPIC).subscribe()
        await leaving.track_presence({"viewer_id": "B", "viewer_kind": "customer", "joined_at": None})
        await leaving.close()

    asyncio.run(scenario())
    assert [len(sync) for sync in watcher.syncs] == [1, 0]
    assert hub.members(TOPIC) == []


def test_failed_delivery_drops_subscriber():
    hub = ChannelHub()
    survivor = Recorder()

    async def broken(event, payload):
        raise ConnectionError("socket gone")

    async def scenario():
        await hub.open(TOPIC).subscribe(survivor.on_broadcast, survivor.on_presence_sync)
        dead = await hub.open(TOPIC).subscribe(broken)
        await dead.track_presence({"viewer_id": "C", "viewer_kind": "customer", "joined_at": None})
        delivered = await hub.broadcast(TOPIC, "new_message", {"id": 7})
        return dead, delivered

    dead, delivered = asyncio.run(scenario())
    assert delivered == 1
    assert not dead.is_subscribed
    assert len(hub.subscribers(TOPIC)) == 1
    # Presence of the dropped subscriber is withdrawn and resynced
    assert len(survivor.syncs[-1]) == 0


def test_stalled_subscriber_is_bounded_and_dropped():
    hub = ChannelHub(send_timeout=0.05)
    healthy = Recorder()

    async def stalled(event, payload):
        await asyncio.Event().wait()

    async def scenario():
        stuck = await hub.open(TOPIC).subscribe(stalled)
        await hub.open(TOPIC).subscribe(healthy.on_broadcast)
        delivered = await asyncio.wait_for(hub.broadcast(TOPIC, "new_message", {"id": 1}), 2)
        again = await asyncio.wait_for(hub.broadcast(TOPIC, "new_message", {"id": 2}), 2)
        return stuck, delivered, again

    stuck, delivered, again = asyncio.run(scenario())
    assert delivered == 1
    assert again == 1
    assert not stuck.is_subscribed
    assert healthy.events == [("new_message", {"id": 1}), ("new_message", {"id": 2})]


def test_stalled_presence_listener_does_not_block_sync():
    hub = ChannelHub(send_timeout=0.05)
    watcher = Recorder()

    async def stalled(members):
        await asyncio.Event().wait()

    async def scenario():
        stuck = await hub.open(TOPIC).subscribe(None, stalled)
        await hub.open(TOPIC).subscribe(watcher.on_broadcast, watcher.on_presence_sync)
        joining = await hub.open(TOPIC, identity=TEST_VIEWER_IDENTITY).subscribe()
        await asyncio.wait_for(
            joining.track_presence({"viewer_id": "test-viewer", "viewer_kind": "test", "joined_at": None}), 2
        )
        return stuck

    stuck = asyncio.run(scenario())
    assert not stuck.is_subscribed
    assert [len(sync) for sync in watcher.syncs][-1] == 1

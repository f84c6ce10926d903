"""
Presence/Broadcast channel

In-memory publish/subscribe topics with presence tracking. Broadcasts are
fire-and-forget: nothing is persisted and a subscriber that is not attached at
publish time never sees the event. Within one topic, events from one publisher
reach each subscriber in publish order: a broadcast completes before the next
one starts.

Fan-out runs concurrently across subscribers and each delivery is bounded by
BROADCAST_SEND_TIMEOUT. A subscriber that fails or stalls is dropped.
"""
import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

from app.core.config import settings

logger = logging.getLogger(__name__)

BroadcastHandler = Callable[[str, Dict[str, Any]], Awaitable[None]]
PresenceHandler = Callable[[List[Dict[str, Any]]], Awaitable[None]]

TOPIC_STATUS = "status"
TOPIC_CHAT = "chat"
TOPICS = (TOPIC_STATUS, TOPIC_CHAT)

# Status sub-topic events
EVENT_STATUS_CHANGE = "status_change"
EVENT_TEST_LIVE_CHANGE = "test_live_change"
# Chat sub-topic events
EVENT_NEW_MESSAGE = "new_message"
EVENT_DELETE_MESSAGE = "delete_message"

STATE_CLOSED = "closed"
STATE_JOINED = "joined"


def topic_name(slug: str, topic: str) -> str:
    """Full channel name for one of a schedule's sub-topics"""
    if topic not in TOPICS:
        raise ValueError(f"Unknown topic: {topic}")
    return f"schedule:{slug}:{topic}"


class Channel:
    """
    One subscriber's handle on a topic.

    Lifecycle: open (closed) -> subscribe (joined) -> close (closed).
    """

    def __init__(self, hub: "ChannelHub", topic: str, identity=None):
        self.hub = hub
        self.topic = topic
        self.key = uuid.uuid4().hex
        self.identity = identity
        self.state = STATE_CLOSED
        self.presence: Optional[Dict[str, Any]] = None
        self._on_broadcast: Optional[BroadcastHandler] = None
        self._on_presence_sync: Optional[PresenceHandler] = None

    @property
    def is_subscribed(self) -> bool:
        return self.state == STATE_JOINED

    async def subscribe(
        self,
        on_broadcast: Optional[BroadcastHandler] = None,
        on_presence_sync: Optional[PresenceHandler] = None,
    ) -> "Channel":
        self._on_broadcast = on_broadcast
        self._on_presence_sync = on_presence_sync
        self.hub._attach(self)
        self.state = STATE_JOINED
        return self

    async def publish(self, event: str, payload: Dict[str, Any]) -> bool:
        """
        Send to every other subscriber of the topic.
        Returns local send success only; there is no delivery acknowledgement.
        """
        if not self.is_subscribed:
            logger.warning(f"[CHANNEL] Publish of {event} on {self.topic} dropped: channel not subscribed")
            return False
        await self.hub.broadcast(self.topic, event, payload, exclude=self.key)
        return True

    async def track_presence(self, payload: Dict[str, Any]) -> bool:
        if not self.is_subscribed:
            return False
        self.presence = dict(payload)
        await self.hub.sync_presence(self.topic)
        return True

    async def untrack(self) -> None:
        if self.presence is None:
            return
        self.presence = None
        await self.hub.sync_presence(self.topic)

    def presence_state(self) -> Dict[str, List[Dict[str, Any]]]:
        return self.hub.presence_state(self.topic)

    async def close(self) -> None:
        if not self.is_subscribed:
            return
        self.state = STATE_CLOSED
        had_presence = self.presence is not None
        self.presence = None
        self.hub._detach(self)
        if had_presence:
            await self.hub.sync_presence(self.topic)

    async def _deliver(self, event: str, payload: Dict[str, Any]) -> bool:
        if self._on_broadcast is None:
            return True
        return await self._send(self._on_broadcast(event, payload))

    async def _deliver_presence(self, members: List[Dict[str, Any]]) -> bool:
        if self._on_presence_sync is None:
            return True
        return await self._send(self._on_presence_sync(members))

    async def _send(self, delivery: Awaitable[None]) -> bool:
        try:
            await asyncio.wait_for(delivery, self.hub.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.info(
                f"[CHANNEL] Dropping subscriber {self.key} on {self.topic}: "
                f"no delivery within {self.hub.send_timeout}s"
            )
            return False
        except Exception as e:
            logger.info(f"[CHANNEL] Dropping subscriber {self.key} on {self.topic}: {e}")
            return False


class ChannelHub:
    """Registry of topics and their subscribed channels"""

    def __init__(self, send_timeout: Optional[float] = None):
        # {topic: {channel_key: Channel}}
        self._topics: Dict[str, Dict[str, Channel]] = {}
        self.send_timeout = settings.BROADCAST_SEND_TIMEOUT if send_timeout is None else send_timeout

    def open(self, topic: str, identity=None) -> Channel:
        return Channel(self, topic, identity=identity)

    def _attach(self, channel: Channel) -> None:
        self._topics.setdefault(channel.topic, {})[channel.key] = channel

    def _detach(self, channel: Channel) -> None:
        subscribers = self._topics.get(channel.topic)
        if subscribers is None:
            return
        subscribers.pop(channel.key, None)
        if not subscribers:
            del self._topics[channel.topic]

    def subscribers(self, topic: str) -> List[Channel]:
        return list(self._topics.get(topic, {}).values())

    def has_subscriber(self, topic: str, viewer_id: str) -> bool:
        return any(
            channel.identity is not None and channel.identity.viewer_id == viewer_id
            for channel in self.subscribers(topic)
        )

    def presence_state(self, topic: str) -> Dict[str, List[Dict[str, Any]]]:
        return {
            channel.key: [dict(channel.presence)]
            for channel in self.subscribers(topic)
            if channel.presence is not None
        }

    def members(self, topic: str) -> List[Dict[str, Any]]:
        return [
            {"key": key, **metas[0]}
            for key, metas in self.presence_state(topic).items()
        ]

    async def broadcast(
        self,
        topic: str,
        event: str,
        payload: Dict[str, Any],
        exclude: Optional[str] = None,
    ) -> int:
        """Deliver an event to every subscriber; returns how many accepted it."""
        targets = [channel for channel in self.subscribers(topic) if channel.key != exclude]
        results = await asyncio.gather(*(channel._deliver(event, payload) for channel in targets))
        await self._drop(topic, [channel for channel, ok in zip(targets, results) if not ok])
        return sum(1 for ok in results if ok)

    async def sync_presence(self, topic: str) -> None:
        """Push the membership snapshot to every subscriber of the topic."""
        members = self.members(topic)
        targets = self.subscribers(topic)
        results = await asyncio.gather(*(channel._deliver_presence(members) for channel in targets))
        await self._drop(topic, [channel for channel, ok in zip(targets, results) if not ok])

    async def _drop(self, topic: str, dead: List[Channel]) -> None:
        if not dead:
            return
        lost_presence = False
        for channel in dead:
            lost_presence = lost_presence or channel.presence is not None
            channel.state = STATE_CLOSED
            channel.presence = None
            self._detach(channel)
        if lost_presence:
            await self.sync_presence(topic)


hub = ChannelHub()


def get_hub() -> ChannelHub:
    """Dependency for getting the process-wide channel hub"""
    return hub

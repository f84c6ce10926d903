"""
Realtime presence/broadcast channels
"""
from .channel import (
    Channel,
    ChannelHub,
    hub,
    get_hub,
    topic_name,
    TOPIC_STATUS,
    TOPIC_CHAT,
    EVENT_STATUS_CHANGE,
    EVENT_TEST_LIVE_CHANGE,
    EVENT_NEW_MESSAGE,
    EVENT_DELETE_MESSAGE,
)

__all__ = [
    "Channel",
    "ChannelHub",
    "hub",
    "get_hub",
    "topic_name",
    "TOPIC_STATUS",
    "TOPIC_CHAT",
    "EVENT_STATUS_CHANGE",
    "EVENT_TEST_LIVE_CHANGE",
    "EVENT_NEW_MESSAGE",
    "EVENT_DELETE_MESSAGE",
]

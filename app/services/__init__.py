"""
Core services: session lifecycle, viewer presence, chat moderation, meeting widget
"""
from fastapi import Depends

from app.core.store import RecordStore, get_store
from app.realtime import ChannelHub, get_hub
from .lifecycle import SessionLifecycleController, ActionResult
from .presence import ViewerPresenceTracker
from .chat import ChatModerationPipeline


def get_lifecycle(store: RecordStore = Depends(get_store), hub: ChannelHub = Depends(get_hub)) -> SessionLifecycleController:
    return SessionLifecycleController(store, hub)


def get_presence(store: RecordStore = Depends(get_store), hub: ChannelHub = Depends(get_hub)) -> ViewerPresenceTracker:
    return ViewerPresenceTracker(store, hub)


def get_chat(store: RecordStore = Depends(get_store), hub: ChannelHub = Depends(get_hub)) -> ChatModerationPipeline:
    return ChatModerationPipeline(store, hub)


__all__ = [
    "SessionLifecycleController",
    "ViewerPresenceTracker",
    "ChatModerationPipeline",
    "ActionResult",
    "get_lifecycle",
    "get_presence",
    "get_chat",
]

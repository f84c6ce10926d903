"""
Viewer endpoints (slug-based watch page)
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Request, HTTPException, Depends
from pydantic import BaseModel

from app.core.config import settings
from app.core.errors import ScheduleNotFoundError
from app.core.security import ViewerIdentity, require_viewer
from app.core.store import RecordStore, get_store
from app.realtime import TOPIC_CHAT, ChannelHub, get_hub, topic_name
from app.services import (
    ChatModerationPipeline,
    ViewerPresenceTracker,
    get_chat,
    get_presence,
)
from app.services.chat import message_payload
from app.services.lifecycle import auto_end_at, schedule_payload
from app.services.meeting import generate_signature, widget_config
from app.services.presence import session_payload
from app.utils.datetime_utils import isoformat_local

logger = logging.getLogger(__name__)

router = APIRouter(tags=["viewer"])


class ChatSubmitRequest(BaseModel):
    display_name: Optional[str] = None
    content: str


class DetachRequest(BaseModel):
    session_id: int
    left_at: Optional[datetime] = None


class SignatureRequest(BaseModel):
    meeting_number: str
    role: int = 0


def get_schedule_by_slug(store: RecordStore, slug: str):
    schedule = store.find_one("schedules", slug=slug)
    if schedule is None:
        raise ScheduleNotFoundError(slug)
    return schedule


def is_test_mode(request: Request) -> bool:
    return request.query_params.get("mode") == "test"


@router.get("/api/watch/{slug}")
async def watch_snapshot(
    slug: str,
    request: Request,
    viewer: ViewerIdentity = Depends(require_viewer),
    store: RecordStore = Depends(get_store),
    presence: ViewerPresenceTracker = Depends(get_presence),
):
    """
    Watch page snapshot: the state a viewer projection is built from.
    Every load except test mode is written to the access log.
    """
    schedule = get_schedule_by_slug(store, slug)
    test_mode = is_test_mode(request)

    if not test_mode and not viewer.is_admin:
        presence.record_access(schedule.id, viewer)

    return {
        "schedule": schedule_payload(schedule),
        "auto_end_at": isoformat_local(auto_end_at(schedule)),
        "viewer": {
            "viewer_id": viewer.viewer_id,
            "viewer_kind": viewer.viewer_kind,
            "display_name": viewer.display_name,
        },
        "widget": widget_config(schedule, viewer.display_name or viewer.viewer_id),
        "test_mode": test_mode,
    }


@router.get("/api/watch/{slug}/chat")
async def chat_history(
    slug: str,
    viewer: ViewerIdentity = Depends(require_viewer),
    store: RecordStore = Depends(get_store),
    chat: ChatModerationPipeline = Depends(get_chat),
):
    """
    Approved chat history (oldest first)
    """
    schedule = get_schedule_by_slug(store, slug)
    return {"messages": [message_payload(m) for m in chat.load_history(schedule.id)]}


@router.post("/api/watch/{slug}/chat")
async def submit_chat(
    slug: str,
    data: ChatSubmitRequest,
    viewer: ViewerIdentity = Depends(require_viewer),
    store: RecordStore = Depends(get_store),
    hub: ChannelHub = Depends(get_hub),
    chat: ChatModerationPipeline = Depends(get_chat),
):
    """
    Submit a chat message for moderation. Nothing is broadcast until approved.
    """
    schedule = get_schedule_by_slug(store, slug)
    if settings.CHAT_REQUIRE_SUBSCRIPTION and not hub.has_subscriber(topic_name(slug, TOPIC_CHAT), viewer.viewer_id):
        raise HTTPException(status_code=409, detail="Chat channel is not connected")

    message = chat.submit(schedule.id, viewer, data.display_name, data.content)
    return {"success": True, "id": message.id, "status": message.status}


@router.post("/api/watch/{slug}/sessions")
async def open_viewing_session(
    slug: str,
    viewer: ViewerIdentity = Depends(require_viewer),
    store: RecordStore = Depends(get_store),
    presence: ViewerPresenceTracker = Depends(get_presence),
):
    """
    Open a viewing session row. Presence tracking follows on the chat channel.
    """
    schedule = get_schedule_by_slug(store, slug)
    session = await presence.attach(schedule.id, viewer)
    return session_payload(session)


@router.post("/api/session")
async def close_viewing_session(data: DetachRequest, presence: ViewerPresenceTracker = Depends(get_presence)):
    """
    Detach beacon receiver (sent while the page unloads)
    """
    session = presence.detach(data.session_id, data.left_at)
    return {"success": True, "duration_seconds": session.duration_seconds}


@router.post("/api/meeting/signature")
async def meeting_signature(data: SignatureRequest, viewer: ViewerIdentity = Depends(require_viewer)):
    """
    Sign a meeting SDK join token. Only admins may join as host.
    """
    role = data.role if viewer.is_admin else 0
    return generate_signature(data.meeting_number, role=role)

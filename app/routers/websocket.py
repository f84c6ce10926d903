"""
WebSocket endpoint exposing a schedule's presence/broadcast channels

Frames (server -> client):
    {"type": "subscribed", "topic", "members"}
    {"type": "broadcast", "event", "payload"}
    {"type": "presence_sync", "members", "count"}
    {"type": "pong"}
    {"type": "error", "detail"}
Frames (client -> server):
    {"type": "track"} | {"type": "untrack"} | {"type": "ping"}

Clients never publish; broadcasts originate in the services after a store write.
"""
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends

from app.core.database import SessionLocal
from app.core.security import resolve_identity
from app.core.store import RecordStore
from app.realtime import TOPIC_CHAT, ChannelHub, get_hub, topic_name
from app.realtime.channel import TOPICS
from app.utils.datetime_utils import isoformat_local, now_utc

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])

# Application close codes
CLOSE_NOT_FOUND = 4404
CLOSE_UNAUTHORIZED = 4401


def schedule_exists(slug: str) -> bool:
    """Short-lived lookup so no DB session is held for the socket's lifetime"""
    db = SessionLocal()
    try:
        return RecordStore(db).find_one("schedules", slug=slug) is not None
    finally:
        db.close()


@router.websocket("/ws/schedules/{slug}/{topic}")
async def schedule_channel(
    websocket: WebSocket,
    slug: str,
    topic: str,
    hub: ChannelHub = Depends(get_hub)
):
    """
    Subscribe to schedule:{slug}:{topic}. The chat topic needs a resolved viewer
    and is the only one that carries presence.
    """
    await websocket.accept()

    if topic not in TOPICS or not schedule_exists(slug):
        await websocket.send_json({"type": "error", "detail": "Channel not found"})
        await websocket.close(code=CLOSE_NOT_FOUND)
        return

    test_mode = websocket.query_params.get("mode") == "test"
    identity = resolve_identity(websocket.session, test_mode=test_mode)
    if topic == TOPIC_CHAT and identity is None:
        await websocket.send_json({"type": "error", "detail": "Not authenticated"})
        await websocket.close(code=CLOSE_UNAUTHORIZED)
        return

    async def on_broadcast(event, payload):
        await websocket.send_json({"type": "broadcast", "event": event, "payload": payload})

    async def on_presence_sync(members):
        await websocket.send_json({"type": "presence_sync", "members": members, "count": len(members)})

    name = topic_name(slug, topic)
    channel = hub.open(name, identity=identity)
    await channel.subscribe(on_broadcast, on_presence_sync)
    logger.info(f"[WS] {identity.viewer_id if identity else 'anonymous'} subscribed to {name}")

    try:
        await websocket.send_json({"type": "subscribed", "topic": name, "members": hub.members(name)})

        while True:
            try:
                data = json.loads(await websocket.receive_text())
            except ValueError:
                await websocket.send_json({"type": "error", "detail": "Frames must be JSON"})
                continue
            kind = data.get("type") if isinstance(data, dict) else None

            if kind == "ping":
                await websocket.send_json({"type": "pong"})
            elif kind == "track":
                if topic != TOPIC_CHAT:
                    await websocket.send_json({"type": "error", "detail": "Presence is only tracked on the chat channel"})
                    continue
                await channel.track_presence(identity.presence_payload(isoformat_local(now_utc())))
            elif kind == "untrack":
                await channel.untrack()
            else:
                await websocket.send_json({"type": "error", "detail": f"Unsupported frame: {kind}"})
    except WebSocketDisconnect:
        pass
    finally:
        await channel.close()
        logger.info(f"[WS] Channel {channel.key} on {name} closed")

"""
Viewer presence tracker

Two views of "who is watching":
- live presence: channel membership on the schedule's chat topic (cheap, approximate)
- viewing sessions: durable attach/detach rows for duration analytics

The two are never reconciled; a viewer whose connection died without a detach
beacon stays active in viewer_sessions but drops out of live presence.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from app.core.errors import EventNotLiveError, ScheduleNotFoundError, SessionNotFoundError
from app.core.security import ViewerIdentity
from app.core.store import RecordStore
from app.models import ViewerSession
from app.models.schedule import STATUS_LIVE
from app.realtime import TOPIC_CHAT, Channel, ChannelHub, topic_name
from app.utils.datetime_utils import isoformat_local, now_utc, to_utc

logger = logging.getLogger(__name__)


@dataclass
class PresenceSnapshot:
    count: int = 0
    viewer_ids: List[str] = field(default_factory=list)


def session_payload(session: ViewerSession) -> Dict:
    return {
        "id": session.id,
        "schedule_id": session.schedule_id,
        "customer_id": session.customer_id,
        "joined_at": isoformat_local(session.joined_at),
        "left_at": isoformat_local(session.left_at),
        "duration_seconds": session.duration_seconds,
        "is_active": session.is_active,
    }


def snapshot_from_members(members: List[Dict]) -> PresenceSnapshot:
    viewer_ids = [m.get("viewer_id") or "unknown" for m in members]
    return PresenceSnapshot(count=len(viewer_ids), viewer_ids=viewer_ids)


class ViewerPresenceTracker:
    def __init__(self, store: RecordStore, hub: ChannelHub):
        self.store = store
        self.hub = hub

    async def attach(self, event_id: int, viewer: ViewerIdentity, channel: Optional[Channel] = None) -> ViewerSession:
        """
        (a) open a viewing session row, then (b) join channel presence.
        Only valid while the schedule is live.
        """
        schedule = self.store.find_by_id("schedules", event_id)
        if schedule is None:
            raise ScheduleNotFoundError(event_id)
        if schedule.status != STATUS_LIVE:
            raise EventNotLiveError(event_id)

        joined_at = now_utc()
        session = self.store.insert("viewer_sessions", {
            "schedule_id": event_id,
            "customer_id": viewer.viewer_id,
            "joined_at": joined_at,
            "is_active": True,
        })
        logger.info(f"[PRESENCE] Session {session.id} opened for {viewer.viewer_id} on schedule {event_id}")

        if channel is not None:
            await channel.track_presence(viewer.presence_payload(isoformat_local(joined_at)))
        return session

    def detach(self, session_id: int, left_at: Optional[datetime] = None) -> ViewerSession:
        """
        Close a viewing session (receiver of the best-effort beacon).
        Repeated beacons keep the latest left_at.
        """
        session = self.store.find_by_id("viewer_sessions", session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        left_at = to_utc(left_at) or now_utc()
        if session.left_at is not None and session.left_at > left_at:
            left_at = session.left_at

        duration = None
        if session.joined_at is not None:
            duration = max(0, round((left_at - session.joined_at).total_seconds()))

        session = self.store.update("viewer_sessions", session_id, {
            "left_at": left_at,
            "duration_seconds": duration,
            "is_active": False,
        })
        logger.info(f"[PRESENCE] Session {session_id} closed after {duration}s")
        return session

    def current_viewers(self, slug: str) -> PresenceSnapshot:
        """Membership snapshot of the schedule's chat topic"""
        return snapshot_from_members(self.hub.members(topic_name(slug, TOPIC_CHAT)))

    def session_summary(self, event_id: int) -> Dict:
        sessions = self.store.list("viewer_sessions", filters={"schedule_id": event_id})
        return {
            "sessions": len(sessions),
            "active_sessions": sum(1 for s in sessions if s.is_active),
            "total_view_seconds": sum(s.duration_seconds or 0 for s in sessions),
            "unique_viewers": len({s.customer_id for s in sessions}),
        }

    def access_summary(self, event_id: int) -> Dict:
        logs = self.store.list("viewer_access_logs", filters={"schedule_id": event_id})
        return {
            "accesses": len(logs),
            "unique_customers": len({log.customer_id for log in logs}),
        }

    def record_access(self, event_id: int, viewer: ViewerIdentity):
        return self.store.insert("viewer_access_logs", {
            "schedule_id": event_id,
            "customer_id": viewer.viewer_id,
            "accessed_at": now_utc(),
        })

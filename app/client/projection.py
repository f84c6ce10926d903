"""
Viewer-side projection of a schedule

A disposable, client-local copy of server state for one event. It is built
from the watch snapshot, replaced wholesale on reload, and afterwards changed
only by the broadcast handlers below. Every value it shows can be rebuilt from
the record store, so lost broadcasts cost freshness and never correctness.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.models.schedule import STATUS_ENDED, STATUS_LIVE
from app.realtime import (
    EVENT_DELETE_MESSAGE,
    EVENT_NEW_MESSAGE,
    EVENT_STATUS_CHANGE,
    EVENT_TEST_LIVE_CHANGE,
)
from app.utils.datetime_utils import now_utc, parse_iso

logger = logging.getLogger(__name__)


class EventProjection:
    def __init__(self, snapshot: Dict[str, Any], test_mode: bool = False):
        schedule = snapshot["schedule"]
        self.event_id: int = schedule["id"]
        self.slug: str = schedule["slug"]
        self.status: str = schedule["status"]
        self.is_test_live: bool = bool(schedule.get("is_test_live"))
        self.auto_end_hours: int = schedule.get("auto_end_hours") or 3
        self.actual_start: Optional[datetime] = parse_iso(schedule.get("actual_start"))
        self.actual_end: Optional[datetime] = parse_iso(schedule.get("actual_end"))
        self.widget: Optional[Dict[str, Any]] = snapshot.get("widget")
        self.test_mode = test_mode or bool(snapshot.get("test_mode"))

        self.messages: List[Dict[str, Any]] = []
        self.members: List[Dict[str, Any]] = []
        self.subscribed_topics: set = set()

    # ==================== Mutations ====================

    def load_history(self, messages: List[Dict[str, Any]]) -> None:
        """Replace the message list with a fresh history fetch"""
        self.messages = []
        for message in messages:
            self.on_new_message(message)

    def apply(self, frame: Dict[str, Any]) -> bool:
        """
        Route a channel frame to its handler.
        Returns False for frames the projection does not care about.
        """
        kind = frame.get("type")
        if kind == "subscribed":
            self.on_subscribed(frame.get("topic", ""), frame.get("members") or [])
        elif kind == "presence_sync":
            self.on_presence_sync(frame.get("members") or [])
        elif kind == "broadcast":
            handler = {
                EVENT_STATUS_CHANGE: self.on_status_change,
                EVENT_TEST_LIVE_CHANGE: self.on_test_live_change,
                EVENT_NEW_MESSAGE: self.on_new_message,
                EVENT_DELETE_MESSAGE: self.on_delete_message,
            }.get(frame.get("event"))
            if handler is None:
                logger.debug(f"[PROJECTION] Ignoring event {frame.get('event')}")
                return False
            handler(frame.get("payload") or {})
        else:
            return False
        return True

    def on_subscribed(self, topic: str, members: List[Dict[str, Any]]) -> None:
        self.subscribed_topics.add(topic)
        if topic.endswith(":chat"):
            self.members = list(members)

    def on_presence_sync(self, members: List[Dict[str, Any]]) -> None:
        self.members = list(members)

    def on_status_change(self, payload: Dict[str, Any]) -> None:
        self.status = payload.get("status", self.status)
        self.actual_start = parse_iso(payload.get("actual_start"))
        self.actual_end = parse_iso(payload.get("actual_end"))

    def on_test_live_change(self, payload: Dict[str, Any]) -> None:
        self.is_test_live = bool(payload.get("is_test_live"))

    def on_new_message(self, payload: Dict[str, Any]) -> None:
        if any(m["id"] == payload.get("id") for m in self.messages):
            return
        self.messages.append(dict(payload))

    def on_delete_message(self, payload: Dict[str, Any]) -> None:
        message_id = payload.get("id")
        self.messages = [m for m in self.messages if m["id"] != message_id]

    # ==================== Queries ====================

    @property
    def auto_end_at(self) -> Optional[datetime]:
        if self.status != STATUS_LIVE or self.actual_start is None:
            return None
        return self.actual_start + timedelta(hours=self.auto_end_hours)

    def displayed_status(self, now: Optional[datetime] = None) -> str:
        """
        What the page shows. Local auto-end flips a live event to ended without
        any server push; the stored status is not touched.
        """
        if self.test_mode and self.is_test_live:
            return STATUS_LIVE
        deadline = self.auto_end_at
        if deadline is not None and (now or now_utc()) >= deadline:
            return STATUS_ENDED
        return self.status

    def widget_mounted(self, now: Optional[datetime] = None) -> bool:
        return self.widget is not None and self.displayed_status(now) == STATUS_LIVE

    @property
    def can_submit(self) -> bool:
        return any(topic.endswith(":chat") for topic in self.subscribed_topics)

    @property
    def viewer_count(self) -> int:
        return len(self.members)

    @property
    def viewer_ids(self) -> List[str]:
        return [m.get("viewer_id") or "unknown" for m in self.members]


class ProjectionCache:
    """Per-process projections keyed by event id"""

    def __init__(self):
        self._projections: Dict[int, EventProjection] = {}

    def load(self, snapshot: Dict[str, Any], test_mode: bool = False) -> EventProjection:
        """(Re)build the projection for the snapshot's event, discarding the old one"""
        projection = EventProjection(snapshot, test_mode=test_mode)
        self._projections[projection.event_id] = projection
        return projection

    def get(self, event_id: int) -> Optional[EventProjection]:
        return self._projections.get(event_id)

    def invalidate(self, event_id: int) -> None:
        self._projections.pop(event_id, None)

    def __len__(self) -> int:
        return len(self._projections)

"""
Session lifecycle controller

Owns a schedule's status / is_test_live / actual_start / actual_end and tells
attached viewers about every change. Persist first, broadcast second: a failed
write sends nothing, a failed broadcast keeps the write.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from app.core.errors import InvalidTransitionError, PermissionDeniedError, ScheduleNotFoundError
from app.core.security import ViewerIdentity
from app.core.store import RecordStore
from app.models import Schedule
from app.models.schedule import STATUS_ENDED, STATUS_LIVE, STATUS_UPCOMING
from app.realtime import (
    EVENT_STATUS_CHANGE,
    EVENT_TEST_LIVE_CHANGE,
    TOPIC_STATUS,
    ChannelHub,
    topic_name,
)
from app.utils.datetime_utils import isoformat_local, now_utc

logger = logging.getLogger(__name__)

# upcoming --live--> live --ended--> ended --reset--> upcoming
ALLOWED_TRANSITIONS = {
    STATUS_UPCOMING: {STATUS_LIVE},
    STATUS_LIVE: {STATUS_ENDED},
    STATUS_ENDED: {STATUS_UPCOMING},
}


@dataclass
class ActionResult:
    """Outcome of a persisted admin action"""
    record: Any
    changed: bool = True
    broadcast_sent: bool = False


def auto_end_at(schedule: Schedule) -> Optional[datetime]:
    """Instant a live schedule should stop being shown as live, if any"""
    if schedule.status != STATUS_LIVE or schedule.actual_start is None:
        return None
    return schedule.actual_start + timedelta(hours=schedule.auto_end_hours)


def is_auto_end_due(schedule: Schedule, now: Optional[datetime] = None) -> bool:
    deadline = auto_end_at(schedule)
    if deadline is None:
        return False
    return (now or now_utc()) >= deadline


def status_payload(schedule: Schedule) -> Dict[str, Any]:
    return {
        "status": schedule.status,
        "actual_start": isoformat_local(schedule.actual_start),
        "actual_end": isoformat_local(schedule.actual_end),
    }


def schedule_payload(schedule: Schedule, include_secret: bool = False) -> Dict[str, Any]:
    data = {
        "id": schedule.id,
        "slug": schedule.slug,
        "title": schedule.title,
        "speaker": schedule.speaker,
        "description": schedule.description,
        "scheduled_start": isoformat_local(schedule.scheduled_start),
        "scheduled_end": isoformat_local(schedule.scheduled_end),
        "auto_end_hours": schedule.auto_end_hours,
        "actual_start": isoformat_local(schedule.actual_start),
        "actual_end": isoformat_local(schedule.actual_end),
        "status": schedule.status,
        "is_test_live": schedule.is_test_live,
        "waiting_image_url": schedule.waiting_image_url,
        "ended_image_url": schedule.ended_image_url,
    }
    if include_secret:
        data["meeting_room_id"] = schedule.meeting_room_id
        data["meeting_room_secret"] = schedule.meeting_room_secret
        data["created_at"] = isoformat_local(schedule.created_at)
        data["updated_at"] = isoformat_local(schedule.updated_at)
    return data


class SessionLifecycleController:
    def __init__(self, store: RecordStore, hub: ChannelHub):
        self.store = store
        self.hub = hub

    def _get_schedule(self, event_id: int) -> Schedule:
        schedule = self.store.find_by_id("schedules", event_id)
        if schedule is None:
            raise ScheduleNotFoundError(event_id)
        return schedule

    async def _publish(self, schedule: Schedule, event: str, payload: Dict[str, Any]) -> bool:
        topic = topic_name(schedule.slug, TOPIC_STATUS)
        try:
            delivered = await self.hub.broadcast(topic, event, payload)
        except Exception as e:
            # The write already happened; viewers catch up on reload
            logger.error(f"[LIFECYCLE] Broadcast {event} on {topic} failed: {e}")
            return False
        logger.info(f"[LIFECYCLE] {event} on {topic} delivered to {delivered} subscribers")
        return True

    async def transition(self, event_id: int, target_status: str, actor: ViewerIdentity) -> ActionResult:
        """
        Move a schedule along upcoming -> live -> ended -> (reset) upcoming.

        Raises InvalidTransitionError for any other move and StoreError when the
        write fails; nothing is broadcast in either case.
        """
        if actor is None or not actor.is_admin:
            raise PermissionDeniedError()

        schedule = self._get_schedule(event_id)
        current = schedule.status
        if target_status not in ALLOWED_TRANSITIONS.get(current, set()):
            raise InvalidTransitionError(current, target_status)

        updates: Dict[str, Any] = {"status": target_status}
        if target_status == STATUS_LIVE:
            updates["actual_start"] = now_utc()
            updates["actual_end"] = None
        elif target_status == STATUS_ENDED:
            updates["actual_end"] = now_utc()
        else:
            # Reset: clear timestamps; session/chat history rows stay as they are
            updates["actual_start"] = None
            updates["actual_end"] = None

        schedule = self.store.update("schedules", event_id, updates)
        if schedule is None:
            raise ScheduleNotFoundError(event_id)
        logger.info(f"[LIFECYCLE] Schedule {event_id} {current} -> {target_status} by {actor.viewer_id}")

        sent = await self._publish(schedule, EVENT_STATUS_CHANGE, status_payload(schedule))
        return ActionResult(record=schedule, broadcast_sent=sent)

    async def set_test_live(self, event_id: int, enabled: bool, actor: ViewerIdentity) -> ActionResult:
        """Toggle the test-broadcast flag; never touches status."""
        if actor is None or not actor.is_admin:
            raise PermissionDeniedError()

        schedule = self._get_schedule(event_id)
        if schedule.status == STATUS_LIVE and enabled:
            logger.warning(f"[LIFECYCLE] Test broadcast enabled on live schedule {event_id}")

        schedule = self.store.update("schedules", event_id, {"is_test_live": bool(enabled)})
        if schedule is None:
            raise ScheduleNotFoundError(event_id)
        logger.info(f"[LIFECYCLE] Schedule {event_id} test live -> {bool(enabled)} by {actor.viewer_id}")

        sent = await self._publish(schedule, EVENT_TEST_LIVE_CHANGE, {"is_test_live": schedule.is_test_live})
        return ActionResult(record=schedule, broadcast_sent=sent)

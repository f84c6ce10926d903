"""
Chat moderation pipeline

viewer submit -> pending row (no broadcast) -> admin decision -> row update ->
new_message / delete_message broadcast on the schedule's chat topic.
"""
import logging
from typing import Dict, List, Optional

from app.core.config import settings
from app.core.errors import (
    InvalidDecisionError,
    InvalidMessageError,
    MessageNotFoundError,
    PermissionDeniedError,
    ScheduleNotFoundError,
)
from app.core.security import ViewerIdentity
from app.core.store import RecordStore
from app.models import ChatMessage
from app.models.chat import (
    MESSAGE_APPROVED,
    MESSAGE_DELETED,
    MESSAGE_PENDING,
    MESSAGE_REJECTED,
    MESSAGE_STATUSES,
)
from app.realtime import EVENT_DELETE_MESSAGE, EVENT_NEW_MESSAGE, TOPIC_CHAT, ChannelHub, topic_name
from app.services.lifecycle import ActionResult
from app.utils.datetime_utils import isoformat_local, now_utc

logger = logging.getLogger(__name__)

DECISIONS = (MESSAGE_APPROVED, MESSAGE_REJECTED, MESSAGE_DELETED)


def message_payload(message: ChatMessage) -> Dict:
    """Public shape of an approved message (history + new_message broadcast)"""
    return {
        "id": message.id,
        "display_name": message.display_name,
        "content": message.content,
        "created_at": isoformat_local(message.created_at),
        "customer_id": message.customer_id,
    }


def moderation_payload(message: ChatMessage) -> Dict:
    return {
        **message_payload(message),
        "schedule_id": message.schedule_id,
        "status": message.status,
        "approved_at": isoformat_local(message.approved_at),
        "approved_by": message.approved_by,
    }


def is_decision_allowed(current: str, decision: str) -> bool:
    if current == MESSAGE_DELETED:
        return False
    if decision == MESSAGE_DELETED:
        return True
    return current == MESSAGE_PENDING


class ChatModerationPipeline:
    def __init__(self, store: RecordStore, hub: ChannelHub):
        self.store = store
        self.hub = hub

    def _get_schedule(self, event_id: int):
        schedule = self.store.find_by_id("schedules", event_id)
        if schedule is None:
            raise ScheduleNotFoundError(event_id)
        return schedule

    def submit(self, event_id: int, viewer: ViewerIdentity, display_name: Optional[str], content: Optional[str]) -> ChatMessage:
        """Persist a viewer message as pending. Nothing is broadcast."""
        self._get_schedule(event_id)

        text = (content or "").strip()
        if not text:
            raise InvalidMessageError("Message is empty")
        if len(text) > settings.CHAT_MAX_LENGTH:
            raise InvalidMessageError(f"Message exceeds {settings.CHAT_MAX_LENGTH} characters")

        name = (display_name or "").strip()[:settings.CHAT_DISPLAY_NAME_MAX].strip()
        message = self.store.insert("chat_messages", {
            "schedule_id": event_id,
            "customer_id": viewer.viewer_id,
            "display_name": name or settings.CHAT_ANONYMOUS_NAME,
            "content": text,
            "status": MESSAGE_PENDING,
            "created_at": now_utc(),
        })
        logger.info(f"[CHAT] Message {message.id} submitted by {viewer.viewer_id} on schedule {event_id}")
        return message

    async def decide(self, message_id: int, decision: str, actor: ViewerIdentity) -> ActionResult:
        """
        Apply an admin decision.

        approved: pending only, broadcasts new_message
        rejected: pending only, no broadcast
        deleted: any non-deleted, broadcasts delete_message
        Repeating the decision a message already carries is a no-op.
        """
        if actor is None or not actor.is_admin:
            raise PermissionDeniedError()
        if decision not in DECISIONS:
            raise InvalidDecisionError("unknown", decision)

        message = self.store.find_by_id("chat_messages", message_id)
        if message is None:
            raise MessageNotFoundError(message_id)

        if message.status == decision:
            return ActionResult(record=message, changed=False)
        if not is_decision_allowed(message.status, decision):
            raise InvalidDecisionError(message.status, decision)

        updates = {"status": decision}
        if decision == MESSAGE_APPROVED:
            updates["approved_at"] = now_utc()
            updates["approved_by"] = actor.viewer_id
        message = self.store.update("chat_messages", message_id, updates)
        if message is None:
            raise MessageNotFoundError(message_id)
        logger.info(f"[CHAT] Message {message_id} {decision} by {actor.viewer_id}")

        sent = False
        if decision == MESSAGE_APPROVED:
            sent = await self._publish(message, EVENT_NEW_MESSAGE, message_payload(message))
        elif decision == MESSAGE_DELETED:
            sent = await self._publish(message, EVENT_DELETE_MESSAGE, {"id": message.id})
        return ActionResult(record=message, broadcast_sent=sent)

    async def _publish(self, message: ChatMessage, event: str, payload: Dict) -> bool:
        schedule = self.store.find_by_id("schedules", message.schedule_id)
        if schedule is None:
            logger.warning(f"[CHAT] Schedule {message.schedule_id} gone; {event} for {message.id} not sent")
            return False
        topic = topic_name(schedule.slug, TOPIC_CHAT)
        try:
            await self.hub.broadcast(topic, event, payload)
        except Exception as e:
            logger.error(f"[CHAT] Broadcast {event} on {topic} failed: {e}")
            return False
        return True

    def load_history(self, event_id: int) -> List[ChatMessage]:
        """Most recent approved messages, oldest first"""
        self._get_schedule(event_id)
        recent = self.store.list(
            "chat_messages",
            filters={"schedule_id": event_id, "status": MESSAGE_APPROVED},
            order_by="created_at",
            descending=True,
            limit=settings.CHAT_HISTORY_LIMIT,
        )
        return list(reversed(recent))

    def load_moderation_queue(self, event_id: int, status: Optional[str] = None) -> List[ChatMessage]:
        """Most recent messages for review, newest first"""
        self._get_schedule(event_id)
        filters = {"schedule_id": event_id}
        if status:
            if status not in MESSAGE_STATUSES:
                raise InvalidMessageError(f"Unknown status filter: {status}")
            filters["status"] = status
        return self.store.list(
            "chat_messages",
            filters=filters,
            order_by="created_at",
            descending=True,
            limit=settings.MODERATION_QUEUE_LIMIT,
        )

    def status_counts(self, event_id: int) -> Dict[str, int]:
        return {
            status: self.store.count("chat_messages", {"schedule_id": event_id, "status": status})
            for status in MESSAGE_STATUSES
        }

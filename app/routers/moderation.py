"""
Chat moderation endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.core.security import ViewerIdentity, require_admin
from app.services import ChatModerationPipeline, get_chat
from app.services.chat import moderation_payload

router = APIRouter(prefix="/api/moderation", tags=["moderation"])


class DecisionRequest(BaseModel):
    decision: str  # approved | rejected | deleted


@router.get("/{schedule_id}/messages")
async def get_messages_for_moderation(
    schedule_id: int,
    status: Optional[str] = None,
    chat: ChatModerationPipeline = Depends(get_chat),
    admin: ViewerIdentity = Depends(require_admin)
):
    """
    Moderation queue, newest first. Refreshed by polling.
    """
    messages = chat.load_moderation_queue(schedule_id, status=status)
    return {
        "messages": [moderation_payload(m) for m in messages],
        "counts": chat.status_counts(schedule_id),
    }


@router.post("/messages/{message_id}/decision")
async def decide_message(
    message_id: int,
    payload: DecisionRequest,
    chat: ChatModerationPipeline = Depends(get_chat),
    admin: ViewerIdentity = Depends(require_admin)
):
    """
    Approve, reject or delete a message
    """
    result = await chat.decide(message_id, payload.decision, admin)
    return {
        "success": True,
        "message": moderation_payload(result.record),
        "changed": result.changed,
        "broadcast_sent": result.broadcast_sent,
    }

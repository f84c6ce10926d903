"""
Admin console endpoints
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from app.core.config import settings
from app.core.errors import CustomerNotFoundError, ScheduleNotFoundError
from app.core.security import ViewerIdentity, require_admin
from app.core.store import RecordStore, get_store
from app.models.schedule import SCHEDULE_STATUSES, STATUS_UPCOMING
from app.services import (
    ChatModerationPipeline,
    SessionLifecycleController,
    ViewerPresenceTracker,
    get_chat,
    get_lifecycle,
    get_presence,
)
from app.services.lifecycle import auto_end_at, is_auto_end_due, schedule_payload
from app.services.presence import session_payload
from app.utils.datetime_utils import from_local_input, isoformat_local, now_utc
from app.utils.identifiers import generate_customer_id, generate_slug

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

# Attempts before giving up on a unique generated identifier
MAX_ID_ATTEMPTS = 5


class ScheduleCreateRequest(BaseModel):
    title: str
    speaker: Optional[str] = None
    description: Optional[str] = None
    scheduled_start: datetime
    scheduled_end: Optional[datetime] = None
    auto_end_hours: int = Field(default=settings.AUTO_END_HOURS_DEFAULT, ge=1, le=settings.AUTO_END_HOURS_MAX)
    meeting_room_id: Optional[str] = None
    meeting_room_secret: Optional[str] = None
    waiting_image_url: Optional[str] = None
    ended_image_url: Optional[str] = None


class ScheduleUpdateRequest(BaseModel):
    title: Optional[str] = None
    speaker: Optional[str] = None
    description: Optional[str] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    auto_end_hours: Optional[int] = Field(default=None, ge=1, le=settings.AUTO_END_HOURS_MAX)
    meeting_room_id: Optional[str] = None
    meeting_room_secret: Optional[str] = None
    waiting_image_url: Optional[str] = None
    ended_image_url: Optional[str] = None


class StatusRequest(BaseModel):
    status: str


class TestLiveRequest(BaseModel):
    enabled: bool


class CustomerCreateRequest(BaseModel):
    name: str
    customer_id: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    memo: Optional[str] = None
    is_active: bool = True


class CustomerUpdateRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    memo: Optional[str] = None
    is_active: Optional[bool] = None


def get_schedule_or_404(store: RecordStore, schedule_id: int):
    schedule = store.find_by_id("schedules", schedule_id)
    if schedule is None:
        raise ScheduleNotFoundError(schedule_id)
    return schedule


def customer_payload(customer) -> dict:
    return {
        "id": customer.id,
        "customer_id": customer.customer_id,
        "name": customer.name,
        "phone": customer.phone,
        "email": customer.email,
        "memo": customer.memo,
        "is_active": customer.is_active,
        "created_at": isoformat_local(customer.created_at),
    }


# ==================== Schedules ====================

@router.get("/schedules")
async def list_schedules(
    status: Optional[str] = None,
    store: RecordStore = Depends(get_store),
    admin: ViewerIdentity = Depends(require_admin)
):
    """
    List schedules, newest start first
    """
    filters = {}
    if status:
        if status not in SCHEDULE_STATUSES:
            raise HTTPException(status_code=400, detail=f"Unknown status: {status}")
        filters["status"] = status
    schedules = store.list("schedules", filters=filters, order_by="scheduled_start", descending=True)
    return {"schedules": [schedule_payload(s) for s in schedules]}


@router.post("/schedules")
async def create_schedule(
    payload: ScheduleCreateRequest,
    store: RecordStore = Depends(get_store),
    admin: ViewerIdentity = Depends(require_admin)
):
    """
    Create a schedule. Times without an offset are read as local wall-clock time.
    """
    title = payload.title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")

    slug = None
    for _ in range(MAX_ID_ATTEMPTS):
        candidate = generate_slug()
        if store.find_one("schedules", slug=candidate) is None:
            slug = candidate
            break
    if slug is None:
        raise HTTPException(status_code=500, detail="Could not allocate a unique slug")

    schedule = store.insert("schedules", {
        "title": title,
        "speaker": payload.speaker,
        "description": payload.description,
        "slug": slug,
        "scheduled_start": from_local_input(payload.scheduled_start),
        "scheduled_end": from_local_input(payload.scheduled_end),
        "auto_end_hours": payload.auto_end_hours,
        "status": STATUS_UPCOMING,
        "is_test_live": False,
        "meeting_room_id": payload.meeting_room_id,
        "meeting_room_secret": payload.meeting_room_secret,
        "waiting_image_url": payload.waiting_image_url,
        "ended_image_url": payload.ended_image_url,
    })
    logger.info(f"[ADMIN] Schedule {schedule.id} created ({slug})")
    return {"success": True, "schedule": schedule_payload(schedule, include_secret=True)}


@router.get("/schedules/{schedule_id}")
async def get_schedule(
    schedule_id: int,
    store: RecordStore = Depends(get_store),
    chat: ChatModerationPipeline = Depends(get_chat),
    presence: ViewerPresenceTracker = Depends(get_presence),
    admin: ViewerIdentity = Depends(require_admin)
):
    """
    Schedule detail with moderation counts and viewing summary.
    auto_end_due flags a live schedule whose auto-end has passed but was not ended.
    """
    schedule = get_schedule_or_404(store, schedule_id)
    return {
        "schedule": schedule_payload(schedule, include_secret=True),
        "auto_end_at": isoformat_local(auto_end_at(schedule)),
        "auto_end_due": is_auto_end_due(schedule, now_utc()),
        "chat_counts": chat.status_counts(schedule_id),
        "sessions": presence.session_summary(schedule_id),
        "access": presence.access_summary(schedule_id),
    }


@router.put("/schedules/{schedule_id}")
async def update_schedule(
    schedule_id: int,
    payload: ScheduleUpdateRequest,
    store: RecordStore = Depends(get_store),
    admin: ViewerIdentity = Depends(require_admin)
):
    """
    Edit display fields and room settings. Status changes go through /status.
    """
    get_schedule_or_404(store, schedule_id)
    updates = payload.model_dump(exclude_unset=True)
    if "title" in updates:
        updates["title"] = (updates["title"] or "").strip()
        if not updates["title"]:
            raise HTTPException(status_code=400, detail="Title is required")
    if "scheduled_start" in updates:
        if updates["scheduled_start"] is None:
            raise HTTPException(status_code=400, detail="scheduled_start is required")
        updates["scheduled_start"] = from_local_input(updates["scheduled_start"])
    if "scheduled_end" in updates:
        updates["scheduled_end"] = from_local_input(updates["scheduled_end"])
    if "auto_end_hours" in updates and updates["auto_end_hours"] is None:
        del updates["auto_end_hours"]

    schedule = store.update("schedules", schedule_id, updates)
    if schedule is None:
        raise ScheduleNotFoundError(schedule_id)
    return {"success": True, "schedule": schedule_payload(schedule, include_secret=True)}


@router.delete("/schedules/{schedule_id}")
async def delete_schedule(
    schedule_id: int,
    store: RecordStore = Depends(get_store),
    admin: ViewerIdentity = Depends(require_admin)
):
    """
    Delete a schedule and its dependent rows.
    Each step commits on its own; a failure part-way leaves earlier steps applied.
    """
    get_schedule_or_404(store, schedule_id)
    removed = {}
    for collection in ("chat_messages", "viewer_sessions", "viewer_access_logs"):
        removed[collection] = store.delete_where(collection, schedule_id=schedule_id)
    store.delete("schedules", schedule_id)
    logger.info(f"[ADMIN] Schedule {schedule_id} deleted with {removed}")
    return {"success": True, "removed": removed}


@router.post("/schedules/{schedule_id}/status")
async def change_status(
    schedule_id: int,
    payload: StatusRequest,
    lifecycle: SessionLifecycleController = Depends(get_lifecycle),
    admin: ViewerIdentity = Depends(require_admin)
):
    """
    Move the schedule along upcoming -> live -> ended -> upcoming ("reset")
    """
    target = STATUS_UPCOMING if payload.status == "reset" else payload.status
    result = await lifecycle.transition(schedule_id, target, admin)
    return {
        "success": True,
        "schedule": schedule_payload(result.record),
        "broadcast_sent": result.broadcast_sent,
    }


@router.post("/schedules/{schedule_id}/test-live")
async def change_test_live(
    schedule_id: int,
    payload: TestLiveRequest,
    lifecycle: SessionLifecycleController = Depends(get_lifecycle),
    admin: ViewerIdentity = Depends(require_admin)
):
    result = await lifecycle.set_test_live(schedule_id, payload.enabled, admin)
    return {
        "success": True,
        "is_test_live": result.record.is_test_live,
        "broadcast_sent": result.broadcast_sent,
    }


@router.get("/schedules/{schedule_id}/viewers")
async def current_viewers(
    schedule_id: int,
    store: RecordStore = Depends(get_store),
    presence: ViewerPresenceTracker = Depends(get_presence),
    admin: ViewerIdentity = Depends(require_admin)
):
    """
    Live presence on the schedule's chat channel
    """
    schedule = get_schedule_or_404(store, schedule_id)
    snapshot = presence.current_viewers(schedule.slug)
    return {"count": snapshot.count, "viewer_ids": snapshot.viewer_ids}


@router.get("/schedules/{schedule_id}/sessions")
async def viewing_sessions(
    schedule_id: int,
    store: RecordStore = Depends(get_store),
    presence: ViewerPresenceTracker = Depends(get_presence),
    admin: ViewerIdentity = Depends(require_admin)
):
    get_schedule_or_404(store, schedule_id)
    sessions = store.list("viewer_sessions", filters={"schedule_id": schedule_id}, order_by="joined_at", descending=True)
    return {
        "summary": presence.session_summary(schedule_id),
        "sessions": [session_payload(s) for s in sessions],
    }


@router.get("/schedules/{schedule_id}/access-logs")
async def access_logs(
    schedule_id: int,
    store: RecordStore = Depends(get_store),
    presence: ViewerPresenceTracker = Depends(get_presence),
    admin: ViewerIdentity = Depends(require_admin)
):
    get_schedule_or_404(store, schedule_id)
    logs = store.list("viewer_access_logs", filters={"schedule_id": schedule_id}, order_by="accessed_at", descending=True)
    return {
        "summary": presence.access_summary(schedule_id),
        "logs": [
            {"id": log.id, "customer_id": log.customer_id, "accessed_at": isoformat_local(log.accessed_at)}
            for log in logs
        ],
    }


# ==================== Customers ====================

@router.get("/customers")
async def list_customers(
    store: RecordStore = Depends(get_store),
    admin: ViewerIdentity = Depends(require_admin)
):
    customers = store.list("customers", order_by="created_at", descending=True)
    return {"customers": [customer_payload(c) for c in customers]}


@router.post("/customers")
async def create_customer(
    payload: CustomerCreateRequest,
    store: RecordStore = Depends(get_store),
    admin: ViewerIdentity = Depends(require_admin)
):
    """
    Register a customer. A login id is generated unless one is given.
    """
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required")

    if payload.customer_id:
        customer_id = payload.customer_id.strip().upper()
        if store.find_one("customers", customer_id=customer_id) is not None:
            raise HTTPException(status_code=400, detail="Customer id already exists")
    else:
        customer_id = None
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = generate_customer_id()
            if store.find_one("customers", customer_id=candidate) is None:
                customer_id = candidate
                break
        if customer_id is None:
            raise HTTPException(status_code=500, detail="Could not allocate a unique customer id")

    customer = store.insert("customers", {
        "customer_id": customer_id,
        "name": name,
        "phone": payload.phone,
        "email": payload.email,
        "memo": payload.memo,
        "is_active": payload.is_active,
    })
    logger.info(f"[ADMIN] Customer {customer_id} created")
    return {"success": True, "customer": customer_payload(customer)}


@router.put("/customers/{customer_pk}")
async def update_customer(
    customer_pk: int,
    payload: CustomerUpdateRequest,
    store: RecordStore = Depends(get_store),
    admin: ViewerIdentity = Depends(require_admin)
):
    updates = payload.model_dump(exclude_unset=True)
    if "name" in updates:
        updates["name"] = (updates["name"] or "").strip()
        if not updates["name"]:
            raise HTTPException(status_code=400, detail="Name is required")
    if "is_active" in updates and updates["is_active"] is None:
        del updates["is_active"]
    customer = store.update("customers", customer_pk, updates)
    if customer is None:
        raise CustomerNotFoundError(customer_pk)
    return {"success": True, "customer": customer_payload(customer)}


@router.post("/customers/{customer_pk}/toggle-active")
async def toggle_customer(
    customer_pk: int,
    store: RecordStore = Depends(get_store),
    admin: ViewerIdentity = Depends(require_admin)
):
    customer = store.find_by_id("customers", customer_pk)
    if customer is None:
        raise CustomerNotFoundError(customer_pk)
    customer = store.update("customers", customer_pk, {"is_active": not customer.is_active})
    return {"success": True, "is_active": customer.is_active}


@router.delete("/customers/{customer_pk}")
async def delete_customer(
    customer_pk: int,
    store: RecordStore = Depends(get_store),
    admin: ViewerIdentity = Depends(require_admin)
):
    """
    Remove a customer. Their chat and viewing rows are kept for the event history.
    """
    if not store.delete("customers", customer_pk):
        raise CustomerNotFoundError(customer_pk)
    return {"success": True}

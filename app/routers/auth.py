"""
Authentication endpoints
"""
import logging
from typing import Optional

from fastapi import APIRouter, Request, HTTPException, Depends
from pydantic import BaseModel

from app.core.errors import CustomerNotFoundError
from app.core.security import (
    ADMIN_IDENTITY,
    VIEWER_CUSTOMER,
    ViewerIdentity,
    get_identity,
    login_session,
    verify_admin_password,
)
from app.core.store import RecordStore, get_store
from app.models.schedule import STATUS_LIVE, STATUS_UPCOMING

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class CustomerLoginRequest(BaseModel):
    customer_id: str


class AdminLoginRequest(BaseModel):
    password: str


def latest_slug(store: RecordStore) -> Optional[str]:
    """Slug of the next schedule a customer should be sent to (live or upcoming)"""
    schedule = store.list(
        "schedules",
        filters={"status": [STATUS_UPCOMING, STATUS_LIVE]},
        order_by="scheduled_start",
        limit=1,
    )
    return schedule[0].slug if schedule else None


@router.post("/login")
async def customer_login(request: Request, data: CustomerLoginRequest, store: RecordStore = Depends(get_store)):
    """
    Customer login with the issued customer id
    """
    customer_id = data.customer_id.strip().upper()
    if not customer_id:
        raise HTTPException(status_code=400, detail="Customer id is required")

    customer = store.find_one("customers", customer_id=customer_id)
    if customer is None:
        raise CustomerNotFoundError(customer_id)
    if not customer.is_active:
        raise HTTPException(status_code=403, detail="This customer id is disabled")

    login_session(request.session, ViewerIdentity(VIEWER_CUSTOMER, customer.customer_id, customer.name))
    logger.info(f"[AUTH] Customer {customer.customer_id} logged in")
    return {
        "success": True,
        "customer": {"customer_id": customer.customer_id, "name": customer.name},
        "latest_slug": latest_slug(store),
    }


@router.post("/admin/login")
async def admin_login(request: Request, data: AdminLoginRequest):
    """
    Admin console login
    """
    if not verify_admin_password(data.password):
        logger.warning("[AUTH] Failed admin login attempt")
        raise HTTPException(status_code=401, detail="Invalid password")

    login_session(request.session, ADMIN_IDENTITY)
    logger.info("[AUTH] Admin logged in")
    return {"success": True}


@router.get("/me")
async def get_current_viewer(request: Request):
    """
    Get the identity bound to the current session
    """
    identity = get_identity(request)
    if identity is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return {
        "viewer_kind": identity.viewer_kind,
        "viewer_id": identity.viewer_id,
        "display_name": identity.display_name,
        "is_admin": identity.is_admin,
    }


@router.post("/logout")
async def logout(request: Request):
    """
    Logout current viewer
    """
    request.session.clear()
    return {"success": True}

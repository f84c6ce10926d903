"""
Identity gate

Resolves the signed session cookie into a ViewerIdentity. The core services only
ever receive the resolved identity; credential checks stay here.
"""
import hmac
from dataclasses import dataclass
from typing import Mapping, Optional

from fastapi import HTTPException, Request

from app.core.config import settings

VIEWER_ADMIN = "admin"
VIEWER_CUSTOMER = "customer"

ADMIN_VIEWER_ID = "ADMIN"
ADMIN_DISPLAY_NAME = "管理者"
TEST_VIEWER_ID = "test-viewer"
TEST_VIEWER_NAME = "テスト視聴者"


@dataclass(frozen=True)
class ViewerIdentity:
    viewer_kind: str
    viewer_id: str
    display_name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.viewer_kind == VIEWER_ADMIN

    def presence_payload(self, joined_at: str) -> dict:
        return {"viewer_id": self.viewer_id, "viewer_kind": self.viewer_kind, "joined_at": joined_at}


ADMIN_IDENTITY = ViewerIdentity(VIEWER_ADMIN, ADMIN_VIEWER_ID, ADMIN_DISPLAY_NAME)
TEST_VIEWER_IDENTITY = ViewerIdentity(VIEWER_CUSTOMER, TEST_VIEWER_ID, TEST_VIEWER_NAME)


def verify_admin_password(password: str) -> bool:
    """Constant-time comparison against the configured admin password"""
    if not password or not settings.ADMIN_PASSWORD:
        return False
    return hmac.compare_digest(password.encode(), settings.ADMIN_PASSWORD.encode())


def resolve_identity(session: Mapping, test_mode: bool = False) -> Optional[ViewerIdentity]:
    """
    Resolve a session mapping into an identity.

    Test-mode pages fall back to the fixed test viewer when nobody is logged in.
    """
    kind = session.get("viewer_kind")
    viewer_id = session.get("viewer_id")
    if kind == VIEWER_ADMIN:
        return ADMIN_IDENTITY
    if kind == VIEWER_CUSTOMER and viewer_id:
        return ViewerIdentity(VIEWER_CUSTOMER, viewer_id, session.get("display_name") or "")
    if test_mode:
        return TEST_VIEWER_IDENTITY
    return None


def login_session(session: dict, identity: ViewerIdentity) -> None:
    session.clear()
    session["viewer_kind"] = identity.viewer_kind
    session["viewer_id"] = identity.viewer_id
    session["display_name"] = identity.display_name


def get_identity(request: Request) -> Optional[ViewerIdentity]:
    """Optional identity (None when not logged in)"""
    test_mode = request.query_params.get("mode") == "test"
    return resolve_identity(request.session, test_mode=test_mode)


def require_viewer(request: Request) -> ViewerIdentity:
    """Require any logged-in viewer (customer, admin, or test-mode viewer)"""
    identity = get_identity(request)
    if identity is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return identity


def require_admin(request: Request) -> ViewerIdentity:
    """Require admin role"""
    identity = resolve_identity(request.session)
    if identity is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    if not identity.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return identity

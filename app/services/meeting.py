"""
Meeting widget adapter.

The video widget is opaque: it gets a room id, the room secret and a display
name, plus a signed SDK join token. Nothing comes back from it.
"""
import time
from typing import Dict, Optional

import jwt

from app.core.config import settings
from app.core.errors import MeetingNotConfiguredError
from app.models import Schedule

# Clock-skew allowance: the SDK rejects tokens issued "in the future"
IAT_SKEW_SECONDS = 30


def widget_config(schedule: Schedule, display_name: str) -> Optional[Dict[str, str]]:
    """Props for the embedded widget, or None while the room is not configured"""
    if not schedule.meeting_room_id:
        return None
    return {
        "room_id": schedule.meeting_room_id,
        "room_secret": schedule.meeting_room_secret or "",
        "display_name": display_name,
    }


def generate_signature(meeting_number: str, role: int = 0, now: Optional[float] = None) -> Dict[str, str]:
    """
    Sign a meeting SDK join token (HS256).

    Returns: {"signature": <jwt>, "sdk_key": <key>}
    """
    if not meeting_number:
        raise MeetingNotConfiguredError("Meeting number is required")
    if not settings.MEETING_SDK_KEY or not settings.MEETING_SDK_SECRET:
        raise MeetingNotConfiguredError("Meeting SDK credentials are not configured")

    iat = int(now if now is not None else time.time()) - IAT_SKEW_SECONDS
    exp = iat + settings.MEETING_SIGNATURE_TTL
    payload = {
        "appKey": settings.MEETING_SDK_KEY,
        "mn": str(meeting_number),
        "role": int(role),
        "iat": iat,
        "exp": exp,
        "tokenExp": exp,
    }
    token = jwt.encode(payload, settings.MEETING_SDK_SECRET, algorithm="HS256")
    return {"signature": token, "sdk_key": settings.MEETING_SDK_KEY}

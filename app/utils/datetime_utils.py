"""
DateTime utilities for handling timezone conversions

Instants are stored as naive UTC and rendered in the configured local timezone.
"""
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo
from app.core.config import settings

LOCAL_TZ = ZoneInfo(settings.TIMEZONE)


def now_utc() -> datetime:
    """
    Get current datetime as naive UTC (storage form)
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert any datetime to naive UTC.
    Naive input is assumed to already be UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def from_local_input(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert an admin-entered datetime to naive UTC.
    Naive input is wall-clock time in the local timezone.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=LOCAL_TZ)
    return to_utc(dt)


def to_local(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert any datetime to the local timezone
    """
    if dt is None:
        return None

    # If datetime is naive (no timezone), assume it's UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(LOCAL_TZ)


def isoformat_local(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 string in local time, or None"""
    if dt is None:
        return None
    return to_local(dt).isoformat()


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string (as found in broadcast payloads) into naive UTC
    """
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(value))

"""
Best-effort detach beacon

Sent as the viewer page is torn down. Loss is expected and tolerated: the
session simply stays active in the analytics.
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional, Set

import httpx

from app.core.config import settings
from app.utils.datetime_utils import isoformat_local, now_utc

logger = logging.getLogger(__name__)

BEACON_PATH = "/api/session"

# Strong references to in-flight beacons until they finish
_pending: Set["asyncio.Task[bool]"] = set()


async def send_detach_beacon(
    base_url: str,
    session_id: int,
    left_at: Optional[datetime] = None,
    timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """
    POST {session_id, left_at} to the session endpoint. Never raises.
    """
    body = {"session_id": session_id, "left_at": isoformat_local(left_at or now_utc())}
    timeout = settings.BEACON_TIMEOUT if timeout is None else timeout

    try:
        if client is not None:
            response = await client.post(BEACON_PATH, json=body, timeout=timeout)
        else:
            async with httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport) as own:
                response = await own.post(BEACON_PATH, json=body)
    except httpx.HTTPError as e:
        logger.info(f"[BEACON] Detach for session {session_id} lost: {e}")
        return False

    if response.status_code >= 400:
        logger.info(f"[BEACON] Detach for session {session_id} refused: HTTP {response.status_code}")
        return False
    return True


def dispatch_detach_beacon(base_url: str, session_id: int, **kwargs) -> "asyncio.Task[bool]":
    """
    Schedule the beacon on the running loop and return immediately.
    The caller may await the task but never has to.
    """
    task = asyncio.get_running_loop().create_task(send_detach_beacon(base_url, session_id, **kwargs))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task

"""
Schedule monitoring tasks
"""
import logging

from celery import shared_task

from app.core.database import SessionLocal
from app.core.errors import StoreError
from app.core.store import RecordStore
from app.models.schedule import STATUS_LIVE
from app.services.lifecycle import auto_end_at, is_auto_end_due
from app.utils.datetime_utils import isoformat_local, now_utc

logger = logging.getLogger(__name__)


def find_overdue_live_events(store: RecordStore, now=None):
    """Live schedules whose auto-end instant has passed"""
    now = now or now_utc()
    live = store.list("schedules", filters={"status": STATUS_LIVE}, order_by="actual_start")
    return [s for s in live if is_auto_end_due(s, now)]


@shared_task(name="app.tasks.schedule.check_overdue_live_events")
def check_overdue_live_events():
    """
    Report live schedules past their auto-end so staff can end them.
    Viewers already show them as ended; the stored status is left alone.
    """
    db = SessionLocal()
    try:
        overdue = find_overdue_live_events(RecordStore(db))
        for schedule in overdue:
            logger.warning(
                f"[SCHEDULE] Schedule {schedule.id} ({schedule.slug}) still live past auto-end "
                f"{isoformat_local(auto_end_at(schedule))}"
            )
        return {"success": True, "overdue_ids": [s.id for s in overdue]}
    except StoreError as e:
        logger.error(f"[SCHEDULE] Overdue check failed: {e}")
        return {"success": False, "error": str(e)}
    finally:
        db.close()

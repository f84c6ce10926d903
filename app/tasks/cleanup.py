"""
Cleanup tasks for orphaned rows
"""
import logging

from celery import shared_task

from app.core.database import SessionLocal
from app.core.errors import StoreError
from app.core.store import RecordStore

logger = logging.getLogger(__name__)

# Collections whose rows hang off a schedule
DEPENDENT_COLLECTIONS = ("chat_messages", "viewer_sessions", "viewer_access_logs")


def remove_orphans(store: RecordStore) -> dict:
    """Delete dependent rows whose schedule no longer exists"""
    schedule_ids = store.ids_of("schedules")
    removed = {}
    for collection in DEPENDENT_COLLECTIONS:
        model = store.model_for(collection)
        orphan_ids = {
            row.schedule_id
            for row in store.list(collection)
            if row.schedule_id not in schedule_ids
        }
        removed[collection] = store.delete_where(collection, schedule_id=orphan_ids) if orphan_ids else 0
        if removed[collection]:
            logger.info(f"[CLEANUP] Removed {removed[collection]} orphaned {model.__tablename__} rows")
    return removed


@shared_task(name="app.tasks.cleanup.cleanup_orphaned_rows")
def cleanup_orphaned_rows():
    """
    Remove rows left behind by a schedule delete that stopped part-way
    """
    db = SessionLocal()
    try:
        removed = remove_orphans(RecordStore(db))
        logger.info(f"[CLEANUP] Orphan cleanup finished: {removed}")
        return {"success": True, "removed": removed}
    except StoreError as e:
        logger.error(f"[CLEANUP] Orphan cleanup failed: {e}")
        return {"success": False, "error": str(e)}
    finally:
        db.close()

"""
Tests for Celery tasks
"""
from datetime import timedelta

from app.tasks import check_overdue_live_events, cleanup_orphaned_rows
from app.utils.datetime_utils import now_utc
from conftest import make_schedule


def test_overdue_live_events_are_reported_not_ended(store):
    overdue = make_schedule(store, status="live", actual_start=now_utc() - timedelta(hours=4), auto_end_hours=3)
    make_schedule(store, status="live", actual_start=now_utc() - timedelta(hours=1), auto_end_hours=3)
    make_schedule(store, status="ended", actual_start=now_utc() - timedelta(hours=10))
    overdue_id = overdue.id

    result = check_overdue_live_events()
    assert result == {"success": True, "overdue_ids": [overdue_id]}

    store.db.expire_all()
    assert store.find_by_id("schedules", overdue_id).status == "live"


def test_cleanup_removes_only_orphans(store):
    kept = make_schedule(store)
    gone = make_schedule(store)
    for schedule in (kept, gone):
        store.insert("chat_messages", {
            "schedule_id": schedule.id, "customer_id": "A", "display_name": "A", "content": "hi", "status": "pending",
        })
        store.insert("viewer_sessions", {"schedule_id": schedule.id, "customer_id": "A", "is_active": True})
    kept_id = kept.id
    # Schedule row removed without its dependents (a cascade that stopped part-way)
    store.delete("schedules", gone.id)

    result = cleanup_orphaned_rows()
    assert result["success"] is True
    assert result["removed"] == {"chat_messages": 1, "viewer_sessions": 1, "viewer_access_logs": 0}

    store.db.expire_all()
    assert store.count("chat_messages") == 1
    assert store.count("viewer_sessions", {"schedule_id": kept_id}) == 1


def test_beat_schedules_overdue_check():
    from app.core.celery_app import celery_app

    entry = celery_app.conf.beat_schedule["check-overdue-live-events"]
    assert entry["task"] == "app.tasks.schedule.check_overdue_live_events"
    assert "app.tasks.cleanup.cleanup_orphaned_rows" in celery_app.tasks

"""
Celery Tasks
"""
from .schedule import check_overdue_live_events
from .cleanup import cleanup_orphaned_rows

__all__ = [
    "check_overdue_live_events",
    "cleanup_orphaned_rows",
]

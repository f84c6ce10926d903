"""Record store adapter (repository pattern).

Thin CRUD + ordered/filtered query access to the five record collections.
No business logic lives here; every failure is rolled back and raised as StoreError.
"""
import logging
from typing import Any, Dict, List, Optional, Set

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import StoreError
from app.models import ChatMessage, Customer, Schedule, ViewerAccessLog, ViewerSession

logger = logging.getLogger(__name__)

COLLECTIONS = {
    "customers": Customer,
    "schedules": Schedule,
    "chat_messages": ChatMessage,
    "viewer_sessions": ViewerSession,
    "viewer_access_logs": ViewerAccessLog,
}


class RecordStore:
    """
    CRUD over the portal's record collections.

    Filters are ``{column: value}`` equality matches; a list/tuple/set value
    matches any of its members.
    """

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def model_for(collection: str):
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    def _conditions(self, model, filters: Optional[Dict[str, Any]]) -> list:
        conditions = []
        for column, value in (filters or {}).items():
            attr = getattr(model, column)
            if isinstance(value, (list, tuple, set, frozenset)):
                conditions.append(attr.in_(list(value)))
            elif value is None:
                conditions.append(attr.is_(None))
            else:
                conditions.append(attr == value)
        return conditions

    def _fail(self, action: str, collection: str, error: Exception) -> StoreError:
        self.db.rollback()
        logger.error(f"[STORE] {action} on {collection} failed: {error}")
        return StoreError(f"Record store unavailable ({action} {collection})")

    # ==================== Reads ====================

    def find_by_id(self, collection: str, record_id: int):
        model = self.model_for(collection)
        try:
            return self.db.get(model, record_id)
        except SQLAlchemyError as e:
            raise self._fail("find_by_id", collection, e)

    def find_one(self, collection: str, **filters):
        rows = self.list(collection, filters=filters, limit=1)
        return rows[0] if rows else None

    def list(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Any]:
        model = self.model_for(collection)
        stmt = select(model).where(*self._conditions(model, filters))
        if order_by:
            column = getattr(model, order_by)
            # Tie-break on primary key so equal timestamps keep insertion order
            if descending:
                stmt = stmt.order_by(column.desc(), model.id.desc())
            else:
                stmt = stmt.order_by(column.asc(), model.id.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise self._fail("list", collection, e)

    def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        model = self.model_for(collection)
        stmt = select(func.count()).select_from(model).where(*self._conditions(model, filters))
        try:
            return int(self.db.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            raise self._fail("count", collection, e)

    # ==================== Writes ====================

    def insert(self, collection: str, values: Dict[str, Any]):
        model = self.model_for(collection)
        record = model(**values)
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            raise self._fail("insert", collection, e)
        return record

    def update(self, collection: str, record_id: int, partial: Dict[str, Any]):
        """Apply a partial update to one row; returns the row, or None if missing."""
        model = self.model_for(collection)
        unknown = [column for column in partial if not hasattr(model, column)]
        if unknown:
            raise ValueError(f"Unknown column {collection}.{unknown[0]}")
        try:
            record = self.db.get(model, record_id)
            if record is None:
                return None
            for column, value in partial.items():
                setattr(record, column, value)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            raise self._fail("update", collection, e)
        return record

    def delete(self, collection: str, record_id: int) -> bool:
        model = self.model_for(collection)
        try:
            record = self.db.get(model, record_id)
            if record is None:
                return False
            self.db.delete(record)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete", collection, e)
        return True

    def delete_where(self, collection: str, **filters) -> int:
        """Delete every row matching filters; returns row count."""
        model = self.model_for(collection)
        try:
            rows = self.db.scalars(select(model).where(*self._conditions(model, filters))).all()
            for row in rows:
                self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete_where", collection, e)
        return len(rows)

    def ids_of(self, collection: str) -> Set[int]:
        model = self.model_for(collection)
        try:
            return set(self.db.scalars(select(model.id)).all())
        except SQLAlchemyError as e:
            raise self._fail("ids_of", collection, e)


def get_store(db: Session = Depends(get_db)) -> RecordStore:
    """Dependency for getting a record store bound to the request's session"""
    return RecordStore(db)

from datetime import datetime
from typing import Optional
from sqlalchemy import Integer, String, Boolean, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from app.core.database import Base
from app.utils.datetime_utils import now_utc

STATUS_UPCOMING = "upcoming"
STATUS_LIVE = "live"
STATUS_ENDED = "ended"
SCHEDULE_STATUSES = (STATUS_UPCOMING, STATUS_LIVE, STATUS_ENDED)


class Schedule(Base):
    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255))
    speaker: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    slug: Mapped[str] = mapped_column(String(64), unique=True, index=True)  # For URL
    scheduled_start: Mapped[datetime] = mapped_column(DateTime, index=True)
    scheduled_end: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    auto_end_hours: Mapped[int] = mapped_column(Integer, default=3)
    actual_start: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    actual_end: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=STATUS_UPCOMING, index=True)  # upcoming, live, ended
    is_test_live: Mapped[bool] = mapped_column(Boolean, default=False)
    meeting_room_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    meeting_room_secret: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    waiting_image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    ended_image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc, onupdate=now_utc)

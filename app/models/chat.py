from datetime import datetime
from typing import Optional
from sqlalchemy import Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column
from app.core.database import Base
from app.utils.datetime_utils import now_utc

MESSAGE_PENDING = "pending"
MESSAGE_APPROVED = "approved"
MESSAGE_REJECTED = "rejected"
MESSAGE_DELETED = "deleted"
MESSAGE_STATUSES = (MESSAGE_PENDING, MESSAGE_APPROVED, MESSAGE_REJECTED, MESSAGE_DELETED)


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    schedule_id: Mapped[int] = mapped_column(ForeignKey("schedules.id"), index=True)
    customer_id: Mapped[str] = mapped_column(String(32), index=True)  # Author (customer login id, "ADMIN" or test viewer)
    display_name: Mapped[str] = mapped_column(String(64))
    content: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default=MESSAGE_PENDING, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc, index=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    approved_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

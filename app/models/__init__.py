"""
Database Models
"""
from .customer import Customer
from .schedule import Schedule
from .chat import ChatMessage
from .viewer import ViewerSession, ViewerAccessLog

__all__ = [
    "Customer",
    "Schedule",
    "ChatMessage",
    "ViewerSession",
    "ViewerAccessLog",
]

# Export Base from database
from app.core.database import Base

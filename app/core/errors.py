"""Domain error codes and exceptions.

Services raise these; the HTTP layer renders them through one exception handler.
"""
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    SCHEDULE_NOT_FOUND = "SCHEDULE_NOT_FOUND"
    MESSAGE_NOT_FOUND = "MESSAGE_NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    CUSTOMER_NOT_FOUND = "CUSTOMER_NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INVALID_DECISION = "INVALID_DECISION"
    INVALID_MESSAGE = "INVALID_MESSAGE"
    EVENT_NOT_LIVE = "EVENT_NOT_LIVE"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    MEETING_NOT_CONFIGURED = "MEETING_NOT_CONFIGURED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


HTTP_STATUS = {
    ErrorCode.SCHEDULE_NOT_FOUND: 404,
    ErrorCode.MESSAGE_NOT_FOUND: 404,
    ErrorCode.SESSION_NOT_FOUND: 404,
    ErrorCode.CUSTOMER_NOT_FOUND: 404,
    ErrorCode.INVALID_TRANSITION: 409,
    ErrorCode.INVALID_DECISION: 409,
    ErrorCode.INVALID_MESSAGE: 400,
    ErrorCode.EVENT_NOT_LIVE: 409,
    ErrorCode.PERMISSION_DENIED: 403,
    ErrorCode.MEETING_NOT_CONFIGURED: 503,
    ErrorCode.STORE_UNAVAILABLE: 503,
}


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.STORE_UNAVAILABLE

    def __init__(self, message: str, code: ErrorCode = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    @property
    def status_code(self) -> int:
        return HTTP_STATUS.get(self.code, 400)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(DomainError):
    """Raised when a record is not found."""

    def __init__(self, code: ErrorCode, what: str, record_id) -> None:
        super().__init__(f"{what} not found", code=code)
        self.record_id = record_id


class ScheduleNotFoundError(NotFoundError):
    def __init__(self, schedule_id) -> None:
        super().__init__(ErrorCode.SCHEDULE_NOT_FOUND, "Schedule", schedule_id)


class MessageNotFoundError(NotFoundError):
    def __init__(self, message_id) -> None:
        super().__init__(ErrorCode.MESSAGE_NOT_FOUND, "Chat message", message_id)


class SessionNotFoundError(NotFoundError):
    def __init__(self, session_id) -> None:
        super().__init__(ErrorCode.SESSION_NOT_FOUND, "Viewing session", session_id)


class CustomerNotFoundError(NotFoundError):
    def __init__(self, customer_id) -> None:
        super().__init__(ErrorCode.CUSTOMER_NOT_FOUND, "Customer", customer_id)


class InvalidTransitionError(DomainError):
    """Raised when a status change is not on the lifecycle graph."""

    code = ErrorCode.INVALID_TRANSITION

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot change status from {current} to {target}")
        self.current = current
        self.target = target


class InvalidDecisionError(DomainError):
    """Raised when a moderation decision is not allowed from the message's status."""

    code = ErrorCode.INVALID_DECISION

    def __init__(self, current: str, decision: str) -> None:
        super().__init__(f"Cannot mark a {current} message as {decision}")
        self.current = current
        self.decision = decision


class InvalidMessageError(DomainError):
    code = ErrorCode.INVALID_MESSAGE


class EventNotLiveError(DomainError):
    code = ErrorCode.EVENT_NOT_LIVE

    def __init__(self, schedule_id) -> None:
        super().__init__("Schedule is not live")
        self.schedule_id = schedule_id


class PermissionDeniedError(DomainError):
    code = ErrorCode.PERMISSION_DENIED

    def __init__(self, message: str = "Admin access required") -> None:
        super().__init__(message)


class MeetingNotConfiguredError(DomainError):
    code = ErrorCode.MEETING_NOT_CONFIGURED


class StoreError(DomainError):
    """Raised when the record store cannot complete a read or write."""

    code = ErrorCode.STORE_UNAVAILABLE

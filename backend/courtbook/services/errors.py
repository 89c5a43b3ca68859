"""
Error taxonomy for the reservation engine.

Every guard failure is raised before any write. Each error kind has a stable
`code` so clients can branch on the cause, and an HTTP status used by the
routes when translating to HTTPException.
"""

from typing import Any, Dict, Optional

# Conflict reasons
COURT_SLOT_TAKEN = "COURT_SLOT_TAKEN"
TIME_WINDOW_TAKEN = "TIME_WINDOW_TAKEN"
DAILY_LIMIT = "DAILY_LIMIT"


class ReservationError(Exception):
    """Base exception for reservation engine errors"""

    code = "RESERVATION_ERROR"
    status_code = 400

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason

    def to_detail(self) -> Dict[str, Any]:
        detail: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.reason:
            detail["reason"] = self.reason
        return detail


class NotFoundError(ReservationError):
    code = "NOT_FOUND"
    status_code = 404


class InvalidRequestError(ReservationError):
    code = "INVALID_REQUEST"
    status_code = 400


class InvalidStateError(ReservationError):
    code = "INVALID_STATE"
    status_code = 409


class ConflictError(ReservationError):
    code = "CONFLICT"
    status_code = 409


class ForbiddenError(ReservationError):
    code = "FORBIDDEN"
    status_code = 403

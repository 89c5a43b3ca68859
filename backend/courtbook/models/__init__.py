from courtbook.models.court import COURT_STATUS_AVAILABLE, Court
from courtbook.models.reservation import Reservation, ReservationStatus
from courtbook.models.user import User, UserRole

__all__ = [
    "COURT_STATUS_AVAILABLE",
    "Court",
    "Reservation",
    "ReservationStatus",
    "User",
    "UserRole",
]

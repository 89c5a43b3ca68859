"""
Interval and calendar helpers shared by the scheduler and the availability views.

All persisted timestamps are naive UTC. Calendar days are resolved in the venue
timezone (VENUE_TIMEZONE, default UTC) and converted back to naive UTC bounds
so they can be compared directly against stored values.

Derived record facts (bookability, cancellation, duration) live here as pure
functions instead of properties on the table models.
"""

import os
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from courtbook.models.court import COURT_STATUS_AVAILABLE, Court
from courtbook.models.reservation import Reservation, ReservationStatus
from courtbook.models.user import UserRole

ELEVATED_ROLES = frozenset({UserRole.admin.value, UserRole.manager.value})


# ============================================================================
# Overlap rule
# ============================================================================


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap: [a_start, a_end) and [b_start, b_end) intersect iff a < d and b > c."""
    return a_start < b_end and a_end > b_start


# ============================================================================
# Venue time
# ============================================================================


def venue_timezone() -> tzinfo:
    name = os.getenv("VENUE_TIMEZONE", "UTC")
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def to_utc_naive(value: datetime) -> datetime:
    """Normalise a datetime to naive UTC. Naive input is assumed to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a stored naive timestamp for serialization."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def venue_local(value: datetime) -> datetime:
    """Convert a naive UTC timestamp to an aware venue-local datetime."""
    return as_utc(value).astimezone(venue_timezone())


def venue_today(now: Optional[datetime] = None) -> date:
    return venue_local(now or utc_now()).date()


def local_to_utc_naive(day: date, at: time) -> datetime:
    """Venue-local wall clock time on `day` as naive UTC."""
    local = datetime.combine(day, at).replace(tzinfo=venue_timezone())
    return to_utc_naive(local)


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """[local midnight, next local midnight) of `day`, as naive UTC."""
    start = local_to_utc_naive(day, time(0, 0))
    end = local_to_utc_naive(day + timedelta(days=1), time(0, 0))
    return start, end


def local_date_of(value: datetime) -> date:
    """Venue-local calendar date of a naive UTC timestamp."""
    return venue_local(value).date()


# ============================================================================
# Derived facts
# ============================================================================


def is_court_bookable(court: Court) -> bool:
    return bool(court.is_available) and court.status == COURT_STATUS_AVAILABLE


def is_cancelled(reservation: Reservation) -> bool:
    return reservation.status == ReservationStatus.cancelled


def duration_minutes(reservation: Reservation) -> int:
    return int((reservation.end_time - reservation.start_time).total_seconds() // 60)


def duration_hours(reservation: Reservation) -> int:
    return duration_minutes(reservation) // 60


def is_elevated(role: Optional[str]) -> bool:
    """Admins and managers see and act on every reservation."""
    if role is None:
        return False
    return getattr(role, "value", role) in ELEVATED_ROLES

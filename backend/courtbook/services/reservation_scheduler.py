"""
Reservation Scheduler: booking, cancellation and role-scoped listings.

Booking guards run in a fixed order and any failure aborts with no write:

1. Court must exist                                   -> NotFoundError
2. Requesting user must exist                         -> NotFoundError
3. Court availability flag must be set                -> InvalidStateError
4. start < end                                        -> InvalidRequestError
5. No confirmed overlap on the same court             -> ConflictError(COURT_SLOT_TAKEN)
6. No confirmed overlap on any court                  -> ConflictError(TIME_WINDOW_TAKEN)
7. User holds no other confirmed booking that day     -> ConflictError(DAILY_LIMIT)

Steps 5-7 and the insert run inside `booking_guard`, which serializes every
booking attempt in the process and, on PostgreSQL, across processes with a
transaction-scoped advisory lock. Step 6 makes the serialization point global
rather than per court.

Lifecycle: confirmed -> cancelled (terminal).
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterator, List, Optional

from sqlalchemy import text
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from courtbook.models.court import Court
from courtbook.models.reservation import Reservation, ReservationStatus
from courtbook.models.user import User
from courtbook.services.errors import (
    COURT_SLOT_TAKEN,
    DAILY_LIMIT,
    TIME_WINDOW_TAKEN,
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
)
from courtbook.utils.intervals import (
    day_bounds,
    is_cancelled,
    is_elevated,
    local_date_of,
    to_utc_naive,
    utc_now,
    venue_today,
)

logger = logging.getLogger(__name__)

# Arbitrary 64-bit key shared by every process booking against the same database
BOOKING_ADVISORY_LOCK_KEY = 74_210_001

_booking_lock = threading.Lock()


@contextmanager
def booking_guard(session: Session) -> Iterator[None]:
    """
    Serialize the validate-then-write booking sequence.

    The caller must commit inside the block; the advisory lock is released when
    that transaction ends. Any exception rolls the session back.
    """
    with _booking_lock:
        try:
            if session.get_bind().dialect.name == "postgresql":
                session.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": BOOKING_ADVISORY_LOCK_KEY})
            yield
        except Exception:
            session.rollback()
            raise


def _with_relations(query):
    return query.options(selectinload(Reservation.court), selectinload(Reservation.user))


def _confirmed_overlapping(start: datetime, end: datetime):
    return select(Reservation).where(
        Reservation.status == ReservationStatus.confirmed.value,
        Reservation.start_time < end,
        Reservation.end_time > start,
    )


# ============================================================================
# Booking
# ============================================================================


def attempt_booking(
    session: Session,
    court_id: int,
    user_id: int,
    start_time: datetime,
    end_time: datetime,
    notes: Optional[str] = None,
) -> Reservation:
    """
    Validate and persist a booking request.

    Returns:
        The new confirmed Reservation with court and user loaded.

    Raises:
        NotFoundError, InvalidStateError, InvalidRequestError, ConflictError
    """
    court = session.get(Court, court_id)
    if not court:
        raise NotFoundError(f"Court {court_id} not found")

    user = session.get(User, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")

    if not court.is_available:
        raise InvalidStateError(f"Court {court_id} is not currently available for booking")

    start = to_utc_naive(start_time)
    end = to_utc_naive(end_time)
    if start >= end:
        raise InvalidRequestError("start_time must be before end_time")

    with booking_guard(session):
        same_court = session.exec(_confirmed_overlapping(start, end).where(Reservation.court_id == court_id)).first()
        if same_court:
            raise ConflictError("Slot already booked on this court", reason=COURT_SLOT_TAKEN)

        any_court = session.exec(_confirmed_overlapping(start, end)).first()
        if any_court:
            raise ConflictError("Another reservation already holds this time window", reason=TIME_WINDOW_TAKEN)

        day_start, day_end = day_bounds(local_date_of(start))
        same_day = session.exec(
            select(Reservation).where(
                Reservation.user_id == user_id,
                Reservation.status == ReservationStatus.confirmed.value,
                Reservation.start_time >= day_start,
                Reservation.start_time < day_end,
            )
        ).first()
        if same_day:
            raise ConflictError("Only one reservation per day is allowed", reason=DAILY_LIMIT)

        reservation = Reservation(
            user_id=user_id,
            court_id=court_id,
            start_time=start,
            end_time=end,
            notes=notes,
            status=ReservationStatus.confirmed.value,
        )
        session.add(reservation)
        session.commit()

    session.refresh(reservation)
    logger.info(
        f"Booked reservation {reservation.id}: court={court_id} user={user_id} "
        f"[{start.isoformat()}, {end.isoformat()})"
    )
    return reservation


# ============================================================================
# Single record access and cancellation
# ============================================================================


def _get_owned_or_elevated(session: Session, reservation_id: int, requester_id: int, requester_role: str) -> Reservation:
    reservation = session.get(Reservation, reservation_id)
    if not reservation:
        raise NotFoundError(f"Reservation {reservation_id} not found")

    if not is_elevated(requester_role) and reservation.user_id != requester_id:
        raise ForbiddenError(f"Not allowed to access reservation {reservation_id}")

    return reservation


def get_reservation(session: Session, reservation_id: int, requester_id: int, requester_role: str) -> Reservation:
    return _get_owned_or_elevated(session, reservation_id, requester_id, requester_role)


def cancel_reservation(
    session: Session,
    reservation_id: int,
    requester_id: int,
    requester_role: str,
    reason: Optional[str] = None,
) -> Reservation:
    """
    Cancel a confirmed reservation.

    Raises:
        NotFoundError: reservation missing
        ForbiddenError: requester is neither owner nor elevated
        InvalidStateError: reservation already cancelled
    """
    reservation = _get_owned_or_elevated(session, reservation_id, requester_id, requester_role)

    if is_cancelled(reservation):
        raise InvalidStateError(f"Reservation {reservation_id} is already cancelled")

    reservation.status = ReservationStatus.cancelled.value
    reservation.cancellation_reason = reason
    reservation.cancelled_at = utc_now()
    session.add(reservation)
    session.commit()
    session.refresh(reservation)

    logger.info(f"Cancelled reservation {reservation_id} by user {requester_id} ({requester_role})")
    return reservation


# ============================================================================
# Listings
# ============================================================================


def _scoped(query, requester_id: int, requester_role: str):
    if is_elevated(requester_role):
        return query
    return query.where(Reservation.user_id == requester_id)


def list_reservations(session: Session, requester_id: int, requester_role: str) -> List[Reservation]:
    """All visible reservations, newest created first."""
    query = _scoped(_with_relations(select(Reservation)), requester_id, requester_role)
    return list(session.exec(query.order_by(Reservation.created_at.desc(), Reservation.id.desc())).all())


def list_past_reservations(
    session: Session, requester_id: int, requester_role: str, now: Optional[datetime] = None
) -> List[Reservation]:
    """Reservations starting before today's venue-local midnight, latest first."""
    today_start, _ = day_bounds(venue_today(now))
    query = _scoped(_with_relations(select(Reservation)), requester_id, requester_role)
    query = query.where(Reservation.start_time < today_start)
    return list(session.exec(query.order_by(Reservation.start_time.desc())).all())


def list_upcoming_reservations(
    session: Session, requester_id: int, requester_role: str, now: Optional[datetime] = None
) -> List[Reservation]:
    """Reservations starting on or after today's venue-local midnight, soonest first."""
    today_start, _ = day_bounds(venue_today(now))
    query = _scoped(_with_relations(select(Reservation)), requester_id, requester_role)
    query = query.where(Reservation.start_time >= today_start)
    return list(session.exec(query.order_by(Reservation.start_time.asc())).all())


def list_court_reservations(
    session: Session,
    court_id: int,
    requester_id: int,
    requester_role: str,
    day: Optional[date] = None,
) -> List[Reservation]:
    """Reservation history for one court (all statuses), optionally limited to one day."""
    if not session.get(Court, court_id):
        raise NotFoundError(f"Court {court_id} not found")

    query = _scoped(_with_relations(select(Reservation)), requester_id, requester_role)
    query = query.where(Reservation.court_id == court_id)
    if day is not None:
        day_start, day_end = day_bounds(day)
        query = query.where(Reservation.start_time >= day_start, Reservation.start_time < day_end)
    return list(session.exec(query.order_by(Reservation.start_time.asc())).all())

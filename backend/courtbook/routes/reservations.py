import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from courtbook.database import get_session
from courtbook.models.reservation import Reservation
from courtbook.routes.courts import CourtSummary, to_court_summary
from courtbook.routes.deps import Requester, get_requester, raise_http
from courtbook.services import reservation_scheduler as scheduler
from courtbook.services.errors import ReservationError
from courtbook.utils.intervals import as_utc, duration_hours, duration_minutes, is_cancelled

logger = logging.getLogger(__name__)

router = APIRouter()


class ReservationCreate(BaseModel):
    court_id: int
    start_time: datetime
    end_time: datetime
    notes: Optional[str] = Field(default=None, max_length=1000)


class ReservationCancel(BaseModel):
    cancellation_reason: Optional[str] = Field(default=None, max_length=1000)


class UserSummary(BaseModel):
    id: int
    name: str


class ReservationResponse(BaseModel):
    id: int
    user_id: int
    user: Optional[UserSummary]
    court: Optional[CourtSummary]
    start_time: datetime
    end_time: datetime
    status: str  # confirmed | cancelled
    notes: Optional[str]
    cancellation_reason: Optional[str]
    cancelled_at: Optional[datetime]
    created_at: datetime
    duration_in_minutes: int
    duration_in_hours: int
    is_cancelled: bool


def to_reservation_response(reservation: Reservation) -> ReservationResponse:
    user = reservation.user
    court = reservation.court
    return ReservationResponse(
        id=reservation.id,
        user_id=reservation.user_id,
        user=UserSummary(id=user.id, name=user.name) if user else None,
        court=to_court_summary(court) if court else None,
        start_time=as_utc(reservation.start_time),
        end_time=as_utc(reservation.end_time),
        status=getattr(reservation.status, "value", reservation.status),
        notes=reservation.notes,
        cancellation_reason=reservation.cancellation_reason,
        cancelled_at=as_utc(reservation.cancelled_at),
        created_at=as_utc(reservation.created_at),
        duration_in_minutes=duration_minutes(reservation),
        duration_in_hours=duration_hours(reservation),
        is_cancelled=is_cancelled(reservation),
    )


@router.post("/reservations", response_model=ReservationResponse, status_code=201)
def create_reservation(
    payload: ReservationCreate,
    requester: Requester = Depends(get_requester),
    session: Session = Depends(get_session),
):
    """Book a court for the requesting user"""
    try:
        reservation = scheduler.attempt_booking(
            session,
            court_id=payload.court_id,
            user_id=requester.user_id,
            start_time=payload.start_time,
            end_time=payload.end_time,
            notes=payload.notes,
        )
    except ReservationError as e:
        logger.info(
            f"Booking rejected for user {requester.user_id} on court {payload.court_id}: "
            f"{e.code}{'/' + e.reason if e.reason else ''} - {e.message}"
        )
        raise_http(e)

    return to_reservation_response(reservation)


@router.get("/reservations", response_model=List[ReservationResponse])
def list_reservations(requester: Requester = Depends(get_requester), session: Session = Depends(get_session)):
    """All visible reservations (everything for admin/manager, own otherwise)"""
    reservations = scheduler.list_reservations(session, requester.user_id, requester.role)
    return [to_reservation_response(r) for r in reservations]


@router.get("/reservations/past", response_model=List[ReservationResponse])
def list_past_reservations(requester: Requester = Depends(get_requester), session: Session = Depends(get_session)):
    """Reservations that started before today"""
    reservations = scheduler.list_past_reservations(session, requester.user_id, requester.role)
    return [to_reservation_response(r) for r in reservations]


@router.get("/reservations/upcoming", response_model=List[ReservationResponse])
def list_upcoming_reservations(
    requester: Requester = Depends(get_requester), session: Session = Depends(get_session)
):
    """Reservations starting today or later"""
    reservations = scheduler.list_upcoming_reservations(session, requester.user_id, requester.role)
    return [to_reservation_response(r) for r in reservations]


@router.get("/reservations/court/{court_id}", response_model=List[ReservationResponse])
def list_court_reservations(
    court_id: int,
    day: Optional[date] = Query(None, alias="date"),
    requester: Requester = Depends(get_requester),
    session: Session = Depends(get_session),
):
    """Reservation history for one court, optionally for a single day"""
    try:
        reservations = scheduler.list_court_reservations(session, court_id, requester.user_id, requester.role, day)
    except ReservationError as e:
        raise_http(e)
    return [to_reservation_response(r) for r in reservations]


@router.get("/reservations/{reservation_id}", response_model=ReservationResponse)
def get_reservation(
    reservation_id: int,
    requester: Requester = Depends(get_requester),
    session: Session = Depends(get_session),
):
    """Get one reservation (owner or admin/manager)"""
    try:
        reservation = scheduler.get_reservation(session, reservation_id, requester.user_id, requester.role)
    except ReservationError as e:
        raise_http(e)
    return to_reservation_response(reservation)


@router.patch("/reservations/{reservation_id}/cancel", response_model=ReservationResponse)
def cancel_reservation(
    reservation_id: int,
    payload: Optional[ReservationCancel] = None,
    requester: Requester = Depends(get_requester),
    session: Session = Depends(get_session),
):
    """Cancel a reservation (owner or admin/manager)"""
    reason = payload.cancellation_reason if payload else None
    try:
        reservation = scheduler.cancel_reservation(
            session, reservation_id, requester.user_id, requester.role, reason=reason
        )
    except ReservationError as e:
        raise_http(e)
    return to_reservation_response(reservation)

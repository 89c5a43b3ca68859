import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session, select

from courtbook.database import get_session
from courtbook.models.court import Court
from courtbook.models.reservation import Reservation
from courtbook.routes.deps import Requester, raise_http, require_admin, require_elevated
from courtbook.services.availability import (
    DayGrid,
    DaySummary,
    get_day_grid,
    get_reserved_slots,
    get_weekly_availability,
)
from courtbook.services.errors import InvalidStateError, ReservationError
from courtbook.utils.intervals import as_utc, is_court_bookable

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Request / response models ───────────────────────────────────────────


class CourtCreate(BaseModel):
    name: str = Field(min_length=1)
    location: str = Field(min_length=1)
    surface: str = Field(min_length=1)
    is_available: bool = True
    image_url: Optional[str] = None
    amenities: List[str] = []
    status: str = "available"
    rating: float = Field(default=4.5, ge=0, le=5)
    capacity: int = Field(default=4, ge=1)


class CourtUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = Field(default=None, min_length=1)
    surface: Optional[str] = Field(default=None, min_length=1)
    is_available: Optional[bool] = None
    image_url: Optional[str] = None
    amenities: Optional[List[str]] = None
    status: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    capacity: Optional[int] = Field(default=None, ge=1)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and not v.strip():
            raise ValueError("status must not be blank")
        return v


class CourtSummary(BaseModel):
    id: int
    name: str
    location: str
    surface: str
    is_available: bool
    image_url: Optional[str]
    amenities: List[str]
    status: str
    rating: float
    capacity: int

    class Config:
        from_attributes = True


class DaySummaryResponse(BaseModel):
    date: date
    is_available: bool
    available_slots: int


class CourtResponse(CourtSummary):
    created_at: datetime
    updated_at: datetime
    is_currently_available: bool
    weekly_availability: Optional[List[DaySummaryResponse]] = None


class TimeOfDay(BaseModel):
    hour: int
    minute: int


class TimeSlotResponse(BaseModel):
    start_time: TimeOfDay
    end_time: TimeOfDay
    status: str  # available | reserved
    reserved_by: Optional[int] = None
    notes: Optional[str] = None


class DayGridResponse(BaseModel):
    court_id: int
    court_name: str
    date: date
    time_slots: List[TimeSlotResponse]
    is_available: bool


class WeeklyAvailabilityResponse(BaseModel):
    court_id: int
    court_name: str
    days: List[DaySummaryResponse]


class ReservedSlotResponse(BaseModel):
    start_time: datetime
    end_time: datetime
    user_id: int
    user_name: str
    notes: Optional[str] = None


class ReservedSlotsResponse(BaseModel):
    court_id: int
    court_name: str
    date: date
    reserved_slots: List[ReservedSlotResponse]


# ── Converters ──────────────────────────────────────────────────────────


def to_court_summary(court: Court) -> CourtSummary:
    return CourtSummary.model_validate(court)


def _day_summaries(summaries: List[DaySummary]) -> List[DaySummaryResponse]:
    return [
        DaySummaryResponse(date=s.day, is_available=s.is_available, available_slots=s.available_slots)
        for s in summaries
    ]


def _court_response(court: Court, weekly: Optional[List[DaySummary]] = None) -> CourtResponse:
    return CourtResponse(
        **CourtSummary.model_validate(court).model_dump(),
        created_at=as_utc(court.created_at),
        updated_at=as_utc(court.updated_at),
        is_currently_available=is_court_bookable(court),
        weekly_availability=_day_summaries(weekly) if weekly is not None else None,
    )


def _day_grid_response(grid: DayGrid) -> DayGridResponse:
    return DayGridResponse(
        court_id=grid.court_id,
        court_name=grid.court_name,
        date=grid.day,
        time_slots=[
            TimeSlotResponse(
                start_time=TimeOfDay(hour=slot.start_hour, minute=0),
                end_time=TimeOfDay(hour=slot.end_hour, minute=0),
                status=slot.status,
                reserved_by=slot.reserved_by,
                notes=slot.notes,
            )
            for slot in grid.time_slots
        ],
        is_available=grid.is_available,
    )


# ── Court catalog ───────────────────────────────────────────────────────


@router.post("/courts", response_model=CourtResponse, status_code=201)
def create_court(
    court_data: CourtCreate,
    requester: Requester = Depends(require_elevated),
    session: Session = Depends(get_session),
):
    """Create a court (admin/manager)"""
    court = Court(**court_data.model_dump())
    session.add(court)
    session.commit()
    session.refresh(court)

    logger.info(f"Court {court.id} '{court.name}' created by user {requester.user_id}")
    return _court_response(court)


@router.get("/courts", response_model=List[CourtResponse])
def list_courts(available: Optional[bool] = Query(None), session: Session = Depends(get_session)):
    """List courts, newest first; ?available=true limits to courts flagged available"""
    query = select(Court)
    if available is not None:
        query = query.where(Court.is_available == available)
    courts = session.exec(query.order_by(Court.created_at.desc(), Court.id.desc())).all()
    return [_court_response(court) for court in courts]


@router.get("/courts/{court_id}", response_model=CourtResponse)
def get_court(court_id: int, session: Session = Depends(get_session)):
    """Court detail with the seven-day availability rollup"""
    court = session.get(Court, court_id)
    if not court:
        raise HTTPException(status_code=404, detail="Court not found")

    return _court_response(court, get_weekly_availability(session, court_id))


@router.patch("/courts/{court_id}", response_model=CourtResponse)
def update_court(
    court_id: int,
    court_data: CourtUpdate,
    requester: Requester = Depends(require_elevated),
    session: Session = Depends(get_session),
):
    """Update a court (admin/manager)"""
    court = session.get(Court, court_id)
    if not court:
        raise HTTPException(status_code=404, detail="Court not found")

    update_dict = court_data.model_dump(exclude_unset=True)
    for field_name, value in update_dict.items():
        setattr(court, field_name, value)

    session.add(court)
    session.commit()
    session.refresh(court)

    logger.info(f"Court {court_id} updated by user {requester.user_id}: {sorted(update_dict)}")
    return _court_response(court)


@router.delete("/courts/{court_id}")
def delete_court(
    court_id: int,
    requester: Requester = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Delete a court (admin). Refused while any reservation, cancelled or not, references it."""
    court = session.get(Court, court_id)
    if not court:
        raise HTTPException(status_code=404, detail="Court not found")

    held = session.exec(select(Reservation.id).where(Reservation.court_id == court_id)).first()
    if held is not None:
        raise_http(InvalidStateError(f"Court {court_id} has reservation history and cannot be deleted"))

    session.delete(court)
    session.commit()

    logger.info(f"Court {court_id} deleted by user {requester.user_id}")
    return {"message": "Court deleted successfully"}


# ── Availability read-models ────────────────────────────────────────────


@router.get("/courts/{court_id}/availability", response_model=DayGridResponse)
def get_court_availability(
    court_id: int,
    day: Optional[date] = Query(None, alias="date"),
    session: Session = Depends(get_session),
):
    """Hourly slot grid for one day (defaults to today)"""
    try:
        grid = get_day_grid(session, court_id, day)
    except ReservationError as e:
        raise_http(e)
    return _day_grid_response(grid)


@router.get("/courts/{court_id}/weekly-availability", response_model=WeeklyAvailabilityResponse)
def get_court_weekly_availability(court_id: int, session: Session = Depends(get_session)):
    """Available slot counts for today and the next six days"""
    court = session.get(Court, court_id)
    if not court:
        raise HTTPException(status_code=404, detail="Court not found")

    summaries = get_weekly_availability(session, court_id)
    return WeeklyAvailabilityResponse(court_id=court.id, court_name=court.name, days=_day_summaries(summaries))


@router.get("/courts/{court_id}/reserved-slots", response_model=ReservedSlotsResponse)
def get_court_reserved_slots(
    court_id: int,
    day: Optional[date] = Query(None, alias="date"),
    session: Session = Depends(get_session),
):
    """Only the reserved intervals for one day (defaults to today)"""
    try:
        view = get_reserved_slots(session, court_id, day)
    except ReservationError as e:
        raise_http(e)

    return ReservedSlotsResponse(
        court_id=view.court_id,
        court_name=view.court_name,
        date=view.day,
        reserved_slots=[
            ReservedSlotResponse(
                start_time=as_utc(slot.start_time),
                end_time=as_utc(slot.end_time),
                user_id=slot.user_id,
                user_name=slot.user_name,
                notes=slot.notes,
            )
            for slot in view.reserved_slots
        ],
    )

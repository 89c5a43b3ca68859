"""
Availability Calculator: read-only views over confirmed reservations.

- Day grid: the operating window split into one-hour slots, each marked
  available or reserved (first overlapping confirmed reservation wins).
- Weekly rollup: today plus the next six days reduced to available-slot counts,
  computed from a single reservation fetch.
- Reserved slots: only the occupied intervals for a court/day.

Operating window hours are venue-local wall clock hours, configured with
OPERATING_START_HOUR / OPERATING_END_HOUR (default 08:00-22:00).
"""

import os
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from courtbook.models.court import Court
from courtbook.models.reservation import Reservation, ReservationStatus
from courtbook.services.errors import NotFoundError
from courtbook.utils.intervals import (
    day_bounds,
    intervals_overlap,
    local_date_of,
    local_to_utc_naive,
    venue_today,
)

SLOT_AVAILABLE = "available"
SLOT_RESERVED = "reserved"
DEFAULT_RESERVED_NOTE = "reserved"
UNKNOWN_USER_NAME = "Unknown"
WEEK_DAYS = 7


def operating_window() -> Tuple[int, int]:
    """(start_hour, end_hour) of the daily operating window."""
    start_hour = int(os.getenv("OPERATING_START_HOUR", "8"))
    end_hour = int(os.getenv("OPERATING_END_HOUR", "22"))
    if not (0 <= start_hour < end_hour <= 24):
        raise ValueError(f"Invalid operating window {start_hour}:00-{end_hour}:00")
    return start_hour, end_hour


@dataclass
class TimeSlot:
    start_hour: int
    end_hour: int
    status: str
    reserved_by: Optional[int] = None
    notes: Optional[str] = None

    @property
    def is_available(self) -> bool:
        return self.status == SLOT_AVAILABLE


@dataclass
class DayGrid:
    court_id: int
    court_name: str
    day: date
    time_slots: List[TimeSlot] = field(default_factory=list)

    @property
    def is_available(self) -> bool:
        return any(slot.is_available for slot in self.time_slots)

    @property
    def available_slots(self) -> int:
        return sum(1 for slot in self.time_slots if slot.is_available)


@dataclass
class DaySummary:
    day: date
    is_available: bool
    available_slots: int


def _slot_bounds(day: date, hour: int) -> Tuple[datetime, datetime]:
    start = local_to_utc_naive(day, time(hour, 0))
    if hour + 1 == 24:
        end = local_to_utc_naive(day + timedelta(days=1), time(0, 0))
    else:
        end = local_to_utc_naive(day, time(hour + 1, 0))
    return start, end


def build_time_slots(day: date, reservations: Sequence[Reservation]) -> List[TimeSlot]:
    """
    Partition the operating window of `day` into one-hour slots.

    `reservations` must already be limited to confirmed ones; they are tested in
    the given order and the first overlap marks the slot reserved.
    """
    start_hour, end_hour = operating_window()
    slots: List[TimeSlot] = []

    for hour in range(start_hour, end_hour):
        slot_start, slot_end = _slot_bounds(day, hour)
        occupant = next(
            (r for r in reservations if intervals_overlap(slot_start, slot_end, r.start_time, r.end_time)),
            None,
        )
        if occupant is None:
            slots.append(TimeSlot(start_hour=hour, end_hour=hour + 1, status=SLOT_AVAILABLE))
        else:
            slots.append(
                TimeSlot(
                    start_hour=hour,
                    end_hour=hour + 1,
                    status=SLOT_RESERVED,
                    reserved_by=occupant.user_id,
                    notes=occupant.notes or DEFAULT_RESERVED_NOTE,
                )
            )

    return slots


def _get_court(session: Session, court_id: int) -> Court:
    court = session.get(Court, court_id)
    if not court:
        raise NotFoundError(f"Court {court_id} not found")
    return court


def _confirmed_between(session: Session, court_id: int, start: datetime, end: datetime, with_user: bool = False):
    query = select(Reservation).where(
        Reservation.court_id == court_id,
        Reservation.status == ReservationStatus.confirmed.value,
        Reservation.start_time >= start,
        Reservation.start_time < end,
    )
    if with_user:
        query = query.options(selectinload(Reservation.user))
    return list(session.exec(query.order_by(Reservation.start_time.asc())).all())


def get_day_grid(
    session: Session, court_id: int, day: Optional[date] = None, now: Optional[datetime] = None
) -> DayGrid:
    """Day grid for a court; `day` defaults to today in the venue timezone."""
    court = _get_court(session, court_id)
    target = day or venue_today(now)
    day_start, day_end = day_bounds(target)

    reservations = _confirmed_between(session, court_id, day_start, day_end)
    return DayGrid(
        court_id=court.id,
        court_name=court.name,
        day=target,
        time_slots=build_time_slots(target, reservations),
    )


def summarize_week(start_day: date, reservations: Sequence[Reservation]) -> List[DaySummary]:
    """Reduce one shared reservation fetch to per-day available-slot counts."""
    by_day: Dict[date, List[Reservation]] = {}
    for reservation in reservations:
        by_day.setdefault(local_date_of(reservation.start_time), []).append(reservation)

    summaries: List[DaySummary] = []
    for offset in range(WEEK_DAYS):
        day = start_day + timedelta(days=offset)
        slots = build_time_slots(day, by_day.get(day, []))
        available = sum(1 for slot in slots if slot.is_available)
        summaries.append(DaySummary(day=day, is_available=available > 0, available_slots=available))

    return summaries


def get_weekly_availability(session: Session, court_id: int, now: Optional[datetime] = None) -> List[DaySummary]:
    """Today and the following six days for a court."""
    _get_court(session, court_id)
    today = venue_today(now)
    week_start, _ = day_bounds(today)
    _, week_end = day_bounds(today + timedelta(days=WEEK_DAYS - 1))

    reservations = _confirmed_between(session, court_id, week_start, week_end)
    return summarize_week(today, reservations)


@dataclass
class ReservedSlot:
    start_time: datetime
    end_time: datetime
    user_id: int
    user_name: str
    notes: Optional[str] = None


@dataclass
class ReservedSlots:
    court_id: int
    court_name: str
    day: date
    reserved_slots: List[ReservedSlot] = field(default_factory=list)


def get_reserved_slots(
    session: Session, court_id: int, day: Optional[date] = None, now: Optional[datetime] = None
) -> ReservedSlots:
    """Occupied intervals only, with owner and notes."""
    court = _get_court(session, court_id)
    target = day or venue_today(now)
    day_start, day_end = day_bounds(target)

    reservations = _confirmed_between(session, court_id, day_start, day_end, with_user=True)
    return ReservedSlots(
        court_id=court.id,
        court_name=court.name,
        day=target,
        reserved_slots=[
            ReservedSlot(
                start_time=r.start_time,
                end_time=r.end_time,
                user_id=r.user_id,
                user_name=r.user.name if r.user else UNKNOWN_USER_NAME,
                notes=r.notes,
            )
            for r in reservations
        ],
    )

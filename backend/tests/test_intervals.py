"""Tests for the interval, calendar and derived-fact helpers"""

from datetime import date, datetime, timedelta, timezone

import pytest

from courtbook.models.court import Court
from courtbook.models.reservation import Reservation, ReservationStatus
from courtbook.utils.intervals import (
    as_utc,
    day_bounds,
    duration_hours,
    duration_minutes,
    intervals_overlap,
    is_cancelled,
    is_court_bookable,
    is_elevated,
    local_date_of,
    to_utc_naive,
    venue_today,
)


def _dt(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 1, 15, hour, minute)


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ((10, 11), (10, 11), True),
        ((10, 11), (10.5, 11.5), True),
        ((10, 12), (10.5, 11), True),
        ((10, 11), (11, 12), False),  # touching endpoints
        ((11, 12), (10, 11), False),
        ((8, 9), (13, 14), False),
    ],
)
def test_intervals_overlap_half_open(a, b, expected):
    def to_dt(h):
        return _dt(int(h), 30 if h % 1 else 0)

    assert intervals_overlap(to_dt(a[0]), to_dt(a[1]), to_dt(b[0]), to_dt(b[1])) is expected
    assert intervals_overlap(to_dt(b[0]), to_dt(b[1]), to_dt(a[0]), to_dt(a[1])) is expected


def test_to_utc_naive_converts_offsets():
    aware = datetime(2024, 1, 15, 13, 0, tzinfo=timezone(timedelta(hours=3)))
    assert to_utc_naive(aware) == datetime(2024, 1, 15, 10, 0)
    assert to_utc_naive(datetime(2024, 1, 15, 10, 0)) == datetime(2024, 1, 15, 10, 0)


def test_as_utc_attaches_utc():
    assert as_utc(datetime(2024, 1, 15, 10, 0)).tzinfo == timezone.utc
    assert as_utc(None) is None


def test_day_bounds_utc_default(monkeypatch):
    monkeypatch.delenv("VENUE_TIMEZONE", raising=False)
    start, end = day_bounds(date(2024, 1, 15))
    assert start == datetime(2024, 1, 15, 0, 0)
    assert end == datetime(2024, 1, 16, 0, 0)


def test_day_bounds_follow_venue_timezone(monkeypatch):
    monkeypatch.setenv("VENUE_TIMEZONE", "Europe/Istanbul")  # UTC+3, no DST
    start, end = day_bounds(date(2024, 1, 15))
    assert start == datetime(2024, 1, 14, 21, 0)
    assert end == datetime(2024, 1, 15, 21, 0)
    # 22:30 UTC on the 14th is already the 15th locally
    assert local_date_of(datetime(2024, 1, 14, 22, 30)) == date(2024, 1, 15)


def test_venue_today_uses_given_now(monkeypatch):
    monkeypatch.delenv("VENUE_TIMEZONE", raising=False)
    assert venue_today(datetime(2024, 1, 15, 23, 59)) == date(2024, 1, 15)


def test_court_bookable_needs_flag_and_status():
    assert is_court_bookable(Court(name="C", location="L", surface="clay"))
    assert not is_court_bookable(Court(name="C", location="L", surface="clay", is_available=False))
    assert not is_court_bookable(Court(name="C", location="L", surface="clay", status="maintenance"))


def test_reservation_derived_facts():
    reservation = Reservation(
        user_id=1,
        court_id=1,
        start_time=_dt(10),
        end_time=_dt(11, 45),
        status=ReservationStatus.confirmed.value,
    )
    assert duration_minutes(reservation) == 105
    assert duration_hours(reservation) == 1
    assert not is_cancelled(reservation)

    reservation.status = ReservationStatus.cancelled.value
    assert is_cancelled(reservation)


@pytest.mark.parametrize(
    "role, expected",
    [("admin", True), ("manager", True), ("customer", False), (None, False), ("superuser", False)],
)
def test_is_elevated(role, expected):
    assert is_elevated(role) is expected

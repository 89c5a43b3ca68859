from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Index, String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from courtbook.models.court import Court
    from courtbook.models.user import User


class ReservationStatus(str, Enum):
    confirmed = "confirmed"
    cancelled = "cancelled"


class Reservation(SQLModel, table=True):
    __table_args__ = (
        Index("ix_reservation_court_status_start", "court_id", "status", "start_time"),
        Index("ix_reservation_user_start", "user_id", "start_time"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id")
    court_id: int = Field(foreign_key="court.id")
    # Half-open interval [start_time, end_time), naive UTC
    start_time: datetime
    end_time: datetime
    status: ReservationStatus = Field(
        default=ReservationStatus.confirmed, sa_column=Column(String(16), nullable=False)
    )
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    user: "User" = Relationship(back_populates="reservations")
    court: "Court" = Relationship(back_populates="reservations")

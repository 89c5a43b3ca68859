from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from courtbook.models.reservation import Reservation

COURT_STATUS_AVAILABLE = "available"


class Court(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    location: str
    surface: str  # clay, hard, grass
    is_available: bool = Field(default=True)
    image_url: Optional[str] = None
    amenities: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    status: str = Field(default=COURT_STATUS_AVAILABLE)
    rating: float = Field(default=4.5)
    capacity: int = Field(default=4)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    reservations: List["Reservation"] = Relationship(back_populates="court")

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session, select

from courtbook.database import get_session
from courtbook.models.user import User, UserRole

router = APIRouter()


class UserCreate(BaseModel):
    email: str
    name: str
    phone: Optional[str] = None
    role: UserRole = UserRole.customer

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v.strip().lower()


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    phone: Optional[str]
    role: UserRole
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(user_data: UserCreate, session: Session = Depends(get_session)):
    """Register a user in the directory"""
    existing = session.exec(select(User).where(User.email == user_data.email)).first()
    if existing:
        raise HTTPException(status_code=409, detail="Email already registered")

    data = user_data.model_dump()
    data["role"] = user_data.role.value
    user = User(**data)
    session.add(user)
    session.commit()
    session.refresh(user)

    return user


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: int, session: Session = Depends(get_session)):
    """Get a user profile"""
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

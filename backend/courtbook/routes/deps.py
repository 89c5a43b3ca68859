"""
Request-scoped helpers shared by the routers.

Authentication happens upstream; requests arrive with the caller's user id in
the X-User-Id header. The role comes from the user directory.
"""

from dataclasses import dataclass
from typing import NoReturn

from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from courtbook.database import get_session
from courtbook.models.user import User, UserRole
from courtbook.services.errors import ForbiddenError, ReservationError
from courtbook.utils.intervals import is_elevated


@dataclass(frozen=True)
class Requester:
    user_id: int
    role: str

    @property
    def is_elevated(self) -> bool:
        return is_elevated(self.role)


def get_requester(
    x_user_id: int = Header(..., alias="X-User-Id"),
    session: Session = Depends(get_session),
) -> Requester:
    """Resolve the authenticated caller; unknown users fall back to the customer role."""
    user = session.get(User, x_user_id)
    role = UserRole(user.role).value if user else UserRole.customer.value
    return Requester(user_id=x_user_id, role=role)


def require_elevated(requester: Requester = Depends(get_requester)) -> Requester:
    if not requester.is_elevated:
        raise_http(ForbiddenError("Admin or manager role required"))
    return requester


def require_admin(requester: Requester = Depends(get_requester)) -> Requester:
    if requester.role != UserRole.admin.value:
        raise_http(ForbiddenError("Admin role required"))
    return requester


def raise_http(error: ReservationError) -> NoReturn:
    raise HTTPException(status_code=error.status_code, detail=error.to_detail())

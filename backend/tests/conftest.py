from datetime import datetime
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from courtbook.database import get_session
from courtbook.main import app
from courtbook.models.court import Court
from courtbook.models.reservation import Reservation, ReservationStatus
from courtbook.models.user import User, UserRole

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. Use sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see tests/__init__.py)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables are created per test and dropped afterwards: the booking rules are
#    global (cross-court, per-day) so leftover rows would leak between tests
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place
    for the entire duration. This ensures the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Factories
# ============================================================================


def make_user(session: Session, name: str = "Player", role: UserRole = UserRole.customer) -> User:
    user = User(email=f"{name.lower().replace(' ', '.')}@example.com", name=name, role=role.value)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_court(session: Session, name: str = "Court 1", **overrides) -> Court:
    fields = dict(name=name, location="Main Complex", surface="clay")
    fields.update(overrides)
    court = Court(**fields)
    session.add(court)
    session.commit()
    session.refresh(court)
    return court


def make_reservation(
    session: Session,
    user: User,
    court: Court,
    start: datetime,
    end: datetime,
    status: ReservationStatus = ReservationStatus.confirmed,
    notes: Optional[str] = None,
) -> Reservation:
    """Insert a reservation directly, bypassing the booking guards"""
    reservation = Reservation(
        user_id=user.id,
        court_id=court.id,
        start_time=start,
        end_time=end,
        status=status.value,
        notes=notes,
    )
    session.add(reservation)
    session.commit()
    session.refresh(reservation)
    return reservation


@pytest.fixture
def player(session: Session) -> User:
    return make_user(session, "Ayse Player")


@pytest.fixture
def other_player(session: Session) -> User:
    return make_user(session, "Mehmet Player")


@pytest.fixture
def admin(session: Session) -> User:
    return make_user(session, "Club Admin", role=UserRole.admin)


@pytest.fixture
def manager(session: Session) -> User:
    return make_user(session, "Club Manager", role=UserRole.manager)


@pytest.fixture
def court(session: Session) -> Court:
    return make_court(session, "Court 1")


@pytest.fixture
def second_court(session: Session) -> Court:
    return make_court(session, "Court 2", surface="hard")


def auth(user: User) -> dict:
    return {"X-User-Id": str(user.id)}

from sqlalchemy import inspect
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from courtbook.database import init_db
from courtbook.db_schema_patch import ensure_reservation_constraints


def _memory_engine():
    return create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool)


def test_skips_when_table_missing():
    engine = _memory_engine()
    assert ensure_reservation_constraints(engine) is False


def test_creates_confirmed_index_idempotently():
    engine = _memory_engine()
    init_db(engine)

    assert ensure_reservation_constraints(engine) is True
    assert ensure_reservation_constraints(engine) is True

    index_names = {ix["name"] for ix in inspect(engine).get_indexes("reservation")}
    assert "ix_reservation_confirmed_court_start" in index_names
    assert "ix_reservation_court_status_start" in index_names


def test_user_table_holds_only_directory_columns():
    engine = _memory_engine()
    init_db(engine)

    columns = {column["name"] for column in inspect(engine).get_columns("user")}
    assert columns == {"id", "email", "name", "phone", "role", "is_active", "created_at", "updated_at"}

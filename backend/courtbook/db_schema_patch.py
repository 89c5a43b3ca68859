from __future__ import annotations

import logging
from typing import List

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Storage-level backstop for the no-overlap rule: two confirmed reservations on
# the same court may never share any instant of [start_time, end_time).
PG_EXCLUSION_CONSTRAINT = "ex_reservation_court_confirmed_overlap"

PG_STATEMENTS: List[str] = [
    "CREATE EXTENSION IF NOT EXISTS btree_gist;",
    f"""
    DO $$
    BEGIN
        IF NOT EXISTS (SELECT 1 FROM pg_constraint WHERE conname = '{PG_EXCLUSION_CONSTRAINT}') THEN
            ALTER TABLE reservation ADD CONSTRAINT {PG_EXCLUSION_CONSTRAINT}
                EXCLUDE USING gist (court_id WITH =, tsrange(start_time, end_time, '[)') WITH &&)
                WHERE (status = 'confirmed');
        END IF;
    END
    $$;
    """,
]

SQLITE_STATEMENTS: List[str] = [
    "CREATE INDEX IF NOT EXISTS ix_reservation_confirmed_court_start "
    "ON reservation (court_id, start_time) WHERE status = 'confirmed';",
]


def _is_sqlite(engine: Engine) -> bool:
    return engine.dialect.name.lower() == "sqlite"


def _table_exists(engine: Engine, table_name: str) -> bool:
    if _is_sqlite(engine):
        sql = "SELECT name FROM sqlite_master WHERE type='table' AND name=:table_name"
    else:
        sql = """
        SELECT table_name FROM information_schema.tables
        WHERE table_schema = 'public' AND table_name = :table_name
        """
    with engine.connect() as conn:
        return conn.execute(text(sql), {"table_name": table_name}).fetchone() is not None


def ensure_reservation_constraints(engine: Engine) -> bool:
    """
    Idempotently installs reservation indexes/constraints that create_all cannot express.
    Safe to run at every startup. Returns True when the statements were applied.
    """
    try:
        from courtbook.models.reservation import Reservation

        table = Reservation.__table__.name
        if not _table_exists(engine, table):
            # create_all has not run yet
            return False

        statements = SQLITE_STATEMENTS if _is_sqlite(engine) else PG_STATEMENTS
        with engine.begin() as conn:
            for statement in statements:
                conn.execute(text(statement))
        return True
    except Exception as e:
        # Log error but don't crash the server
        logger.warning(f"Failed to ensure reservation constraints: {e}")
        return False

import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from campusjobs.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    """
    Connection pool options per backend.

    PostgreSQL keeps 5 connections ready and allows 10 extra under load.
    SQLite (tests, local runs) shares a single connection so an in-memory
    database survives between sessions.
    """
    if url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {"pool_size": 5, "max_overflow": 10}


engine = create_engine(
    settings.sqlalchemy_url,
    echo=settings.debug,  # Log SQL queries in debug mode
    **_engine_options(settings.sqlalchemy_url)
)


if engine.dialect.name == "sqlite":
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # ON DELETE CASCADE is ignored by SQLite unless enabled per connection
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Everything executed inside the block is one transaction: it commits when
    the block exits normally and rolls back on any exception (including an
    HTTPException raised to reject the request).

    Usage:
        with get_db_session() as db:
            db.execute(text("SELECT * FROM users"))
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def supports_row_locks(db: Session) -> bool:
    """SELECT ... FOR UPDATE is only meaningful (and valid) on PostgreSQL."""
    return db.get_bind().dialect.name == "postgresql"


def utc_now() -> datetime:
    return datetime.utcnow()


def utc_today() -> date:
    """Today's date in the timezone the database stamps rows with."""
    return datetime.utcnow().date()


def as_datetime(value) -> Optional[datetime]:
    """Column value as datetime. SQLite hands raw SQL results back as text."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def as_date(value) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def check_database_connection() -> bool:
    """
    Check that the database is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        with get_db_session() as db:
            result = db.execute(text("SELECT 1 as ping"))
            row = result.fetchone()
            return row[0] == 1
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False


def rows_to_dicts(result) -> list:
    """Convert a SQLAlchemy result to a list of dicts."""
    columns = list(result.keys())
    return [dict(zip(columns, row)) for row in result.fetchall()]


def execute_raw_sql(sql: str, params: dict = None) -> list:
    """
    Execute raw SQL and return results as list of dicts.
    This is useful for read-only listing and dashboard queries.
    """
    with get_db_session() as db:
        result = db.execute(text(sql), params or {})
        return rows_to_dicts(result)

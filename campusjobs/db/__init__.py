"""
Database module - engine, sessions and table definitions.
"""
from campusjobs.db.database import get_db_session, check_database_connection

__all__ = [
    "get_db_session",
    "check_database_connection",
]

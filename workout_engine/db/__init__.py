"""Database infrastructure."""

from workout_engine.db.session import (
    SessionScope,
    build_engine,
    build_session_scope,
    close_db,
    create_tables,
    get_async_session,
    init_db,
)

__all__ = [
    "SessionScope",
    "build_engine",
    "build_session_scope",
    "close_db",
    "create_tables",
    "get_async_session",
    "init_db",
]

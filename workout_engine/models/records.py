"""Persistence tables for the SQL session repository.

- active_sessions: one row per user with a non-terminal session;
  ``user_id`` is the primary key so a second insert fails atomically
- session_snapshots: latest emitted SessionState per session, overwritten
  on every save
"""

from __future__ import annotations

from datetime import datetime

from sqlmodel import Field, SQLModel

from workout_engine.utils.datetime import utcnow


class ActiveSessionRecord(SQLModel, table=True):
    """Marks the single in-flight session of a user."""

    __tablename__ = "active_sessions"

    user_id: str = Field(primary_key=True)
    session_id: str = Field(index=True)
    acquired_at: datetime = Field(default_factory=utcnow)


class SessionSnapshotRecord(SQLModel, table=True):
    """Recovery point of one session."""

    __tablename__ = "session_snapshots"

    session_id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    status: str
    # SessionState serialized with model_dump_json()
    payload: str
    saved_at: datetime = Field(default_factory=utcnow)

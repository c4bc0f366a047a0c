"""Async database access for the SQL repository.

The process-wide engine is built lazily from settings. The builders
below are also used on their own to point a repository at another
database (tests, tools).
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

# Registers the tables on SQLModel.metadata
import workout_engine.models  # noqa: F401
from workout_engine.config import DatabaseConfig, get_settings

logger = structlog.get_logger()

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]

_engine: AsyncEngine | None = None
_session_scope: SessionScope | None = None


def build_engine(config: DatabaseConfig) -> AsyncEngine:
    return create_async_engine(config.url, echo=config.echo)


def build_session_scope(engine: AsyncEngine) -> SessionScope:
    """Transaction-per-use scope on ``engine``.

    Commits on clean exit, rolls back and re-raises otherwise.
    """
    factory = async_sessionmaker(engine, expire_on_commit=False)

    @asynccontextmanager
    async def scope() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return scope


async def create_tables(engine: AsyncEngine) -> None:
    """Create tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


def _get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings().database)
    return _engine


def _get_session_scope() -> SessionScope:
    global _session_scope
    if _session_scope is None:
        _session_scope = build_session_scope(_get_engine())
    return _session_scope


async def init_db() -> None:
    engine = _get_engine()
    await create_tables(engine)
    logger.info("db.initialized", url=str(engine.url))


async def close_db() -> None:
    global _engine, _session_scope
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_scope = None


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Session on the configured database.

    Usage:
        async with get_async_session() as session:
            result = await session.execute(select(Model))
    """
    async with _get_session_scope()() as session:
        yield session

"""Database connection and session management."""

from collections.abc import AsyncGenerator, Iterable
from typing import Any

from sqlalchemy import event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tasklinks.config import get_settings


# Lazy initialization of database engine and session maker
# This avoids creating connections at import time, improving testability
_engine: AsyncEngine | None = None
_async_session_maker: async_sessionmaker[AsyncSession] | None = None

_INSERT_BUILDERS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with the connection hooks TaskLinks relies on.

    SQLite needs two adjustments: foreign keys are off by default (cascades
    and SET NULL would silently not happen), and the driver's implicit
    transaction handling breaks SAVEPOINT, which provisioning uses.
    """
    engine = create_async_engine(database_url, echo=echo)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            # Let SQLAlchemy emit BEGIN itself
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def _on_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def get_engine() -> AsyncEngine:
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = build_engine(settings.database_url, echo=settings.debug)
    return _engine


def get_async_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get or create the async session maker (lazy initialization)."""
    global _async_session_maker
    if _async_session_maker is None:
        _async_session_maker = build_session_maker(get_engine())
    return _async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions.

    One request is one transaction: commit on success, rollback on any
    exception.
    """
    async with get_async_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def insert_or_ignore(
    session: AsyncSession,
    model: Any,
    values: dict[str, Any],
    key: Iterable[str],
) -> bool:
    """Insert a row unless one with the same ``key`` columns already exists.

    Only a conflict on ``key`` is ignored; any other constraint violation
    still raises. Returns True when a row was written.
    """
    conn = await session.connection()
    builder = _INSERT_BUILDERS.get(conn.dialect.name)
    if builder is None:
        raise NotImplementedError(
            f"insert_or_ignore is not supported on {conn.dialect.name}"
        )

    stmt = (
        builder(model.__table__)
        .values(**values)
        .on_conflict_do_nothing(index_elements=list(key))
    )
    result = await session.execute(stmt)
    return result.rowcount > 0


async def init_db() -> None:
    """Initialize database tables."""
    from tasklinks.models import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    global _engine, _async_session_maker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_maker = None


def reset_db_state() -> None:
    """Reset database state for testing.

    This clears the cached engine and session maker, allowing tests
    to configure a fresh database connection.
    """
    global _engine, _async_session_maker
    _engine = None
    _async_session_maker = None

"""Database setup using SQLAlchemy.

Provides Base class for models, session management and the
dialect-specific INSERT used for atomic upserts.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from typing import AsyncGenerator
import logging

logger = logging.getLogger(__name__)

# Base class for all models
Base = declarative_base()

# Global session maker
_session_maker: async_sessionmaker[AsyncSession] | None = None
_engine = None


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (SQLite drops tzinfo anyway)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_memory_url(database_url: str) -> bool:
    """Check whether URL points to an in-memory SQLite database."""
    return database_url.startswith("sqlite") and (
        ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite+aiosqlite:")
    )


def init_database(database_url: str) -> None:
    """Initialize database engine and session maker.

    Args:
        database_url: SQLAlchemy database URL (e.g., 'sqlite+aiosqlite:///bot.db')
    """
    global _session_maker, _engine

    logger.info(f"Initializing database with URL: {database_url}")

    engine_kwargs = {}
    if is_memory_url(database_url):
        # One shared connection, otherwise every checkout sees an empty database
        engine_kwargs = {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }

    # Create async engine
    _engine = create_async_engine(
        database_url,
        echo=False,  # Set to True for SQL query debugging
        **engine_kwargs,
    )

    # Create session maker
    _session_maker = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    logger.info("Database initialized successfully")


async def create_tables() -> None:
    """Create all tables in the database.

    Should be called once during application startup.
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    logger.info("Creating database tables...")

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables created successfully")


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Commits on success and rolls back if the block raises.

    Yields:
        AsyncSession: Database session

    Example:
        async with get_session() as session:
            result = await session.execute(query)
    """
    if _session_maker is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with _session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def upsert_insert(session: AsyncSession, model):
    """Return an INSERT construct supporting ON CONFLICT for the session's dialect.

    Both SQLite and PostgreSQL provide on_conflict_do_update() with RETURNING,
    which is what the counters rely on for atomic increments.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise RuntimeError(f"Atomic upsert is not supported for dialect {dialect!r}")


async def close_database() -> None:
    """Close database engine.

    Should be called during application shutdown.
    """
    global _engine, _session_maker

    if _engine is None:
        return

    logger.info("Closing database connection...")
    await _engine.dispose()
    _engine = None
    _session_maker = None
    logger.info("Database connection closed")

"""
Connection Engine (SQLAlchemy asyncio)

Purpose
-------
Centralizes database initialization for the application:
- Builds a SQLAlchemy connection URL from environment-backed settings.
- Creates the AsyncEngine (connection pool + SQL execution entry point).
- Defines shared MetaData for table and schema objects.
- Exposes a Declarative Base class for ORM models.
- Holds the session factory used by ``@transactional``; ``bind_engine`` swaps it
  (application startup, tests).

Notes
-----
- Uses `URL.create(...)` to avoid hardcoding credentials; `DATABASE_URL` wins when set.
- Creating the engine does not open a connection; the first session does.
- All ORM models must inherit from `declarativeBase` to share `metadata`.
"""


from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import MetaData
from workboard.database.config.config import settings


def build_connection_url():
    """Return the database URL described by ``settings``."""
    if settings.DATABASE_URL:
        return make_url(settings.DATABASE_URL)
    return URL.create(
        drivername=settings.DB_DRIVER_NAME,   # e.g., "postgresql+asyncpg"
        username=settings.DB_USERNAME,
        password=settings.DB_PASSWORD,
        host=settings.DB_HOST,
        port=settings.DB_PORT,
        database=settings.DB_DATABASE_NAME,
    )


connection_url = build_connection_url()
"""SQLAlchemy connection URL built from Settings."""

# --------------------------------------------------------------------
# Engine object: core interface to the database.
# Responsible for managing connections, executing SQL, and pooling.
# --------------------------------------------------------------------
connection_engine: AsyncEngine = create_async_engine(connection_url, echo=settings.DB_ECHO)
"""AsyncEngine object: Core interface to the database."""

session_factory = async_sessionmaker(bind=connection_engine, expire_on_commit=False)
"""Factory producing `AsyncSession` objects bound to the current engine."""

# --------------------------------------------------------------------
# Metadata object: stores schema-level information about tables.
# Shared across all models and every table bound by name.
# --------------------------------------------------------------------
metadata = MetaData()
"""
Metadata object: Stores schema-level information about tables, constraints, indexes, etc. Shared across all models.
"""

declarativeBase = declarative_base(metadata=metadata)
"""Declarative Base: Root class for ORM models."""


def bind_engine(engine: AsyncEngine) -> None:
    """
    Point ``@transactional`` at another engine.

    Parameters
    ----------
    engine : AsyncEngine
        Engine every new session will be bound to.
    """
    global connection_engine, session_factory
    connection_engine = engine
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)


def get_session_factory() -> async_sessionmaker:
    """Return the session factory of the currently bound engine."""
    return session_factory


async def create_tables() -> None:
    """Create every table registered on ``metadata`` that does not exist yet."""
    async with connection_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


async def drop_tables() -> None:
    """Drop every table registered on ``metadata``."""
    async with connection_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)

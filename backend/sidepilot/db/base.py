"""Declarative base plus the process-wide async engine.

``init_db`` is called once from the app lifespan (or a script); everything
else asks ``get_session_factory`` for sessions.
"""

from sqlalchemy import MetaData, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from sidepilot.core.config import get_settings

# Stable constraint names so Alembic autogenerate diffs cleanly
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db(url: str | None = None, create_tables: bool | None = None) -> None:
    """Create the engine and session factory; no-op if already initialised.

    Args:
        url: overrides DATABASE_URL
        create_tables: run ``create_all`` (defaults to DB_CREATE_TABLES);
            production schemas are owned by Alembic
    """
    global _engine, _session_factory

    if _engine is not None:
        return

    settings = get_settings()
    if create_tables is None:
        create_tables = settings.db_create_tables

    _engine = create_async_engine(url or settings.database_url, echo=settings.debug, pool_pre_ping=True)
    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)

    if create_tables:
        import sidepilot.db.models  # noqa: F401

        async with _engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Raises RuntimeError if init_db() has not been called."""
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory


async def ping_db() -> None:
    """Round-trip ``SELECT 1``; raises on any failure."""
    async with get_session_factory()() as session:
        await session.execute(text("SELECT 1"))

"""ProjectStore: persistence boundary for users and owner-scoped projects.

Every project operation takes the caller's ``owner_id`` and only ever touches
rows owned by that user, so a foreign id behaves exactly like a missing one.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Protocol

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sidepilot.core.config import get_settings
from sidepilot.core.exceptions import StorageUnavailableError
from sidepilot.db.base import get_session_factory
from sidepilot.db.models.project import Project
from sidepilot.db.models.user import User

logger = structlog.get_logger(__name__)

# Columns a client may write; id, user_id and timestamps are server-assigned
WRITABLE_FIELDS: frozenset[str] = frozenset({
    "name",
    "description",
    "status",
    "progress",
    "monthly_cost",
    "ai_updates",
    "github_url",
    "live_url",
    "docs_url",
})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectStore(Protocol):
    """Storage interface shared by the SQL store and the in-memory double."""

    async def upsert_user(self, identity: Any) -> User: ...

    async def get_user(self, user_id: str) -> User | None: ...

    async def list_projects(self, owner_id: str) -> list[Project]: ...

    async def get_project(self, project_id: int, owner_id: str) -> Project | None: ...

    async def create_project(self, fields: dict[str, Any], owner_id: str) -> Project: ...

    async def update_project(
        self, project_id: int, owner_id: str, changes: dict[str, Any]
    ) -> Project | None: ...

    async def delete_project(self, project_id: int, owner_id: str) -> bool: ...

    async def touch_activity(self, project_id: int, owner_id: str) -> bool: ...


def writable(fields: dict[str, Any]) -> dict[str, Any]:
    """Drop anything that is not a client-writable column."""
    return {key: value for key, value in fields.items() if key in WRITABLE_FIELDS}


def upsert_insert_for(dialect: str):
    """``insert`` construct with ON CONFLICT support for the given dialect."""
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"User upsert is not supported on the {dialect!r} dialect")


class SqlProjectStore:
    """SQLAlchemy-backed ProjectStore.

    The session factory is resolved lazily so constructing the store never
    touches the database; an uninitialised engine surfaces as
    StorageUnavailableError on first use.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            factory = self._session_factory or get_session_factory()
        except RuntimeError as exc:
            logger.error("storage_not_initialized", error=str(exc))
            raise StorageUnavailableError(str(exc)) from exc

        # Drivers report refused or dropped connections as plain OSError
        try:
            async with factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as exc:
            logger.error(
                "storage_error",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise StorageUnavailableError(str(exc)) from exc

    async def upsert_user(self, identity: Any) -> User:
        now = utcnow()
        async with self._session() as session:
            insert = upsert_insert_for(session.get_bind().dialect.name)

            stmt = insert(User).values(
                id=identity.id,
                email=identity.email,
                first_name=identity.first_name,
                last_name=identity.last_name,
                image_url=identity.image_url,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[User.id],
                set_={
                    "email": stmt.excluded.email,
                    "first_name": stmt.excluded.first_name,
                    "last_name": stmt.excluded.last_name,
                    "image_url": stmt.excluded.image_url,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            await session.execute(stmt)
            await session.commit()

            result = await session.execute(
                select(User).where(User.id == identity.id).execution_options(populate_existing=True)
            )
            return result.scalar_one()

    async def get_user(self, user_id: str) -> User | None:
        async with self._session() as session:
            result = await session.execute(select(User).where(User.id == user_id))
            return result.scalar_one_or_none()

    async def list_projects(self, owner_id: str) -> list[Project]:
        async with self._session() as session:
            result = await session.execute(select(Project).where(Project.user_id == owner_id))
            return list(result.scalars().all())

    async def get_project(self, project_id: int, owner_id: str) -> Project | None:
        async with self._session() as session:
            return await self._get_owned(session, project_id, owner_id)

    async def create_project(self, fields: dict[str, Any], owner_id: str) -> Project:
        now = utcnow()
        async with self._session() as session:
            project = Project(
                **writable(fields),
                user_id=owner_id,
                created_at=now,
                last_activity=now,
            )
            session.add(project)
            await session.commit()
            await session.refresh(project)
            return project

    async def update_project(
        self, project_id: int, owner_id: str, changes: dict[str, Any]
    ) -> Project | None:
        async with self._session() as session:
            project = await self._get_owned(session, project_id, owner_id)
            if project is None:
                return None

            for key, value in writable(changes).items():
                setattr(project, key, value)
            project.last_activity = utcnow()

            await session.commit()
            await session.refresh(project)
            return project

    async def delete_project(self, project_id: int, owner_id: str) -> bool:
        async with self._session() as session:
            result = await session.execute(
                delete(Project).where(
                    Project.id == project_id,
                    Project.user_id == owner_id,
                )
            )
            await session.commit()
            return (result.rowcount or 0) > 0

    async def touch_activity(self, project_id: int, owner_id: str) -> bool:
        async with self._session() as session:
            result = await session.execute(
                update(Project)
                .where(
                    Project.id == project_id,
                    Project.user_id == owner_id,
                )
                .values(last_activity=utcnow())
            )
            await session.commit()
            return (result.rowcount or 0) > 0

    @staticmethod
    async def _get_owned(session: AsyncSession, project_id: int, owner_id: str) -> Project | None:
        result = await session.execute(
            select(Project).where(
                Project.id == project_id,
                Project.user_id == owner_id,
            )
        )
        return result.scalar_one_or_none()


_memory_store: ProjectStore | None = None


def get_store() -> ProjectStore:
    """FastAPI dependency returning the configured ProjectStore.

    ``STORAGE_BACKEND=memory`` selects a process-local store (local dev only);
    anything else uses the database.
    """
    global _memory_store

    if get_settings().storage_backend == "memory":
        if _memory_store is None:
            from sidepilot.db.memory import MemoryProjectStore

            _memory_store = MemoryProjectStore()
        return _memory_store
    return SqlProjectStore()

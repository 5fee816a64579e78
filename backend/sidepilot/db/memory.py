"""In-memory ProjectStore used as a test double and for local development.

Returns detached copies so callers can't mutate stored state, the same way
rows fetched from a real database behave.
"""

import itertools
from typing import Any

from sidepilot.db.models.project import Project
from sidepilot.db.models.user import User
from sidepilot.db.storage import utcnow, writable


def _copy_row(model, row):
    return model(**{column.key: getattr(row, column.key) for column in model.__table__.columns})


class MemoryProjectStore:
    """Dict-backed ProjectStore with the same ownership rules as SqlProjectStore."""

    def __init__(self) -> None:
        self._projects: dict[int, Project] = {}
        self._users: dict[str, User] = {}
        self._ids = itertools.count(1)

    async def upsert_user(self, identity: Any) -> User:
        now = utcnow()
        existing = self._users.get(identity.id)
        user = User(
            id=identity.id,
            email=identity.email,
            first_name=identity.first_name,
            last_name=identity.last_name,
            image_url=identity.image_url,
            created_at=existing.created_at if existing is not None else now,
            updated_at=now,
        )
        self._users[identity.id] = user
        return _copy_row(User, user)

    async def get_user(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return _copy_row(User, user) if user is not None else None

    async def list_projects(self, owner_id: str) -> list[Project]:
        return [_copy_row(Project, p) for p in self._projects.values() if p.user_id == owner_id]

    async def get_project(self, project_id: int, owner_id: str) -> Project | None:
        project = self._owned(project_id, owner_id)
        return _copy_row(Project, project) if project is not None else None

    async def create_project(self, fields: dict[str, Any], owner_id: str) -> Project:
        now = utcnow()
        values = {
            "status": "planning",
            "progress": 0,
            "monthly_cost": 0,
            "ai_updates": 0,
            "github_url": None,
            "live_url": None,
            "docs_url": None,
            **writable(fields),
        }
        project = Project(
            id=next(self._ids),
            user_id=owner_id,
            created_at=now,
            last_activity=now,
            **values,
        )
        self._projects[project.id] = project
        return _copy_row(Project, project)

    async def update_project(
        self, project_id: int, owner_id: str, changes: dict[str, Any]
    ) -> Project | None:
        project = self._owned(project_id, owner_id)
        if project is None:
            return None

        for key, value in writable(changes).items():
            setattr(project, key, value)
        project.last_activity = utcnow()
        return _copy_row(Project, project)

    async def delete_project(self, project_id: int, owner_id: str) -> bool:
        if self._owned(project_id, owner_id) is None:
            return False
        del self._projects[project_id]
        return True

    async def touch_activity(self, project_id: int, owner_id: str) -> bool:
        project = self._owned(project_id, owner_id)
        if project is None:
            return False
        project.last_activity = utcnow()
        return True

    def _owned(self, project_id: int, owner_id: str) -> Project | None:
        project = self._projects.get(project_id)
        if project is None or project.user_id != owner_id:
            return None
        return project

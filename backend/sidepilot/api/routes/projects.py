"""Project API routes: owner-scoped CRUD over the ProjectStore."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from sidepilot.core.auth import UserIdentity, require_auth
from sidepilot.core.exceptions import NotFoundError, StorageUnavailableError
from sidepilot.db.storage import ProjectStore, get_store
from sidepilot.domain.portfolio import ProjectStatus, SortKey, filter_projects, sort_projects
from sidepilot.schemas.projects import (
    MessageResponse,
    ProjectCreate,
    ProjectPatch,
    ProjectResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter()

# projects.id is an INTEGER (int4) column
MAX_PROJECT_ID = 2**31 - 1


def parse_project_id(project_id: str) -> int:
    """Path ids must be plain integers; anything else is a 400.

    Integers no project can have are reported as missing (404) without
    reaching the store.
    """
    try:
        pid = int(project_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid project ID")
    if not 1 <= pid <= MAX_PROJECT_ID:
        raise NotFoundError("Project not found")
    return pid


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    sort_by: str | None = Query(None, alias="sortBy"),
    status: ProjectStatus | None = Query(None),
    search: str | None = Query(None),
    user: UserIdentity = Depends(require_auth),
    store: ProjectStore = Depends(get_store),
):
    """List the caller's projects, newest activity first unless ``sortBy`` says otherwise."""
    projects = await store.list_projects(user.id)
    projects = filter_projects(projects, status=status, search=search)
    return sort_projects(projects, SortKey.parse(sort_by))


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    payload: ProjectCreate,
    user: UserIdentity = Depends(require_auth),
    store: ProjectStore = Depends(get_store),
):
    """Create a project owned by the caller."""
    try:
        project = await store.create_project(payload.model_dump(mode="json"), user.id)
    except StorageUnavailableError:
        raise HTTPException(status_code=503, detail="Project storage is temporarily unavailable")

    logger.info("project_created", project_id=project.id, user_id=user.id, status=project.status)
    return project


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    user: UserIdentity = Depends(require_auth),
    store: ProjectStore = Depends(get_store),
):
    """Get a specific project."""
    project = await store.get_project(parse_project_id(project_id), user.id)
    if project is None:
        raise NotFoundError("Project not found")
    return project


async def _apply_patch(
    project_id: str,
    payload: ProjectPatch,
    user: UserIdentity,
    store: ProjectStore,
):
    pid = parse_project_id(project_id)
    changes = payload.changes()
    project = await store.update_project(pid, user.id, changes)
    if project is None:
        raise NotFoundError("Project not found")

    logger.info("project_updated", project_id=pid, user_id=user.id, fields=sorted(changes))
    return project


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    payload: ProjectPatch,
    user: UserIdentity = Depends(require_auth),
    store: ProjectStore = Depends(get_store),
):
    """Apply a partial update; only the fields sent are changed."""
    return await _apply_patch(project_id, payload, user, store)


@router.put("/{project_id}", response_model=ProjectResponse)
async def replace_project(
    project_id: str,
    payload: ProjectPatch,
    user: UserIdentity = Depends(require_auth),
    store: ProjectStore = Depends(get_store),
):
    """Same semantics as PATCH; kept for older clients."""
    return await _apply_patch(project_id, payload, user, store)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: str,
    user: UserIdentity = Depends(require_auth),
    store: ProjectStore = Depends(get_store),
):
    """Hard-delete a project."""
    pid = parse_project_id(project_id)
    deleted = await store.delete_project(pid, user.id)
    if not deleted:
        raise NotFoundError("Project not found")

    logger.info("project_deleted", project_id=pid, user_id=user.id)
    return Response(status_code=204)


@router.post("/{project_id}/activity", response_model=MessageResponse)
async def touch_activity(
    project_id: str,
    user: UserIdentity = Depends(require_auth),
    store: ProjectStore = Depends(get_store),
):
    """Mark the project as recently worked on (updates lastActivity only)."""
    touched = await store.touch_activity(parse_project_id(project_id), user.id)
    if not touched:
        raise NotFoundError("Project not found")
    return MessageResponse(message="Activity updated")

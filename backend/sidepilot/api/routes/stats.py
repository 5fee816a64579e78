"""Portfolio statistics endpoint.

GET /api/stats - aggregate figures over the caller's projects
"""

from fastapi import APIRouter, Depends

from sidepilot.core.auth import UserIdentity, require_auth
from sidepilot.db.storage import ProjectStore, get_store
from sidepilot.domain.portfolio import compute_stats
from sidepilot.schemas.projects import StatsResponse

router = APIRouter()


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    user: UserIdentity = Depends(require_auth),
    store: ProjectStore = Depends(get_store),
) -> StatsResponse:
    """Active count, total monthly cost (cents), average progress, pending AI updates."""
    projects = await store.list_projects(user.id)
    stats = compute_stats(projects)
    return StatsResponse(
        active_projects=stats.active_projects,
        total_cost=stats.total_cost,
        avg_progress=stats.avg_progress,
        pending_ai_updates=stats.pending_ai_updates,
        total_projects=stats.total_projects,
        completed_projects=stats.completed_projects,
        status_breakdown=stats.status_breakdown,
    )

"""Portfolio ordering, filtering, and aggregate statistics.

Pure domain logic over Project-like objects (anything exposing ``status``,
``progress``, ``monthly_cost``, ``ai_updates``, ``last_activity``, ``name``
and ``description``). No database or HTTP dependencies.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ProjectStatus(StrEnum):
    """Project lifecycle status."""

    PLANNING = "planning"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    BLOCKED = "blocked"


class SortKey(StrEnum):
    """Query-string values accepted by ``sortBy``. All orderings are descending."""

    LAST_ACTIVITY = "lastActivity"
    PROGRESS = "progress"
    COST = "cost"
    AI_UPDATES = "aiUpdates"

    @classmethod
    def parse(cls, value: str | None) -> "SortKey":
        """Resolve a raw query value, falling back to LAST_ACTIVITY."""
        try:
            return cls(value) if value else cls.LAST_ACTIVITY
        except ValueError:
            return cls.LAST_ACTIVITY


_SORT_ATTRIBUTES: dict[SortKey, str] = {
    SortKey.LAST_ACTIVITY: "last_activity",
    SortKey.PROGRESS: "progress",
    SortKey.COST: "monthly_cost",
    SortKey.AI_UPDATES: "ai_updates",
}


def sort_projects(projects: Iterable[Any], sort_by: SortKey = SortKey.LAST_ACTIVITY) -> list[Any]:
    """Return projects ordered descending by the given key.

    Ties keep their input order (``sorted`` is stable).
    """
    attribute = _SORT_ATTRIBUTES[sort_by]
    return sorted(projects, key=lambda p: getattr(p, attribute), reverse=True)


def filter_projects(
    projects: Iterable[Any],
    status: ProjectStatus | None = None,
    search: str | None = None,
) -> list[Any]:
    """Filter by exact status and a case-insensitive name/description substring."""
    needle = search.strip().lower() if search else ""
    result = []
    for project in projects:
        if status is not None and project.status != status:
            continue
        if needle and needle not in project.name.lower() and needle not in project.description.lower():
            continue
        result.append(project)
    return result


@dataclass
class PortfolioStats:
    """Aggregate figures for the dashboard header and analytics page."""

    active_projects: int = 0
    total_cost: int = 0
    avg_progress: int = 0
    pending_ai_updates: int = 0
    total_projects: int = 0
    completed_projects: int = 0
    status_breakdown: dict[str, int] = field(
        default_factory=lambda: {status.value: 0 for status in ProjectStatus}
    )


def round_half_up_mean(total: int, count: int) -> int:
    """Mean of non-negative integers rounded half-up, 0 when count is 0."""
    if count == 0:
        return 0
    return (2 * total + count) // (2 * count)


def compute_stats(projects: Sequence[Any]) -> PortfolioStats:
    """Compute portfolio statistics.

    Args:
        projects: the caller's projects (already owner-scoped)

    Returns:
        PortfolioStats with cost in cents and avg_progress rounded half-up.
    """
    stats = PortfolioStats(total_projects=len(projects))
    progress_total = 0

    for project in projects:
        status = str(project.status)
        stats.status_breakdown[status] = stats.status_breakdown.get(status, 0) + 1
        stats.total_cost += project.monthly_cost
        stats.pending_ai_updates += project.ai_updates
        progress_total += project.progress

    stats.active_projects = stats.status_breakdown[ProjectStatus.ACTIVE.value]
    stats.completed_projects = stats.status_breakdown[ProjectStatus.COMPLETED.value]
    stats.avg_progress = round_half_up_mean(progress_total, len(projects))
    return stats

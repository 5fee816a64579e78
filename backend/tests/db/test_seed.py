"""Tests for the demo portfolio seed."""

import pytest

from sidepilot.db.seed import DEMO_PROJECTS, seed_demo_projects
from sidepilot.domain.portfolio import compute_stats
from sidepilot.schemas.projects import validate_project_input

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("fields", DEMO_PROJECTS, ids=lambda f: f["name"])
def test_demo_projects_are_valid(fields):
    validate_project_input(fields)


async def test_seeds_empty_portfolio_once(store):
    assert await seed_demo_projects(store, "user_alice") == 5
    assert await seed_demo_projects(store, "user_alice") == 0
    assert len(await store.list_projects("user_alice")) == 5


async def test_seeded_stats(store):
    await seed_demo_projects(store, "user_alice")

    stats = compute_stats(await store.list_projects("user_alice"))

    assert stats.active_projects == 2
    assert stats.total_cost == 63100
    assert stats.avg_progress == 47
    assert stats.pending_ai_updates == 3


async def test_existing_projects_block_seeding(store, project_fields):
    await store.create_project(project_fields, "user_bob")

    assert await seed_demo_projects(store, "user_bob") == 0
    assert await seed_demo_projects(store, "user_alice") == 5

"""Idempotent demo data for a new portfolio."""

import structlog

from sidepilot.db.storage import ProjectStore
from sidepilot.schemas.projects import validate_project_input

logger = structlog.get_logger(__name__)

DEMO_PROJECTS = [
    {
        "name": "VibeCRM Dashboard",
        "description": "Customer relationship management system with real-time analytics",
        "status": "active",
        "progress": 87,
        "monthly_cost": 24700,
        "ai_updates": 3,
        "github_url": "https://github.com/vibecodehq/vibecrm",
        "live_url": "https://vibecrm.doodad.ai",
        "docs_url": "https://docs.vibecrm.com",
    },
    {
        "name": "AI Content Generator",
        "description": "Automated blog post and social media content creation tool",
        "status": "paused",
        "progress": 65,
        "monthly_cost": 8900,
        "ai_updates": 0,
        "github_url": "https://github.com/vibecodehq/ai-content",
        "live_url": "",
        "docs_url": "",
    },
    {
        "name": "Expense Tracker Mobile",
        "description": "React Native app for personal finance management",
        "status": "active",
        "progress": 42,
        "monthly_cost": 12700,
        "ai_updates": 0,
        "github_url": "https://github.com/vibecodehq/expense-tracker",
        "live_url": "https://expense-tracker-demo.netlify.app",
        "docs_url": "",
    },
    {
        "name": "E-commerce Analytics",
        "description": "Real-time sales dashboard with predictive insights",
        "status": "blocked",
        "progress": 28,
        "monthly_cost": 15600,
        "ai_updates": 0,
        "github_url": "https://github.com/vibecodehq/ecommerce-analytics",
        "live_url": "",
        "docs_url": "",
    },
    {
        "name": "Portfolio Website v3",
        "description": "Personal portfolio with interactive animations and modern design",
        "status": "planning",
        "progress": 15,
        "monthly_cost": 1200,
        "ai_updates": 0,
        "github_url": "",
        "live_url": "",
        "docs_url": "",
    },
]


async def seed_demo_projects(store: ProjectStore, owner_id: str) -> int:
    """Insert the demo projects for an owner who has none yet.

    Returns the number of projects created (0 when the owner already has data).
    """
    existing = await store.list_projects(owner_id)
    if existing:
        logger.info("demo_seed_skipped", user_id=owner_id, existing=len(existing))
        return 0

    for raw in DEMO_PROJECTS:
        fields = validate_project_input(raw).model_dump(mode="json")
        await store.create_project(fields, owner_id)

    logger.info("demo_seed_complete", user_id=owner_id, created=len(DEMO_PROJECTS))
    return len(DEMO_PROJECTS)

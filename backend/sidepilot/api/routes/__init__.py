from fastapi import APIRouter

from sidepilot.api.routes import auth, health, projects, screenshot, stats

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(stats.router, tags=["stats"])
api_router.include_router(screenshot.router, tags=["link-preview"])

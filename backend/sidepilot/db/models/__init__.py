"""Re-export all models so Base.metadata sees them."""

from sidepilot.db.models.project import Project
from sidepilot.db.models.user import User

__all__ = [
    "Project",
    "User",
]

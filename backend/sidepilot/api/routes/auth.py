from fastapi import APIRouter, Depends

from sidepilot.core.auth import UserIdentity, require_auth
from sidepilot.core.exceptions import NotFoundError
from sidepilot.db.storage import ProjectStore, get_store
from sidepilot.schemas.auth import UserResponse

router = APIRouter()


@router.get("/user", response_model=UserResponse)
async def get_current_user(
    user: UserIdentity = Depends(require_auth),
    store: ProjectStore = Depends(get_store),
):
    """Return the caller's identity as stored locally."""
    stored = await store.get_user(user.id)
    if stored is None:
        raise NotFoundError("User not found")
    return stored

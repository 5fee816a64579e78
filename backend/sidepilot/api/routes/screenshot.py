"""Link preview endpoint used by the project detail view.

GET /api/screenshot?url=... - page title/description/preview image
"""

from fastapi import APIRouter, Depends, Query

from sidepilot.core.auth import UserIdentity, require_auth
from sidepilot.schemas.link_preview import LinkPreviewResponse
from sidepilot.services.link_preview_service import LinkPreviewService, get_link_preview_service

router = APIRouter()


@router.get("/screenshot", response_model=LinkPreviewResponse)
async def get_link_preview(
    url: str = Query(..., min_length=1),
    user: UserIdentity = Depends(require_auth),
    service: LinkPreviewService = Depends(get_link_preview_service),
) -> LinkPreviewResponse:
    """Best-effort metadata for ``url``.

    Unreachable or slow pages return 200 with ``placeholder: true``.
    """
    return await service.preview(url)

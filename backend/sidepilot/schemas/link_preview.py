"""Link preview Pydantic schemas for GET /api/screenshot."""

from pydantic import Field

from sidepilot.schemas.projects import CamelModel


class LinkPreviewResponse(CamelModel):
    """Best-effort page metadata.

    ``placeholder`` is True when the page could not be fetched; title then
    falls back to the host name.
    """

    url: str
    title: str
    description: str = ""
    image: str | None = Field(None, description="Preview image (og:image / twitter:image)")
    screenshot: str | None = Field(None, description="Image URL to render for the project card")
    placeholder: bool = False

"""Auth Pydantic schemas."""

from datetime import datetime

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from sidepilot.schemas.projects import CamelModel


class UserResponse(CamelModel):
    """The caller's identity as mirrored into local storage."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

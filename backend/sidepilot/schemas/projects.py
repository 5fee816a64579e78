"""Project Pydantic schemas: the single source of truth for a valid Project.

JSON keys are camelCase (``monthlyCost``); Python attributes are snake_case
(``monthly_cost``). Both are accepted on input.
"""

from datetime import datetime
from typing import Any

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from sidepilot.core.exceptions import ValidationError
from sidepilot.domain.portfolio import ProjectStatus

_url_adapter = TypeAdapter(AnyUrl)

URL_FIELDS = ("github_url", "live_url", "docs_url")
NON_NULLABLE_FIELDS = ("name", "description", "status", "progress", "monthly_cost", "ai_updates")
NUMBER_FIELDS = ("progress", "monthly_cost", "ai_updates")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_optional_url(value: str | None) -> str | None:
    """Accept None, the empty string, or an absolute URL (kept verbatim)."""
    if value is None or value == "":
        return value
    try:
        _url_adapter.validate_python(value)
    except PydanticValidationError:
        raise ValueError("Must be a valid absolute URL or empty") from None
    return value


def _check_not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("Cannot be empty or whitespace-only")
    return value


def _check_json_number(value: Any) -> Any:
    """Numbers must arrive as JSON numbers; ``true`` or ``"50"`` are not coerced."""
    if isinstance(value, (bool, str)):
        raise ValueError("Must be a number")
    return value


class ProjectCreate(CamelModel):
    """Full payload for POST /api/projects."""

    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    status: ProjectStatus
    progress: int = Field(..., ge=0, le=100)
    monthly_cost: int = Field(..., ge=0, description="Monthly cost in cents")
    ai_updates: int = Field(0, ge=0)
    github_url: str | None = None
    live_url: str | None = None
    docs_url: str | None = None

    check_not_blank = field_validator("name", "description")(_check_not_blank)
    check_numbers = field_validator(*NUMBER_FIELDS, mode="before")(_check_json_number)
    check_urls = field_validator(*URL_FIELDS)(_check_optional_url)


class ProjectPatch(CamelModel):
    """Partial payload for PATCH/PUT /api/projects/{id}.

    Every field is optional; rules apply only to fields present. Use
    ``changes()`` to get the fields the client actually sent.
    """

    name: str | None = Field(None, min_length=1)
    description: str | None = Field(None, min_length=1)
    status: ProjectStatus | None = None
    progress: int | None = Field(None, ge=0, le=100)
    monthly_cost: int | None = Field(None, ge=0)
    ai_updates: int | None = Field(None, ge=0)
    github_url: str | None = None
    live_url: str | None = None
    docs_url: str | None = None

    @field_validator(*NON_NULLABLE_FIELDS, mode="before")
    @classmethod
    def reject_explicit_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    check_not_blank = field_validator("name", "description")(_check_not_blank)
    check_numbers = field_validator(*NUMBER_FIELDS, mode="before")(_check_json_number)
    check_urls = field_validator(*URL_FIELDS)(_check_optional_url)

    def changes(self) -> dict[str, Any]:
        """Snake-case dict of the fields present in the request."""
        return self.model_dump(mode="json", exclude_unset=True)


class ProjectResponse(CamelModel):
    """A stored Project as returned by the API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    user_id: str
    name: str
    description: str
    status: ProjectStatus
    progress: int
    monthly_cost: int
    last_activity: datetime
    ai_updates: int
    github_url: str | None = None
    live_url: str | None = None
    docs_url: str | None = None
    created_at: datetime


class StatsResponse(CamelModel):
    """GET /api/stats payload. Costs are in cents."""

    active_projects: int
    total_cost: int
    avg_progress: int = Field(..., ge=0, le=100)
    pending_ai_updates: int
    total_projects: int = 0
    completed_projects: int = 0
    status_breakdown: dict[str, int] = Field(default_factory=dict)


class MessageResponse(BaseModel):
    message: str


def field_errors(errors: list[dict]) -> list[dict[str, str]]:
    """Flatten pydantic error dicts into ``{path, message}`` pairs.

    Leading ``body``/``query``/``path`` location segments are dropped so paths
    read as the JSON field name (``monthlyCost``).
    """
    result = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        message = error.get("msg", "Invalid value")
        # pydantic prefixes messages from ValueError validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        result.append({"path": ".".join(loc), "message": message})
    return result


def validate_project_input(raw: Any, *, partial: bool = False) -> ProjectCreate | ProjectPatch:
    """Validate a raw (JSON-decoded) payload against the Project schema.

    Args:
        raw: decoded request body
        partial: accept any subset of fields (update operations)

    Returns:
        ProjectCreate in full mode, ProjectPatch in partial mode.

    Raises:
        ValidationError: with one ``{path, message}`` entry per failing field.
    """
    model = ProjectPatch if partial else ProjectCreate
    try:
        return model.model_validate(raw)
    except PydanticValidationError as exc:
        raise ValidationError("Validation error", errors=field_errors(exc.errors())) from exc

"""PortfolioClient: async data-access layer for the SidePilot API.

Wraps httpx with:
- Bearer token attachment from a caller-supplied token getter
- Dollar -> cent conversion on writes (``monthlyCost`` is entered in dollars)
- A per-URL query cache for GETs, cleared by every mutation
- ``ApiError`` carrying status, message and field errors for non-2xx replies
"""

from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any

import httpx
import structlog

from sidepilot.domain.money import cents_to_dollars, dollars_to_cents

logger = structlog.get_logger(__name__)

TokenGetter = Callable[[], Awaitable[str | None]]


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str, errors: list[dict] | None = None):
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
        super().__init__(f"{status_code}: {message}")


def project_cost_dollars(project: dict) -> Decimal:
    """Monthly cost of an API project dict as exact Decimal dollars."""
    return cents_to_dollars(project["monthlyCost"])


def _to_wire(fields: dict[str, Any]) -> dict[str, Any]:
    body = dict(fields)
    if body.get("monthlyCost") is not None:
        body["monthlyCost"] = dollars_to_cents(body["monthlyCost"])
    return body


class PortfolioClient:
    """Client for the SidePilot REST API.

    Usage::

        async with PortfolioClient("https://api.example.com", token_getter=get_token) as client:
            project = await client.create_project({"name": "CRM", ..., "monthlyCost": "12.50"})
            stats = await client.get_stats()
    """

    def __init__(
        self,
        base_url: str,
        token_getter: TokenGetter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._token_getter = token_getter
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self._cache: dict[tuple[str, tuple], Any] = {}

    async def __aenter__(self) -> "PortfolioClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def invalidate(self) -> None:
        """Drop every cached query result."""
        self._cache.clear()

    async def _headers(self) -> dict[str, str]:
        if self._token_getter is None:
            return {}
        try:
            token = await self._token_getter()
        except Exception as exc:
            # Proceed unauthenticated; the API answers 401
            logger.warning("token_getter_failed", error=str(exc), error_type=type(exc).__name__)
            return {}
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(self, method: str, path: str, json: Any = None, params: dict | None = None) -> httpx.Response:
        response = await self._http.request(
            method,
            path,
            json=json,
            params=params,
            headers=await self._headers(),
        )
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("message") if isinstance(body, dict) else None
            errors = body.get("errors") if isinstance(body, dict) else None
            raise ApiError(response.status_code, message or response.reason_phrase or "Request failed", errors)
        return response

    async def _query(self, path: str, params: dict | None = None) -> Any:
        params = {k: v for k, v in (params or {}).items() if v is not None}
        key = (path, tuple(sorted(params.items())))
        if key in self._cache:
            return self._cache[key]

        data = (await self._request("GET", path, params=params or None)).json()
        self._cache[key] = data
        return data

    async def _mutate(self, method: str, path: str, json: Any = None) -> httpx.Response:
        try:
            return await self._request(method, path, json=json)
        finally:
            self.invalidate()

    # Queries

    async def list_projects(
        self,
        sort_by: str = "lastActivity",
        status: str | None = None,
        search: str | None = None,
    ) -> list[dict]:
        return await self._query("/api/projects", {"sortBy": sort_by, "status": status, "search": search})

    async def get_project(self, project_id: int) -> dict:
        return await self._query(f"/api/projects/{project_id}")

    async def get_stats(self) -> dict:
        return await self._query("/api/stats")

    async def get_current_user(self) -> dict | None:
        """Caller's identity, or None when not signed in (401)."""
        try:
            return await self._query("/api/auth/user")
        except ApiError as exc:
            if exc.status_code == 401:
                return None
            raise

    async def get_link_preview(self, url: str) -> dict:
        return await self._query("/api/screenshot", {"url": url})

    # Mutations (``monthlyCost`` in dollars)

    async def create_project(self, fields: dict[str, Any]) -> dict:
        return (await self._mutate("POST", "/api/projects", json=_to_wire(fields))).json()

    async def update_project(self, project_id: int, fields: dict[str, Any]) -> dict:
        return (await self._mutate("PATCH", f"/api/projects/{project_id}", json=_to_wire(fields))).json()

    async def delete_project(self, project_id: int) -> None:
        await self._mutate("DELETE", f"/api/projects/{project_id}")

    async def touch_activity(self, project_id: int) -> None:
        await self._mutate("POST", f"/api/projects/{project_id}/activity")

"""API-specific test fixtures.

Routes run against a MemoryProjectStore and a token -> identity fake, so no
database or Clerk instance is needed.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from sidepilot.core.auth import UserIdentity, get_identity_verifier
from sidepilot.core.exceptions import AuthenticationError
from sidepilot.db.storage import get_store


class FakeVerifier:
    """Maps opaque bearer tokens to identities."""

    def __init__(self, identities: dict[str, UserIdentity]):
        self._identities = identities

    async def verify(self, token: str) -> UserIdentity:
        identity = self._identities.get(token)
        if identity is None:
            raise AuthenticationError("Invalid session")
        return identity


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def verifier(alice, bob):
    return FakeVerifier({"token-alice": alice, "token-bob": bob})


@pytest.fixture
def alice_headers():
    return bearer("token-alice")


@pytest.fixture
def bob_headers():
    return bearer("token-bob")


@pytest.fixture
def project_payload():
    """Valid camelCase POST /api/projects body."""
    return {
        "name": "VibeCRM Dashboard",
        "description": "Customer relationship management system",
        "status": "active",
        "progress": 87,
        "monthlyCost": 24700,
        "aiUpdates": 3,
        "githubUrl": "https://github.com/vibecodehq/vibecrm",
        "liveUrl": "",
    }


@pytest.fixture
def app(store, verifier):
    """FastAPI app with the production routes, handlers and middleware."""
    from sidepilot.api.routes import api_router
    from sidepilot.main import install_exception_handlers
    from sidepilot.middleware.correlation import setup_correlation_middleware

    _app = FastAPI(title="SidePilot - Test Client")
    setup_correlation_middleware(_app)
    install_exception_handlers(_app)
    _app.include_router(api_router, prefix="/api")

    _app.dependency_overrides[get_store] = lambda: store
    _app.dependency_overrides[get_identity_verifier] = lambda: verifier
    return _app


@pytest.fixture
def api_client(app):
    with TestClient(app) as client:
        yield client

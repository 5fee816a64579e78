"""Shared test fixtures for all test groups."""

import pytest

from sidepilot.core.auth import UserIdentity
from sidepilot.db.memory import MemoryProjectStore


@pytest.fixture
def store():
    """Fresh in-memory ProjectStore."""
    return MemoryProjectStore()


@pytest.fixture
def alice():
    return UserIdentity(
        id="user_alice",
        email="alice@example.com",
        first_name="Alice",
        last_name="Anders",
        image_url="https://img.clerk.com/alice.png",
    )


@pytest.fixture
def bob():
    return UserIdentity(id="user_bob", email="bob@example.com", first_name="Bob")


@pytest.fixture
def project_fields():
    """Valid snake_case project fields as the store receives them."""
    return {
        "name": "VibeCRM Dashboard",
        "description": "Customer relationship management system",
        "status": "active",
        "progress": 87,
        "monthly_cost": 24700,
        "ai_updates": 3,
        "github_url": "https://github.com/vibecodehq/vibecrm",
        "live_url": None,
        "docs_url": None,
    }

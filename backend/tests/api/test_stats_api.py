"""Tests for GET /api/stats."""

import pytest

pytestmark = pytest.mark.unit


def _create(api_client, headers, payload, **overrides):
    response = api_client.post("/api/projects", json={**payload, **overrides}, headers=headers)
    assert response.status_code == 201, response.text


def test_empty_portfolio_is_all_zero(api_client, alice_headers):
    response = api_client.get("/api/stats", headers=alice_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["activeProjects"] == 0
    assert body["totalCost"] == 0
    assert body["avgProgress"] == 0
    assert body["pendingAiUpdates"] == 0
    assert body["totalProjects"] == 0
    assert body["statusBreakdown"] == {
        "planning": 0,
        "active": 0,
        "paused": 0,
        "completed": 0,
        "blocked": 0,
    }


def test_aggregates_callers_projects(api_client, alice_headers, project_payload):
    _create(api_client, alice_headers, project_payload, status="active", progress=80, monthlyCost=1000, aiUpdates=1)
    _create(api_client, alice_headers, project_payload, status="paused", progress=40, monthlyCost=2000, aiUpdates=2)
    _create(api_client, alice_headers, project_payload, status="completed", progress=60, monthlyCost=3000, aiUpdates=0)

    body = api_client.get("/api/stats", headers=alice_headers).json()

    assert body["activeProjects"] == 1
    assert body["totalCost"] == 6000
    assert body["avgProgress"] == 60
    assert body["pendingAiUpdates"] == 3
    assert body["totalProjects"] == 3
    assert body["completedProjects"] == 1
    assert body["statusBreakdown"]["paused"] == 1


def test_average_rounds_half_up(api_client, alice_headers, project_payload):
    _create(api_client, alice_headers, project_payload, progress=50)
    _create(api_client, alice_headers, project_payload, progress=51)

    body = api_client.get("/api/stats", headers=alice_headers).json()

    assert body["avgProgress"] == 51


def test_requires_authentication(api_client):
    response = api_client.get("/api/stats")

    assert response.status_code == 401
    assert "debug_id" in response.json()

"""Tests for the check trigger endpoints."""
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from pingpilot.config import settings
from pingpilot.dependencies import get_orchestrator
from pingpilot.main import app
from pingpilot.schemas.check import CheckResultResponse, CheckRunSummary, ManualCheckResponse
from tests.fakes import utc


@pytest.fixture
def orchestrator():
    stub = AsyncMock()
    app.dependency_overrides[get_orchestrator] = lambda: stub
    yield stub
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    # no context manager: lifespan (database, scheduler) stays off
    return TestClient(app)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_run_pass_returns_counters(client, orchestrator):
    orchestrator.run_pass.return_value = CheckRunSummary(total=5, checked=3, up=2, down=1, error=1, skipped=1, alerts_sent=1)

    response = client.get("/api/check-servers")

    assert response.status_code == 200
    assert response.json() == {
        "total": 5,
        "checked": 3,
        "up": 2,
        "down": 1,
        "error": 1,
        "skipped": 1,
        "alerts_sent": 1,
    }


def test_run_pass_failure_is_500(client, orchestrator):
    orchestrator.run_pass.side_effect = ConnectionError("database unreachable")

    response = client.get("/api/check-servers")

    assert response.status_code == 500
    assert response.json()["detail"] == {"error": "Failed to check servers", "details": "database unreachable"}


def test_manual_check(client, orchestrator):
    checked_at = utc(2026, 10, 19, 12, 0)
    orchestrator.run_manual_check.return_value = ManualCheckResponse(
        target_id=4,
        result=CheckResultResponse(status="up", response_time_ms=85, error_message=None, checked_at=checked_at),
        alert_sent=False,
        hourly=[],
    )

    response = client.post("/api/check-servers", json={"target_id": 4})

    assert response.status_code == 200
    body = response.json()
    assert body["target_id"] == 4
    assert body["result"]["status"] == "up"
    assert body["result"]["response_time_ms"] == 85
    orchestrator.run_manual_check.assert_awaited_once_with(4)


def test_manual_check_unknown_target(client, orchestrator):
    orchestrator.run_manual_check.return_value = None

    response = client.post("/api/check-servers", json={"target_id": 99})

    assert response.status_code == 404


def test_manual_check_requires_target_id(client, orchestrator):
    response = client.post("/api/check-servers", json={})

    assert response.status_code == 422


def test_api_key_required_when_configured(client, orchestrator, monkeypatch):
    monkeypatch.setattr(settings, "monitoring_api_key", "s3cret")
    orchestrator.run_pass.return_value = CheckRunSummary()

    assert client.get("/api/check-servers").status_code == 401
    assert client.get("/api/check-servers", headers={"X-API-Key": "wrong"}).status_code == 401
    assert client.get("/api/check-servers", headers={"X-API-Key": "s3cret"}).status_code == 200

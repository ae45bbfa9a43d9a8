"""
Tests for health check endpoints.
"""

from unittest.mock import patch

from fastapi.testclient import TestClient

from academy.config import settings
from academy.main import app

client = TestClient(app)


def test_health_reports_configuration_presence(monkeypatch):
    monkeypatch.setattr(settings, "AI_PROVIDER", "groq")
    monkeypatch.setattr(settings, "GROQ_API_KEY", "gsk-secret")
    monkeypatch.setattr(settings, "ELEVENLABS_API_KEY", None)
    monkeypatch.setattr(settings, "DATABASE_URL", "postgresql://db/academy")

    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "timestamp" in data
    assert data["env"] == {
        "ai_provider": "groq",
        "has_ai_key": True,
        "has_elevenlabs": False,
        "has_database": True,
    }
    # Secrets never leak
    assert "gsk-secret" not in response.text
    assert "postgresql://" not in response.text


def test_readyz_all_healthy(monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_URL", "postgresql://db/academy")
    monkeypatch.setattr(settings, "AI_PROVIDER", "gemini")
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "key")
    monkeypatch.setattr(settings, "ELEVENLABS_API_KEY", "key")

    db_health = {
        "healthy": True,
        "connection_time_ms": 1.2,
        "pool_stats": {"pool_size": 2, "pool_available": 2, "pool_utilization_percent": 0.0},
    }
    with patch("academy.routes.health.db_health_check", return_value=db_health):
        response = client.get("/api/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["database"]["ok"] is True
    assert data["checks"]["database"]["pool_size"] == 2
    assert data["checks"]["configuration"]["ok"] is True


def test_readyz_database_down(monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_URL", None)

    with patch(
        "academy.routes.health.db_health_check",
        return_value={"healthy": False, "error": "Pool not initialized"},
    ):
        response = client.get("/api/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["database"]["ok"] is False
    assert data["checks"]["database"]["error"] == "Pool not initialized"
    assert "DATABASE_URL not set" in data["checks"]["configuration"]["issues"]


def test_unknown_api_path_returns_json_404():
    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"error": "API endpoint not found"}


def test_responses_carry_request_id_and_security_headers():
    response = client.get("/api/health", headers={"X-Request-ID": "req-12345678"})

    assert response.headers["X-Request-ID"] == "req-12345678"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"

from fastapi.testclient import TestClient

from automation_studio.backend.app.api import automations as automations_router
from automation_studio.backend.app.main import app


class _BrokenService:
    def list_summaries(self):
        raise RuntimeError("disk on fire")


def test_not_found_envelope_includes_request_id() -> None:
    client = TestClient(app)

    resp = client.get("/api/automations/does-not-exist")

    assert resp.status_code == 404
    data = resp.json()
    assert data["error_code"] == "not_found"
    assert data["detail"] == "Automation not found"
    assert data["request_id"]
    assert resp.headers.get("X-Request-ID") == data["request_id"]


def test_request_validation_envelope() -> None:
    client = TestClient(app)

    resp = client.post("/api/automations", json={"name": "No slug"})

    assert resp.status_code == 422
    data = resp.json()
    assert data["error_code"] == "validation_error"
    assert "slug" in data["detail"]


def test_unexpected_error_envelope(monkeypatch) -> None:
    monkeypatch.setattr(automations_router, "_service", _BrokenService())
    client = TestClient(app, raise_server_exceptions=False)

    resp = client.get("/api/automations")

    assert resp.status_code == 500
    data = resp.json()
    assert data["error_code"] == "internal_error"
    assert data["detail"] == "Internal server error"
    assert data["request_id"]

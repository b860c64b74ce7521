from fastapi.testclient import TestClient

from automation_studio.backend.app.main import app


def test_health_endpoint() -> None:
    client = TestClient(app)
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "automation_studio_backend"}
    assert response.headers.get("X-Request-ID")

from unittest.mock import MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from hookstream.db.session import get_db


def test_health_reports_healthy(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["name"] == "hookstream"
    assert "timestamp" in body


def test_health_reports_database_failure(app: FastAPI, client: TestClient) -> None:
    broken = MagicMock()
    broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))

    def _broken_session():
        yield broken

    app.dependency_overrides[get_db] = _broken_session
    response = client.get("/health")

    assert response.status_code == 503
    assert response.json() == {"status": "unhealthy", "error": "Database connection failed"}


def test_ready(client: TestClient) -> None:
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready"}

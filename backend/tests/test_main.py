"""Tests for FastAPI app entry point."""
from fastapi.testclient import TestClient


def test_health_endpoint_returns_200() -> None:
    """Health check endpoint should return HTTP 200."""
    from studio.main import app
    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200


def test_health_endpoint_returns_status_ok() -> None:
    """Health check response should contain status=ok and service states."""
    from studio.main import app
    client = TestClient(app)
    data = client.get("/health").json()
    assert data["status"] == "ok"
    assert "version" in data
    assert set(data["services"]) == {"generation", "presets"}


def test_health_reports_initialized_services() -> None:
    """Startup wires the dispatcher and catalogs onto app.state."""
    from studio.main import app
    with TestClient(app) as client:
        data = client.get("/health").json()
    assert data["services"]["generation"] == "ok"
    assert data["services"]["presets"] == "ok"


def test_app_has_correct_title() -> None:
    """FastAPI app should have the project title."""
    from studio.main import app
    assert app.title == "Trend Studio"


def test_app_has_cors_middleware() -> None:
    """App should allow requests from frontend origin."""
    from studio.main import app
    from starlette.middleware.cors import CORSMiddleware
    middleware_classes = [m.cls for m in app.user_middleware]
    assert CORSMiddleware in middleware_classes


def test_media_mount_registered() -> None:
    """Generated files are served from /media."""
    from studio.main import app
    assert "/media" in [getattr(route, "path", None) for route in app.routes]

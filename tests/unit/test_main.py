"""Tests for the FastAPI application factory module."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from worktrack_api.core.config import Settings
from worktrack_api.main import create_app, register_exception_handlers


def _settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        session_secret_key="test-secret-key-not-for-production-use",
    )


class TestCreateApp:
    """Tests for create_app."""

    @pytest.fixture
    def app(self) -> FastAPI:
        with patch("worktrack_api.main.get_settings", return_value=_settings()):
            return create_app()

    def test_app_is_created(self, app: FastAPI) -> None:
        assert app.title == "WorkTrack API"

    def test_routes_mounted_under_prefix(self, app: FastAPI) -> None:
        paths = {route.path for route in app.routes}
        assert "/api/login" in paths
        assert "/api/invitation/{token}" in paths
        assert "/api/admin/users/{user_id}/invite" in paths

    def test_health_has_security_headers(self, app: FastAPI) -> None:
        client = TestClient(app)
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "no-store"


class TestExceptionHandlers:
    """Validation failures become 400 responses."""

    @pytest.fixture
    def client(self) -> TestClient:
        class Payload(BaseModel):
            new_password: str

        app = FastAPI()
        register_exception_handlers(app)

        @app.post("/echo")
        async def echo(payload: Payload) -> dict:
            return {"ok": True}

        @app.get("/boom")
        async def boom() -> dict:
            msg = "bad value"
            raise ValueError(msg)

        return TestClient(app)

    def test_request_validation_returns_400_without_input(self, client: TestClient) -> None:
        response = client.post("/echo", json={"new_password": 5})
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail
        assert all("input" not in err for err in detail)

    def test_value_error_returns_400(self, client: TestClient) -> None:
        response = client.get("/boom")
        assert response.status_code == 400
        assert response.json() == {"detail": "bad value"}


class TestAppLifespan:
    """Tests for lifespan management."""

    async def test_lifespan_init_and_dispose(self) -> None:
        from worktrack_api.main import lifespan

        settings = _settings()
        with (
            patch("worktrack_api.main.get_settings", return_value=settings),
            patch("worktrack_api.main.setup_logging") as mock_setup_logging,
            patch("worktrack_api.main.init_engine") as mock_init_engine,
            patch("worktrack_api.main.dispose_engine", new_callable=AsyncMock) as mock_dispose,
        ):
            async with lifespan(FastAPI()):
                mock_setup_logging.assert_called_once_with("INFO", log_dir=None)
                mock_init_engine.assert_called_once_with(settings.database_url, echo=False)
                mock_dispose.assert_not_called()

        mock_dispose.assert_called_once()

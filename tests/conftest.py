"""Shared test fixtures for async database, sessions, directory, HTTP client, and users."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from worktrack_api.core.config import Settings, get_settings
from worktrack_api.core.dependencies import get_async_session
from worktrack_api.core.security import hash_password
from worktrack_api.models.base import Base
from worktrack_api.models.user import User
from worktrack_api.services.user_directory import UserDirectory

ADMIN_PASSWORD = "adminpassword123"
EMPLOYEE_PASSWORD = "employeepass123"


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        session_secret_key="test-secret-key-not-for-production-use",
        session_cookie_secure=False,
        invitation_validity_hours=24,
        smtp_enabled=False,
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def directory(async_session: AsyncSession) -> UserDirectory:
    return UserDirectory(async_session)


@pytest.fixture
async def admin_user(directory: UserDirectory) -> User:
    """An administrator who has already chosen a password."""
    return await directory.create(
        username="boss",
        email="boss@example.com",
        full_name="Boss Admin",
        role="admin",
        password=hash_password(ADMIN_PASSWORD),
        needs_password_change=False,
    )


@pytest.fixture
async def employee_user(directory: UserDirectory) -> User:
    """An employee who has already chosen a password."""
    return await directory.create(
        username="bob",
        email="bob@example.com",
        full_name="Bob Builder",
        role="employee",
        password=hash_password(EMPLOYEE_PASSWORD),
        needs_password_change=False,
    )


@pytest.fixture
def app(settings: Settings, async_session: AsyncSession) -> FastAPI:
    """Full API (without rate limiting) bound to the test database session."""
    from worktrack_api.api.router import create_router
    from worktrack_api.main import register_exception_handlers

    application = FastAPI()
    register_exception_handlers(application)
    application.include_router(create_router(settings))

    async def _session_override() -> AsyncGenerator[AsyncSession]:
        yield async_session

    application.dependency_overrides[get_async_session] = _session_override
    application.dependency_overrides[get_settings] = lambda: settings
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def admin_client(app: FastAPI, admin_user: User) -> AsyncGenerator[AsyncClient]:
    """Client holding an admin session cookie."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        resp = await ac.post("/api/login", json={"identifier": "boss", "secret": ADMIN_PASSWORD})
        assert resp.status_code == 200
        yield ac

"""HTTP client fixtures wired to the in-memory test database."""

import uuid
from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ballot_api.core.config import Settings, get_settings
from ballot_api.core.dependencies import get_async_session
from ballot_api.core.security import hash_password
from ballot_api.main import create_app
from ballot_api.models.user import User


@pytest.fixture
def app(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    monkeypatch: pytest.MonkeyPatch,
    tmp_path,
) -> FastAPI:
    """Application with sessions and settings pointing at the test database."""
    monkeypatch.setenv("DATABASE_URL", settings.database_url)
    monkeypatch.setenv("JWT_SECRET_KEY", settings.jwt_secret_key)
    settings.export_dir = str(tmp_path / "exports")
    application = create_app()

    async def _session() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_async_session] = _session
    application.dependency_overrides[get_settings] = lambda: settings
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers(sample_user: User, admin_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
async def viewer_headers(async_session: AsyncSession, viewer_token: str) -> dict[str, str]:
    async_session.add(
        User(
            id=uuid.uuid4(),
            username="testviewer",
            email="viewer@example.org",
            hashed_password=hash_password("testpassword123"),
            role="viewer",
        )
    )
    await async_session.commit()
    return {"Authorization": f"Bearer {viewer_token}"}

"""
Pytest configuration and fixtures for Bihari Delicacies tests.
"""

from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from delicacies.api.main import create_app
from delicacies.api.dependencies import Settings
from delicacies.auth.gateway import AuthGateway
from delicacies.auth.sessions import SessionStore
from delicacies.storage.record_store import JsonFileRecordStore
from delicacies.storage.uploads import UploadSink


# =============================================================================
# Test Settings
# =============================================================================

@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing every writable path into a temp directory."""
    return Settings(
        data_dir=str(tmp_path / "data"),
        upload_dir=str(tmp_path / "uploads"),
        mongodb_uri=None,
        database_url=None,
        seed_demo_data=True,
        rate_limit_enabled=False,
        environment="test",
        debug=True,
    )


# =============================================================================
# Storage Fixtures
# =============================================================================

@pytest.fixture
def json_store(tmp_path: Path) -> JsonFileRecordStore:
    """Empty flat-file store, no seed data."""
    return JsonFileRecordStore(tmp_path / "json-store")


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore()


@pytest.fixture
def gateway(json_store, sessions) -> AuthGateway:
    return AuthGateway(store=json_store, sessions=sessions)


@pytest.fixture
def upload_sink(tmp_path: Path) -> UploadSink:
    return UploadSink(tmp_path / "sink", url_prefix="/api/uploads")


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def app(test_settings):
    """Create FastAPI application for testing."""
    application = create_app(test_settings)

    yield application

    application.state.services.close()


@pytest.fixture
def store(app):
    """The record store behind the test app (seeded on first access)."""
    return app.state.services.record_store


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def registration() -> dict:
    return {
        "email": "a@x.com",
        "password": "secret1",
        "firstName": "Asha",
        "lastName": "Kumari",
    }


@pytest.fixture
def png_bytes() -> bytes:
    """Smallest valid PNG: 1x1 transparent pixel."""
    return bytes.fromhex(
        "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
        "1f15c4890000000d49444154789c6360000002000100e221bc330000000049454e44ae426082"
    )


@pytest_asyncio.fixture
async def logged_in_client(client, registration) -> AsyncClient:
    """Client holding a session cookie for a freshly registered user."""
    response = await client.post("/api/auth/register", json=registration)
    assert response.status_code == 201
    return client

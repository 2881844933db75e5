"""
Global pytest configuration and fixtures for the Xero ETL API test suite.
"""

from typing import Any, Dict, Generator

import jwt
import pytest
from fastapi.testclient import TestClient

from src.core.database import get_db
from src.core.settings import Settings, get_settings
from src.domains.xero.auth.refresh import XeroTokenService
from src.domains.xero.auth.service import XeroOAuthService
from src.domains.xero.dependencies import (
    get_etl_extractor,
    get_oauth_service,
    get_token_service,
)
from src.domains.xero.etl.data_service import XeroDataService
from src.domains.xero.etl.extractor import XeroETLExtractor
from src.domains.xero.repository import CONNECTIONS_TABLE, XeroRepository
from src.main import app
from src.shared.encryption import encrypt_token

# Import fixtures from fixture modules
from tests.fixtures.supabase_fixtures import *  # noqa: F403, F401
from tests.fixtures.xero_fixtures import *  # noqa: F403, F401
from tests.fixtures.supabase_fixtures import FakeSupabaseClient
from tests.fixtures.xero_fixtures import XeroMockApi

TEST_JWT_SECRET = "test-secret-key-for-testing-only-32-chars"
TEST_SERVICE_ROLE_KEY = "test-service-role-key"
TEST_ENCRYPTION_KEY = "test-encryption-key-32-chars-abc"


@pytest.fixture
def test_jwt_secret() -> str:
    """JWT secret for generating test tokens."""
    return TEST_JWT_SECRET


@pytest.fixture
def test_encryption_key() -> str:
    return TEST_ENCRYPTION_KEY


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the developer's .env file."""
    return Settings(
        _env_file=None,
        SUPABASE_URL="https://test-project.supabase.co",
        SUPABASE_SERVICE_ROLE_KEY=TEST_SERVICE_ROLE_KEY,
        JWT_SECRET=TEST_JWT_SECRET,
        APP_BASE_URL="http://localhost:8001",
        FRONTEND_URL="http://localhost:5173",
        XERO_CLIENT_ID="test-client-id",
        XERO_CLIENT_SECRET="test-client-secret",
        ENCRYPTION_KEY=TEST_ENCRYPTION_KEY,
    )


@pytest.fixture
def test_auth_id() -> str:
    """Standard test user ID."""
    return "test-user-id-123"


@pytest.fixture
def valid_jwt_payload(test_auth_id: str) -> Dict[str, Any]:
    """Valid JWT payload for testing."""
    return {
        "sub": test_auth_id,
        "email": "test@example.com",
        "aud": "authenticated",
        "iss": "supabase",
        "role": "authenticated",
    }


@pytest.fixture
def valid_jwt_token(test_jwt_secret: str, valid_jwt_payload: Dict[str, Any]) -> str:
    """Generate a valid JWT token for testing."""
    return jwt.encode(valid_jwt_payload, test_jwt_secret, algorithm="HS256")


@pytest.fixture
def invalid_jwt_token() -> str:
    """Token signed with the wrong secret."""
    return jwt.encode({"sub": "someone"}, "wrong-secret", algorithm="HS256")


@pytest.fixture
def auth_headers(valid_jwt_token: str) -> Dict[str, str]:
    """Generate authentication headers with valid JWT token."""
    return {"Authorization": f"Bearer {valid_jwt_token}"}


@pytest.fixture
def service_role_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {TEST_SERVICE_ROLE_KEY}"}


@pytest.fixture
def xero_repository(fake_supabase: FakeSupabaseClient) -> XeroRepository:
    return XeroRepository(fake_supabase)


@pytest.fixture
def stored_connection(
    fake_supabase: FakeSupabaseClient, test_auth_id: str
) -> Dict[str, Any]:
    """Connection row holding the encrypted refresh token "stored-refresh-token"."""
    return fake_supabase.insert_row(
        CONNECTIONS_TABLE,
        {
            "user_id": test_auth_id,
            "tenant_id": "test-tenant-id",
            "encrypted_refresh_token": encrypt_token(
                "stored-refresh-token", TEST_ENCRYPTION_KEY
            ),
            "organization_name": "Test Organization",
            "connected_at": "2024-07-01T09:00:00+00:00",
            "last_refreshed_at": None,
        },
    )


@pytest.fixture
def oauth_service(
    xero_repository: XeroRepository, test_settings: Settings, xero_api: XeroMockApi
) -> XeroOAuthService:
    return XeroOAuthService(xero_repository, test_settings, transport=xero_api.transport)


@pytest.fixture
def token_service(
    xero_repository: XeroRepository, test_settings: Settings, xero_api: XeroMockApi
) -> XeroTokenService:
    return XeroTokenService(xero_repository, test_settings, transport=xero_api.transport)


@pytest.fixture
def data_service(test_settings: Settings, xero_api: XeroMockApi) -> XeroDataService:
    return XeroDataService(test_settings, transport=xero_api.transport)


@pytest.fixture
def etl_extractor(
    xero_repository: XeroRepository,
    token_service: XeroTokenService,
    data_service: XeroDataService,
    test_settings: Settings,
) -> XeroETLExtractor:
    return XeroETLExtractor(
        repository=xero_repository,
        token_service=token_service,
        data_service=data_service,
        settings=test_settings,
    )


@pytest.fixture
def client(
    fake_supabase: FakeSupabaseClient,
    test_settings: Settings,
    oauth_service: XeroOAuthService,
    token_service: XeroTokenService,
    etl_extractor: XeroETLExtractor,
) -> Generator[TestClient, None, None]:
    """FastAPI test client wired to the in-memory database and mock Xero."""
    app.dependency_overrides[get_db] = lambda: fake_supabase
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_oauth_service] = lambda: oauth_service
    app.dependency_overrides[get_token_service] = lambda: token_service
    app.dependency_overrides[get_etl_extractor] = lambda: etl_extractor

    yield TestClient(app)

    app.dependency_overrides.clear()

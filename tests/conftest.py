"""
Shared test fixtures and configuration for entire test suite.

Provides: User documents, service mocks, a TestClient with the auth
dependency overridden, and settings objects for boundary tests
Dependencies: pytest, fastapi, bson
System role: Test infrastructure and fixture management
"""

from unittest.mock import AsyncMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from debrid_proxy.api.deps.dependencies import (
    get_current_user,
    get_gift_card_service,
    get_transaction_service,
    get_user_service,
)
from debrid_proxy.api.main import create_app
from debrid_proxy.configs.auth import AuthSettings
from debrid_proxy.configs.mail import MailSettings


def make_user(**overrides) -> dict:
    """Build a stored user document."""
    doc = {
        "_id": ObjectId(),
        "email": "user@example.com",
        "password": "hashed",
        "storage_all": 100,
        "storage_used": 40,
        "storage_expired_at": "2999-01-01T00:00:00.000+08:00",
        "deleted": False,
        "role": "standard",
        "created_at": "2025-01-01T08:00:00.000+08:00",
        "updated_at": "2025-01-01T08:00:00.000+08:00",
        "token": None,
        "last_login_at": None,
        "email_verified": True,
        "email_verified_at": "2025-01-01T08:00:00.000+08:00",
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def user_factory():
    """Factory for stored user documents."""
    return make_user


@pytest.fixture
def standard_user() -> dict:
    return make_user()


@pytest.fixture
def admin_user() -> dict:
    return make_user(email="admin@example.com", role="admin")


@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(secret="test-secret", expires_in="1h", algorithm="HS256")


@pytest.fixture
def mail_settings() -> MailSettings:
    return MailSettings(
        access_token="mlsn.test",
        from_email="noreply@example.com",
        from_name="Debrid Proxy",
        api_url="https://mail.test/v1/email",
        password_reset_url="https://app.test/reset?token=%token%",
        email_verification_url="https://app.test/verify",
    )


@pytest.fixture
def mock_user_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_transaction_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_gift_card_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app, mock_user_service, mock_transaction_service, mock_gift_card_service):
    """
    TestClient with every service replaced by an AsyncMock.

    Yields:
        TestClient: Client whose app has no current user override yet
    """
    app.dependency_overrides[get_user_service] = lambda: mock_user_service
    app.dependency_overrides[get_transaction_service] = lambda: mock_transaction_service
    app.dependency_overrides[get_gift_card_service] = lambda: mock_gift_card_service
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def as_user(client):
    """Authenticate subsequent requests as the given user document."""

    def _login(user: dict) -> TestClient:
        client.app.dependency_overrides[get_current_user] = lambda: user
        return client

    return _login

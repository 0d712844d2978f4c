"""Pytest configuration and shared fixtures."""

from typing import Any

import pytest

from tests.helpers import FakeMailClient, b64, make_message


@pytest.fixture
def client_secrets() -> dict[str, Any]:
    """Installed-app client secrets document."""
    return {
        "installed": {
            "client_id": "client-id.apps.googleusercontent.com",
            "client_secret": "client-secret",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": ["http://localhost"],
        }
    }


@pytest.fixture
def token_data() -> dict[str, Any]:
    """Stored OAuth token."""
    return {
        "access_token": "old-access",
        "refresh_token": "refresh-1",
        "scope": "https://www.googleapis.com/auth/gmail.readonly",
        "token_type": "Bearer",
        "expiry_date": 1705276800000,
    }


@pytest.fixture
def plain_message() -> dict[str, Any]:
    """Single-part text/plain message with body "hello"."""
    return make_message()


@pytest.fixture
def nested_message() -> dict[str, Any]:
    """multipart/mixed holding a multipart/alternative and a PDF attachment."""
    return make_message(
        message_id="msg-nested",
        payload={
            "mimeType": "multipart/mixed",
            "body": {"size": 0},
            "parts": [
                {
                    "partId": "0",
                    "mimeType": "multipart/alternative",
                    "filename": "",
                    "body": {"size": 0},
                    "parts": [
                        {
                            "partId": "0.0",
                            "mimeType": "text/plain",
                            "filename": "",
                            "body": {"size": 10, "data": b64("Plain body")},
                        },
                        {
                            "partId": "0.1",
                            "mimeType": "text/html",
                            "filename": "",
                            "body": {"size": 16, "data": b64("<p>HTML body</p>")},
                        },
                    ],
                },
                {
                    "partId": "1",
                    "mimeType": "application/pdf",
                    "filename": "invoice.pdf",
                    "body": {"size": 2048, "attachmentId": "att-1"},
                },
            ],
        },
    )


@pytest.fixture
def fake_client() -> FakeMailClient:
    """Mail client with no queued results."""
    return FakeMailClient()


# Markers for test categories
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (may require network)"
    )

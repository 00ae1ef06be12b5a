"""Pytest fixtures for drive_uploader tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from drive_uploader import Credential, FileMetadata, UploaderConfig
from drive_uploader.auth import TokenRefresher


@pytest.fixture
def credential() -> Credential:
    """Create a test credential."""
    return Credential(
        access_token="stale_token",
        refresh_token="refresh_token",
        client_id="client-id",
        client_secret="client-secret",
    )


@pytest.fixture
def metadata() -> FileMetadata:
    """Create file metadata with one parent folder."""
    return FileMetadata(name="report.pdf", parents=["folder-1"])


@pytest.fixture
def mock_transport() -> MagicMock:
    """Create a mock Transport; tests script responses via request.side_effect."""
    return MagicMock()


@pytest.fixture
def refresher(mock_transport: MagicMock) -> TokenRefresher:
    """Create a TokenRefresher on the mock transport."""
    return TokenRefresher(mock_transport, token_endpoint="https://oauth.example/token")


@pytest.fixture
def fast_config() -> UploaderConfig:
    """Config with small chunks and no real backoff."""
    return UploaderConfig(
        upload_endpoint="https://upload.example/files?uploadType=resumable",
        token_endpoint="https://oauth.example/token",
        chunk_size=4,
        max_retries=2,
        backoff_base=0.0,
    )

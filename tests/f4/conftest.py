"""Fixtures for F4 tests - Remote API, end-to-end sync and CLI."""

import pytest
from fastapi.testclient import TestClient

from nabha.web.api import create_app


@pytest.fixture
def server_app(tmp_path):
    """Remote API app on an isolated database."""
    return create_app(db_path=tmp_path / "server.db")


@pytest.fixture
def client(server_app):
    """Create test client."""
    return TestClient(server_app)

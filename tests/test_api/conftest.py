"""Shared fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.auth import verify_api_key
from src.api.dependencies import get_alert_service


@pytest.fixture
def client(service):
    """FastAPI TestClient wired to an in-memory engine with recording channels."""
    app = create_app()

    app.dependency_overrides[verify_api_key] = lambda: "test-key"
    app.dependency_overrides[get_alert_service] = lambda: service

    with TestClient(app) as c:
        yield c

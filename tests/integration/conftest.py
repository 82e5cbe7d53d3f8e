"""
Shared fixtures for route integration tests.

The app is imported with Celery auto-start disabled; every container
getter a test needs is swapped through app.dependency_overrides.
Version: 1.0.0
"""
import os

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("AUTO_START_CELERY", "false")

from app.core.auth import get_current_user
from app.main import app as fastapi_app


@pytest.fixture
def app(mock_current_user):
    fastapi_app.dependency_overrides[get_current_user] = lambda: mock_current_user
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def anonymous_client():
    """Client with no auth override; protected routes must refuse it."""
    fastapi_app.dependency_overrides.clear()
    with TestClient(fastapi_app, raise_server_exceptions=False) as c:
        yield c

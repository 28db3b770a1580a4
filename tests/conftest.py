"""
Test Configuration and Fixtures

Shared fixtures for the identity core (in-memory store) and the HTTP API.
"""
import os

# Set test environment variables before importing app.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["CONTACT_STORE_BACKEND"] = "memory"
os.environ.setdefault("IDENTIFY_RATE_LIMIT", "10000/minute")

import pytest
from fastapi.testclient import TestClient

from app.services.identity.service import IdentityService
from app.services.identity.store import InMemoryContactStore


def pytest_collection_modifyitems(config, items):
    """tests/api/** => api, everything else => unit"""
    for item in items:
        path = str(getattr(item, "fspath", ""))
        if "/tests/api/" in path:
            item.add_marker(pytest.mark.api)
        else:
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def store():
    """Fresh in-memory contact store"""
    return InMemoryContactStore()


@pytest.fixture
def service(store):
    """Identity service over the in-memory store"""
    return IdentityService(store)


@pytest.fixture
def client():
    """API client with a fresh store per test (lifespan runs on enter)"""
    from main import app
    from app.middleware.rate_limit import limiter

    limiter.reset()
    with TestClient(app) as test_client:
        yield test_client

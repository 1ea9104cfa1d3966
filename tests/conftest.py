"""
Global test configuration and fixtures for the Domo relay

This module provides shared test fixtures: settings pointed at a fake Domo
API, the fake itself, service objects wired to it, and a FastAPI test client.
"""

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from domo_relay.core.config import Settings
from domo_relay.core.utils.session_store import SessionStore
from domo_relay.main import create_app
from domo_relay.providers.domo.client import DomoClient
from domo_relay.providers.domo.services.dataset_relay import DatasetRelay
from domo_relay.providers.domo.services.token_manager import TokenManager
from tests.utils.fake_domo import API_BASE, FakeDomo


# ============================================================================
# Test Environment Setup
# ============================================================================

@pytest.fixture(scope="function")
def test_settings():
    """Settings for testing; never read from the environment's real credentials"""
    return Settings(
        DOMO_CLIENT_ID="client-id",
        DOMO_CLIENT_SECRET="client-secret",
        DOMO_API_BASE=API_BASE,
        ACQUIRE_TOKEN_ON_STARTUP=False,
        DEV_MODE=True,
    )


@pytest.fixture(scope="function")
def fake_domo():
    """Fake Domo API with two datasets preloaded"""
    fake = FakeDomo()
    fake.add_dataset(
        "7",
        ["_BATCH_ID_", "Name", "_BATCH_LAST_RUN_", "Score"],
        "Alice,91\nBob,78\n",
    )
    fake.add_dataset("42", ["Name", "Notes"], "")
    return fake


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def http_client(fake_domo):
    async with httpx.AsyncClient(transport=fake_domo.transport()) as client:
        yield client


@pytest.fixture
def domo_client(http_client):
    return DomoClient(http_client, api_base=API_BASE)


@pytest.fixture
def token_manager(domo_client):
    return TokenManager(domo_client, client_id="client-id", client_secret="client-secret")


@pytest.fixture
def dataset_relay(domo_client, token_manager):
    return DatasetRelay(domo_client, token_manager)


class FakeClock:
    """Manually advanced epoch-second clock"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_store(clock):
    return SessionStore(clock=clock)


# ============================================================================
# Application Client Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def app(test_settings, fake_domo):
    return create_app(test_settings, transport=fake_domo.transport())


@pytest.fixture(scope="function")
def client(app):
    """Create FastAPI test client; entering it runs the app lifespan"""
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# Test Markers and Configuration
# ============================================================================

def pytest_collection_modifyitems(config, items):
    """Add markers based on file location"""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

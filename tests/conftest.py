"""
Pytest configuration and fixtures for tests.

The backend is replaced by an httpx MockTransport so the client, the
checkout flow and the routes run their real code without a network.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from storefront.core.cart import CartStore
from storefront.core.session import SessionManager
from storefront.core.storage import MemoryCartStorage
from storefront.main import create_app
from storefront.services.api_client import StorefrontApiClient

from .fakes import BACKEND_URL, VALID_CHECKOUT, FakeBackend


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def api_client(backend):
    return StorefrontApiClient(
        api_base_url=BACKEND_URL,
        max_retries=3,
        retry_base_delay=0,
        transport=httpx.MockTransport(backend.handler),
    )


@pytest.fixture
def storage():
    return MemoryCartStorage()


@pytest.fixture
def cart(storage):
    return CartStore(storage)


@pytest.fixture
def checkout_data():
    return dict(VALID_CHECKOUT)


@pytest.fixture
def sessions():
    return SessionManager()


@pytest.fixture
def client(api_client, sessions):
    app = create_app(api_client=api_client, sessions=sessions)
    return TestClient(app)

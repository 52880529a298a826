"""
Fixtures for the HTTP surface tests.
"""

import pytest
from httpx import ASGITransport, AsyncClient

import mockdb
from server.main import app


@pytest.fixture(autouse=True)
def reset_default_db():
    mockdb.clean_up()
    yield
    mockdb.clean_up()


@pytest.fixture
async def client():
    """Create test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

"""
Shared test fixtures for Product Catalog tests.
"""

import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeClock:
    """Monotonic clock that only moves when fake sleep() is awaited."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class FakeResponse:
    """Stands in for aiohttp.ClientResponse."""

    def __init__(self, status=200, payload=None, json_error=None):
        self.status = status
        self._payload = payload
        self._json_error = json_error
        self.released = False

    async def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._payload

    def release(self):
        self.released = True


async def settle(rounds: int = 20):
    """Let pending tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def sample_products():
    """Product list as served by GET /api/products."""
    return [
        {
            "id": 1,
            "name": "Wireless Headphones",
            "description": "Over-ear noise cancelling headphones",
            "price": "199.99",
            "image_url": "https://example.com/images/headphones.jpg",
            "created_at": "2024-01-15T10:30:00",
        },
        {
            "id": 2,
            "name": "Mechanical Keyboard",
            "description": "Tenkeyless keyboard with brown switches",
            "price": "89.50",
            "image_url": None,
            "created_at": "2024-01-16T09:00:00",
        },
        {
            "id": 3,
            "name": "USB-C Hub",
            "description": "Seven port hub with power delivery",
            "price": "34.00",
            "image_url": "https://example.com/images/hub.jpg",
            "created_at": "2024-01-17T14:45:00",
        },
    ]


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_session():
    """Build a mock aiohttp session whose get() returns the given response."""

    def _make(response=None, side_effect=None):
        session = MagicMock()
        session.closed = False
        session.close = AsyncMock()
        if side_effect is not None:
            session.get = AsyncMock(side_effect=side_effect)
        else:
            session.get = AsyncMock(return_value=response)
        return session

    return _make


@pytest.fixture
def storage_config(tmp_path):
    from product_catalog.server.storage import StorageConfig

    return StorageConfig(
        database_url=f"sqlite:///{tmp_path / 'products.db'}",
        max_retries=3,
        retry_interval=0.01,
    )


@pytest.fixture
def fake_response():
    """Factory for fake aiohttp responses."""
    return FakeResponse


@pytest.fixture
def run_pending():
    """Coroutine function that lets scheduled tasks progress."""
    return settle

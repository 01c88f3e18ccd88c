"""
Network orchestrator: the one real call the pipeline player makes.

Talks to the product REST service with aiohttp and hands back normalized
Product records, or a FetchError describing what went wrong.
"""

import asyncio
import logging
import time
from typing import Any, Callable, List, Optional

import aiohttp

from product_catalog.shared import Product, normalize_products

logger = logging.getLogger(__name__)

PRODUCTS_PATH = "/api/products"


class FetchError(Exception):
    """
    A failed product fetch.

    ``status`` carries the HTTP status for non-success responses and is
    None for transport failures.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class PendingFetch:
    """A response whose headers arrived but whose body is still unread."""

    def __init__(
        self,
        response: aiohttp.ClientResponse,
        started_at: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._response = response
        self._started_at = started_at
        self._clock = clock
        self.status = response.status
        self.elapsed_ms = self._elapsed()

    def _elapsed(self) -> float:
        return (self._clock() - self._started_at) * 1000

    def discard(self):
        """Drop the response without reading the body."""
        self._response.release()

    async def json(self) -> Any:
        try:
            data = await self._response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise FetchError(f"Invalid response body: {e}") from e
        finally:
            self._response.release()

        self.elapsed_ms = self._elapsed()
        return data

    async def products(self) -> List[Product]:
        data = await self.json()
        if not isinstance(data, list):
            raise FetchError("Expected a JSON array of products")
        try:
            return normalize_products(data)
        except (KeyError, TypeError, ValueError) as e:
            raise FetchError(f"Malformed product data: {e}") from e

    async def product(self) -> Product:
        data = await self.json()
        if not isinstance(data, dict):
            raise FetchError("Expected a JSON product object")
        try:
            return Product.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise FetchError(f"Malformed product data: {e}") from e


class NetworkOrchestrator:
    """
    Issues read requests against the product REST service.

    No retries happen here; a failure is reported once and the caller
    decides what to do.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._clock = clock

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self):
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "NetworkOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def begin_fetch(self, path: str = PRODUCTS_PATH) -> PendingFetch:
        """
        Send the request and return once the response status is known.

        Raises:
            FetchError: transport failure or non-2xx status
        """
        session = await self._get_session()
        url = f"{self.base_url}{path}"
        started_at = self._clock()

        try:
            response = await session.get(
                url, timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Request to {url} timed out")
            raise FetchError(f"Request timed out after {self.timeout}s") from e
        except aiohttp.ClientError as e:
            logger.error(f"Request to {url} failed: {e}")
            raise FetchError(f"Network error: {e}") from e

        if not 200 <= response.status < 300:
            response.release()
            logger.error(f"API error from {url}: {response.status}")
            raise FetchError(f"API Error: {response.status}", status=response.status)

        return PendingFetch(response, started_at, clock=self._clock)

    async def fetch_products(self) -> List[Product]:
        """GET /api/products, normalized."""
        pending = await self.begin_fetch(PRODUCTS_PATH)
        products = await pending.products()
        logger.info(f"Fetched {len(products)} products in {pending.elapsed_ms:.0f}ms")
        return products

    async def fetch_product(self, product_id: int) -> Product:
        """GET /api/products/{id}; a missing product is a FetchError with status 404."""
        pending = await self.begin_fetch(f"{PRODUCTS_PATH}/{product_id}")
        return await pending.product()

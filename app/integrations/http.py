"""
HTTP client for integration nodes.

The engine only needs "given a URL, return a decoded JSON object or fail".
IntegrationClient wraps an httpx.AsyncClient to do exactly that, and accepts
a custom transport so tests can answer requests without a network.
"""

from typing import Any, Dict, Optional
import logging

import httpx

from app.config import settings
from app.engine.errors import IntegrationError


logger = logging.getLogger(__name__)


class IntegrationClient:
    """
    Async JSON-over-HTTP client.

    Usage:
        async with IntegrationClient() as client:
            data = await client.get_json("https://api.example.com/weather")
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT,
            transport=transport,
        )

    async def get_json(self, url: str) -> Dict[str, Any]:
        """
        Issue a GET request and decode a JSON object body.

        Raises:
            IntegrationError: On transport failure, non-2xx status,
                undecodable body, or a body that is not a JSON object
        """
        try:
            response = await self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Failed to call API {url}: {e}")
            raise IntegrationError(f"failed to call API: {e}", url=url) from e

        if not response.is_success:
            logger.error(f"API {url} returned status {response.status_code}")
            raise IntegrationError(
                f"API returned status {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Failed to parse API response from {url}: {response.text[:200]}")
            raise IntegrationError(f"failed to parse API response: {e}", url=url) from e

        if not isinstance(data, dict):
            raise IntegrationError("API response is not a JSON object", url=url)

        logger.debug(f"API response received from {url}: {data}")
        return data

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "IntegrationClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

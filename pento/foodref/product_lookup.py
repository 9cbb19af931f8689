"""Open Food Facts product lookup by barcode."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class OpenFoodFactsClient:
    """Fetches raw product payloads from the Open Food Facts v2 API."""

    def __init__(
        self,
        base_url: str = "https://world.openfoodfacts.org/api/v2/product",
        user_agent: str = "PentoService/1.0 - Food tracking app",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {"User-Agent": user_agent}
        self._timeout = timeout
        self._client = client

    async def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, headers=self._headers)
        async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
            return await client.get(url, headers=self._headers)

    async def fetch_by_barcode(self, barcode: str) -> dict[str, Any] | None:
        """Return the product payload, or None if the barcode is unknown.

        Raises:
            UpstreamUnavailable: On transport errors, server errors or a
                response body that is not JSON.
        """
        url = f"{self._base_url}/{barcode}.json"
        logger.info("Fetching product data for barcode: %s", barcode)
        try:
            response = await self._get(url)
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Open Food Facts request failed: {e}") from e

        if response.status_code == 404:
            logger.info("Product not found in Open Food Facts for barcode %s", barcode)
            return None
        if response.status_code >= 400:
            raise UpstreamUnavailable(
                f"Open Food Facts returned status {response.status_code} "
                f"for barcode {barcode}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamUnavailable(
                f"Open Food Facts returned malformed JSON for barcode {barcode}"
            ) from e

        if not isinstance(data, dict):
            raise UpstreamUnavailable(
                f"Open Food Facts returned malformed JSON for barcode {barcode}"
            )
        product = data.get("product")
        if data.get("status") != 1 or not isinstance(product, dict):
            logger.info("Product not found in Open Food Facts for barcode %s", barcode)
            return None
        return product

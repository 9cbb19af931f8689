"""Google Custom Search image lookup."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from .errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

_ENDPOINT = "https://www.googleapis.com/customsearch/v1"
_MAX_RESULTS = 10


@dataclass
class ImageHit:
    url: str
    title: str | None = None


class GoogleImageSearch:
    """Find representative pictures for food names.

    Without credentials every search logs a warning and returns nothing.
    """

    def __init__(
        self,
        api_key: str = "",
        engine_id: str = "",
        timeout: float = 8.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._engine_id = engine_id
        self._timeout = timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._api_key and self._engine_id)

    async def _get(self, params: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(_ENDPOINT, params=params)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(_ENDPOINT, params=params)

    async def search_images(self, query: str, num: int = 1) -> list[ImageHit]:
        """Return up to ``num`` image hits (clamped to 1..10).

        Raises:
            UpstreamUnavailable: On transport errors or a non-2xx response.
        """
        if not self.configured:
            logger.warning(
                "Google Custom Search credentials not configured, skipping image search"
            )
            return []

        params = {
            "key": self._api_key,
            "cx": self._engine_id,
            "q": query,
            "searchType": "image",
            "num": min(max(1, num), _MAX_RESULTS),
            "safe": "active",
        }
        try:
            response = await self._get(params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamUnavailable(f"Image search failed for {query!r}: {e}") from e

        hits: list[ImageHit] = []
        for item in data.get("items") or []:
            link = item.get("link")
            if link:
                hits.append(ImageHit(url=link, title=item.get("title") or None))
        return hits

    async def search_image(self, name: str) -> ImageHit | None:
        hits = await self.search_images(f"{name} food", num=1)
        return hits[0] if hits else None

"""Concurrent image enrichment for a batch of food names."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from .interfaces import ImageSearch

logger = logging.getLogger(__name__)


class ImageEnricher:
    """Looks up one image per distinct name, all at once.

    A failed, empty or timed-out lookup leaves that name without an image;
    it never fails the batch.
    """

    def __init__(
        self,
        search: ImageSearch,
        timeout: float = 8.0,
        max_concurrency: int = 10,
    ) -> None:
        self._search = search
        self._timeout = timeout
        self._max_concurrency = max(1, max_concurrency)

    async def enrich(self, names: Iterable[str]) -> dict[str, str | None]:
        """Return a name → image URL (or None) mapping."""
        unique = list(dict.fromkeys(n for n in names if n))
        if not unique:
            return {}

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def lookup(name: str) -> tuple[str, str | None]:
            async with semaphore:
                try:
                    hit = await asyncio.wait_for(
                        self._search.search_image(name), timeout=self._timeout
                    )
                except asyncio.TimeoutError:
                    logger.warning("Image search timed out for %r", name)
                    return name, None
                except Exception:
                    logger.warning("Image search failed for %r", name, exc_info=True)
                    return name, None
            return name, hit.url if hit else None

        logger.info("Searching images for %d food items...", len(unique))
        results = await asyncio.gather(*(lookup(n) for n in unique))
        return dict(results)

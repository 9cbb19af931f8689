"""Protocols for the collaborators the ingestion engine consumes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .models import FoodReference

if TYPE_CHECKING:
    from .db.entitlements import Entitlement
    from .image_search import ImageHit


@runtime_checkable
class CatalogStore(Protocol):
    """Catalog persistence. Each call is a single atomic round trip."""

    def find_by_id(self, reference_id: str) -> FoodReference | None: ...

    def find_by_barcode(self, barcode: str) -> FoodReference | None: ...

    def find_all_non_deleted(self) -> list[FoodReference]: ...

    def bulk_insert(self, references: list[FoodReference]) -> list[str]: ...


@runtime_checkable
class EntitlementStore(Protocol):
    def find_entitlement(self, user_id: str, feature_code: str) -> Entitlement | None: ...

    def increment_usage(self, user_id: str, feature_code: str) -> None: ...


@runtime_checkable
class OcrClient(Protocol):
    async def extract_text(self, image_bytes: bytes) -> str:
        """Return the text found in the image.

        Raises:
            UpstreamUnavailable: If the call fails or no text is detected.
        """
        ...


@runtime_checkable
class ProductLookup(Protocol):
    async def fetch_by_barcode(self, barcode: str) -> dict[str, Any] | None:
        """Return the product payload, or None when the product is unknown."""
        ...


@runtime_checkable
class ImageSearch(Protocol):
    async def search_image(self, name: str) -> ImageHit | None:
        """Return the first image for a food name, or None."""
        ...

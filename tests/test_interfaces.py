"""The concrete collaborators satisfy the engine's protocols."""

from pento.foodref.db import CatalogDB, EntitlementDB
from pento.foodref.image_search import GoogleImageSearch
from pento.foodref.interfaces import (
    CatalogStore,
    EntitlementStore,
    ImageSearch,
    OcrClient,
    ProductLookup,
)
from pento.foodref.ocr import GoogleVisionOcr
from pento.foodref.product_lookup import OpenFoodFactsClient


def test_sqlite_stores(tmp_path):
    assert isinstance(CatalogDB(tmp_path / "a.db"), CatalogStore)
    assert isinstance(EntitlementDB(tmp_path / "a.db"), EntitlementStore)


def test_http_clients():
    assert isinstance(OpenFoodFactsClient(), ProductLookup)
    assert isinstance(GoogleImageSearch(), ImageSearch)


def test_ocr_client():
    assert isinstance(GoogleVisionOcr(), OcrClient)


def test_catalog_is_not_an_entitlement_store(tmp_path):
    assert not isinstance(CatalogDB(tmp_path / "a.db"), EntitlementStore)
